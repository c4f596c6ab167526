"""Bookgen FastAPI application."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import documents, generation, share
from config import settings
from models.base import Base, async_engine
from services import build_services

logging.basicConfig(level=settings.log_level, format="%(asctime)s %(name)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Bookgen API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(generation.router)
app.include_router(documents.router)
app.include_router(share.router)


@app.on_event("startup")
async def startup():
    """Create database tables and wire up the services."""
    logger.info("Creating database tables...")
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ready.")

    if getattr(app.state, "services", None) is None:
        app.state.services = build_services(settings)
    logger.info("Generation services ready (max %d concurrent).", settings.max_concurrent_generations)


@app.on_event("shutdown")
async def shutdown():
    services = getattr(app.state, "services", None)
    if services is not None:
        await services.orchestrator.shutdown()


@app.get("/api/health")
async def health():
    return {"status": "ok"}
