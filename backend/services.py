"""Service objects built once at startup and handed to routers as dependencies."""

from dataclasses import dataclass

from fastapi import Request

from config import Settings
from document.repository import DocumentRepository
from document.sharing import SharingService
from generation.orchestrator import GenerationOrchestrator
from llm.client import LLMClient
from models.base import async_session_factory
from storage.supabase_storage import SupabaseStorage


@dataclass
class Services:
    repository: DocumentRepository
    orchestrator: GenerationOrchestrator
    sharing: SharingService


def build_services(settings: Settings, session_factory=async_session_factory) -> Services:
    storage = SupabaseStorage(
        base_url=settings.supabase_url,
        service_key=settings.supabase_service_role_key,
        bucket=settings.supabase_bucket,
    )
    repository = DocumentRepository(session_factory, storage)
    orchestrator = GenerationOrchestrator(
        repository,
        storage,
        LLMClient.from_settings(settings),
        max_concurrent=settings.max_concurrent_generations,
    )
    sharing = SharingService(repository, settings.public_base_url)
    return Services(repository=repository, orchestrator=orchestrator, sharing=sharing)


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_repository(request: Request) -> DocumentRepository:
    return get_services(request).repository


def get_orchestrator(request: Request) -> GenerationOrchestrator:
    return get_services(request).orchestrator


def get_sharing(request: Request) -> SharingService:
    return get_services(request).sharing
