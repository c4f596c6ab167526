"""Master test fixtures.

Environment variables are set BEFORE any application imports so that
``config.Settings()`` initialises with test-safe values and never
touches Docker secrets or a production database.
"""

import os
import re
import time

# ── Set test env vars before any app import ──────────────────────────
os.environ.update({
    "DATABASE_URL": "sqlite+aiosqlite://",
    "SUPABASE_URL": "https://storage.test",
    "SUPABASE_SERVICE_ROLE_KEY": "test-service-role-key",
    "GEMINI_API_KEY": "test-gemini-key",
    "FIREBASE_PROJECT_ID": "bookgen-test",
    "PUBLIC_BASE_URL": "https://bookgen.test",
})
os.environ.pop("POSTGRES_PASSWORD", None)

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# Now safe to import application code
from document.repository import DocumentRepository
from document.sharing import SharingService
from generation.orchestrator import GenerationOrchestrator
from models.base import Base
from services import Services
from storage.supabase_storage import StorageError, SupabaseStorage

TEST_PROJECT_ID = "bookgen-test"
TEST_USER_ID = "firebase-user-1"
OTHER_USER_ID = "firebase-user-2"

_CHAPTER_COUNT_RE = re.compile(r"EXACTLY (\d+) chapters")

CHAPTER_BODY = """Tea is one of the oldest drinks in the world, and its story is full of travel and trade.

### Where it began

Legend says the first cup was brewed by accident when leaves fell into **boiling water**.

### How it spread

- Merchants carried bricks of tea along caravan routes
- Monks brought seeds across the sea

| Region | Century |
| --- | --- |
| China | 3rd |
| Japan | 9th |
"""


class FakeLLM:
    """Stand-in for LLMClient that answers outline and body prompts."""

    def __init__(self, toc_reply: str | None = None, fail_after: int | None = None):
        self.calls: list[list[dict[str, str]]] = []
        self.toc_reply = toc_reply
        self.fail_after = fail_after
        self.on_call = None

    async def complete(self, messages, max_tokens=4000, temperature=0.7, min_length=50):
        from llm.client import LLMError

        self.calls.append(messages)
        if self.on_call is not None:
            await self.on_call(len(self.calls))
        if self.fail_after is not None and len(self.calls) > self.fail_after:
            raise LLMError("LLM failed after 3 attempts: APIConnectionError: boom")

        prompt = messages[-1]["content"]
        match = _CHAPTER_COUNT_RE.search(prompt)
        if match:
            if self.toc_reply is not None:
                return self.toc_reply
            return toc_text(int(match.group(1)))
        return CHAPTER_BODY

    def prompts_starting_with(self, prefix: str) -> list[str]:
        return [m[-1]["content"] for m in self.calls if m[-1]["content"].startswith(prefix)]


def toc_text(chapter_count: int) -> str:
    return "\n".join(
        f"Chapter {n}: Part {n} of the story\n   - Origins\n   - People\n   - Legacy"
        for n in range(1, chapter_count + 1)
    )


class FakeStorage(SupabaseStorage):
    """In-memory bucket with the SupabaseStorage interface."""

    def __init__(self):
        super().__init__(base_url="https://storage.test", service_key="test-service-role-key")
        self.objects: dict[str, bytes] = {}
        self.fail_uploads = False
        self.fail_deletes = False
        self.deleted: list[str] = []

    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        if self.fail_uploads:
            raise StorageError(503, "bucket unavailable")
        self.objects[key] = data
        return self.public_url(key)

    async def delete(self, key: str) -> None:
        if self.fail_deletes:
            raise StorageError(500, "delete failed")
        self.objects.pop(key, None)
        self.deleted.append(key)


# ── SQLite file database per test (NullPool: safe across tasks) ──────

@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def repository(session_factory, storage) -> DocumentRepository:
    return DocumentRepository(session_factory, storage)


@pytest.fixture
async def orchestrator(repository, storage, llm):
    orch = GenerationOrchestrator(repository, storage, llm, max_concurrent=2)
    yield orch
    await orch.shutdown()


@pytest.fixture
def sharing(repository) -> SharingService:
    return SharingService(repository, "https://bookgen.test")


# ── Firebase tokens signed with a throwaway RSA key ──────────────────

@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def make_token(rsa_key):
    def _make(uid: str = TEST_USER_ID, **overrides) -> str:
        now = int(time.time())
        claims = {
            "iss": f"https://securetoken.google.com/{TEST_PROJECT_ID}",
            "aud": TEST_PROJECT_ID,
            "sub": uid,
            "iat": now,
            "exp": now + 3600,
            "auth_time": now,
        }
        claims.update(overrides)
        return jwt.encode(claims, rsa_key, algorithm="RS256", headers={"kid": "test-kid"})

    return _make


@pytest.fixture(autouse=True)
def _firebase_keys(monkeypatch, rsa_key):
    """Resolve every token's signing key to the test key instead of Google's JWKS."""
    import auth.firebase as firebase

    monkeypatch.setattr(firebase, "_signing_key", lambda token: rsa_key.public_key())


@pytest.fixture
def auth_headers(make_token) -> dict[str, str]:
    """Authorization header for the test user."""
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def other_auth_headers(make_token) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(OTHER_USER_ID)}"}


@pytest.fixture
async def test_client(repository, orchestrator, sharing):
    """HTTPX async client wired to the FastAPI app with test services.

    The startup event is NOT run, so no tables are created on the app engine.
    """
    from main import app

    app.state.services = Services(repository=repository, orchestrator=orchestrator, sharing=sharing)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.state.services = None
