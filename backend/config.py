"""
Application configuration with Docker secrets support.

Secrets are read using the _read_secret() pattern:
  1. Direct env var (e.g., GEMINI_API_KEY)
  2. File-based env var (e.g., GEMINI_API_KEY_FILE → reads file path)
  3. Raises ValueError if neither is set
"""

import os
import logging

logger = logging.getLogger(__name__)

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


def _read_secret(env_var: str, file_env_var: str | None = None) -> str:
    """Read a secret from env var or Docker secrets file.

    Args:
        env_var: Direct environment variable name (e.g., GEMINI_API_KEY)
        file_env_var: File path env var name (e.g., GEMINI_API_KEY_FILE).
                      If None, defaults to env_var + '_FILE'.

    Returns:
        The secret value.

    Raises:
        ValueError: If neither source provides a value.
    """
    if file_env_var is None:
        file_env_var = f"{env_var}_FILE"

    # Priority 1: Direct env var
    value = os.environ.get(env_var)
    if value:
        return value

    # Priority 2: File-based (Docker secrets pattern)
    file_path = os.environ.get(file_env_var)
    if file_path:
        try:
            with open(file_path, "r") as f:
                value = f.read().strip()
            if value:
                return value
        except FileNotFoundError:
            logger.error(f"Secret file not found: {file_path} (from {file_env_var})")
        except PermissionError:
            logger.error(f"Permission denied reading: {file_path} (from {file_env_var})")

    raise ValueError(
        f"Secret not configured. Set {env_var} env var or {file_env_var} pointing to a file."
    )


class Settings:
    """Application settings loaded from environment and Docker secrets."""

    def __init__(self):
        # Server
        self.port = int(os.environ.get("PORT", "5000"))
        self.log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
        self.allowed_origins = [
            origin.strip()
            for origin in os.environ.get("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
            if origin.strip()
        ]

        # Database (Supabase Postgres)
        self.database_url = self._build_database_url()

        # Secrets (loaded lazily on first access via properties)
        self._supabase_service_role_key: str | None = None
        self._gemini_api_key: str | None = None

        # Supabase Storage
        self.supabase_url = os.environ.get("SUPABASE_URL", "http://localhost:54321").rstrip("/")
        self.supabase_bucket = os.environ.get("SUPABASE_BUCKET", "documents")

        # LLM provider (OpenAI-compatible endpoint)
        self.llm_base_url = os.environ.get("LLM_BASE_URL", GEMINI_OPENAI_BASE_URL)
        self.llm_model = os.environ.get("LLM_MODEL", "gemini-2.5-flash-lite")
        self.llm_max_retries = int(os.environ.get("LLM_MAX_RETRIES", "3"))
        self.llm_timeout = float(os.environ.get("LLM_TIMEOUT", "120"))

        # Auth
        self.firebase_project_id = os.environ.get("FIREBASE_PROJECT_ID", "")

        # Public config
        self.public_base_url = os.environ.get("PUBLIC_BASE_URL", "http://localhost:3000").rstrip("/")
        self.max_concurrent_generations = int(os.environ.get("MAX_CONCURRENT_GENERATIONS", "4"))

    def _build_database_url(self) -> str:
        """Build async database URL with password from secrets."""
        base_url = os.environ.get(
            "DATABASE_URL", "postgresql+asyncpg://postgres@localhost:5432/postgres"
        )
        try:
            password = _read_secret("POSTGRES_PASSWORD")
            # Insert password into URL: postgresql+asyncpg://user@host → user:pass@host
            if "://" in base_url and "@" in base_url:
                scheme_user, rest = base_url.split("@", 1)
                if ":" not in scheme_user.split("://")[1]:
                    base_url = f"{scheme_user}:{password}@{rest}"
        except ValueError:
            logger.warning("POSTGRES_PASSWORD not set, using DATABASE_URL as-is")
        return base_url

    @property
    def supabase_service_role_key(self) -> str:
        if self._supabase_service_role_key is None:
            self._supabase_service_role_key = _read_secret("SUPABASE_SERVICE_ROLE_KEY")
        return self._supabase_service_role_key

    @property
    def gemini_api_key(self) -> str:
        if self._gemini_api_key is None:
            self._gemini_api_key = _read_secret("GEMINI_API_KEY")
        return self._gemini_api_key

    @property
    def firebase_issuer(self) -> str:
        return f"https://securetoken.google.com/{self.firebase_project_id}"


settings = Settings()
