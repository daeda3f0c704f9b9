from __future__ import annotations

from pydantic import Field, PostgresDsn, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MissingRequiredSettingsError(Exception):
    """Raised when required settings are missing."""

    def __init__(self, missing_fields: list[str]) -> None:
        """Initialize with list of missing field names."""
        self.missing_fields = missing_fields
        super().__init__(f"Missing required environment variables: {', '.join(missing_fields)}")


class InvalidSettingsError(Exception):
    """Raised when settings are invalid."""

    def __init__(self, invalid_fields: list[tuple[str, str]]) -> None:
        """Initialize with list of invalid field names and messages."""
        self.invalid_fields = invalid_fields
        summary = ", ".join(f"{field}: {message}" for field, message in invalid_fields)
        super().__init__(f"Invalid environment variables: {summary}")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database: either a full URL or the Postgres components it is built from
    database_url: str | None = Field(default=None, description="Database connection URL")
    postgres_user: str | None = Field(default=None, description="Postgres user")
    postgres_password: str | None = Field(default=None, description="Postgres password")
    postgres_host: str | None = Field(default=None, description="Postgres host")
    postgres_port: int | None = Field(default=None, description="Postgres port")
    postgres_db: str | None = Field(default=None, description="Postgres database name")

    # Rate limiting storage (Redis when configured, in-memory otherwise)
    redis_host: str | None = Field(default=None, description="Redis host")
    redis_port: int = Field(default=6379, description="Redis port")
    redis_db: int = Field(default=0, description="Redis database number")
    rate_limit_storage_url: str | None = Field(
        default=None,
        description="Rate limit storage URL",
    )

    # Collaborator credentials. Absence only fails the dependent endpoint at call time.
    openai_api_key: str | None = Field(default=None, description="OpenAI API key")
    gemini_api_key: str | None = Field(default=None, description="Google Gemini API key")
    anthropic_api_key: str | None = Field(default=None, description="Anthropic API key")
    groq_api_key: str | None = Field(default=None, description="Groq API key")
    brightdata_token: str | None = Field(default=None, description="BrightData API token")
    composio_api_key: str | None = Field(default=None, description="Composio API key")
    supabase_url: str | None = Field(default=None, description="Supabase project URL")
    supabase_service_key: str | None = Field(default=None, description="Supabase service key")

    # Collaborator endpoints and models
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    anthropic_base_url: str = "https://api.anthropic.com/v1/"
    groq_base_url: str = "https://api.groq.com/openai/v1"
    vision_model: str = "gemini-2.5-flash"
    embedding_model: str = "text-embedding-3-small"
    brightdata_api_url: str = "https://mcp.brightdata.com/api/tools/call"
    composio_api_url: str = "https://backend.composio.dev/api/v3"
    tikwm_api_url: str = "https://www.tikwm.com/api/"
    competitor_messages_url: str = "https://api.anthropic.com/v1/messages"
    competitor_model: str = "claude-sonnet-4-5-20250929"
    competitor_api_version: str = "2023-06-01"
    competitor_websearch_beta: str | None = None
    competitor_web_search_enabled: bool = True
    competitor_max_tokens: int = Field(default=1600, gt=0)
    http_timeout_seconds: float = Field(default=30.0, gt=0)

    # Indexing pipeline
    vector_default_collection: str = "user_default"
    indexing_max_attempts: int = Field(default=3, ge=1)
    indexing_retry_delay_seconds: float = Field(default=5.0, ge=0)

    # Optional environment variables (defaults provided)
    app_name: str = "ad-intelligence-api"
    environment: str = "local"
    log_level: str = "INFO"

    @model_validator(mode="after")
    def build_derived_urls(self) -> Settings:
        """Build URLs from components when missing."""
        if self.database_url is None:
            components = {
                "postgres_user": self.postgres_user,
                "postgres_password": self.postgres_password,
                "postgres_host": self.postgres_host,
                "postgres_port": self.postgres_port,
                "postgres_db": self.postgres_db,
            }
            missing = [name.upper() for name, value in components.items() if value is None]
            if missing:
                raise ValueError(
                    "DATABASE_URL must be set, or all of POSTGRES_USER, POSTGRES_PASSWORD, "
                    f"POSTGRES_HOST, POSTGRES_PORT, POSTGRES_DB (missing: {', '.join(missing)})"
                )
            self.database_url = str(
                PostgresDsn.build(
                    scheme="postgresql+asyncpg",
                    username=self.postgres_user,
                    password=self.postgres_password,
                    host=self.postgres_host,
                    port=self.postgres_port,
                    path=self.postgres_db,
                )
            )
        if self.rate_limit_storage_url is None:
            if self.redis_host:
                self.rate_limit_storage_url = (
                    f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"
                )
            else:
                self.rate_limit_storage_url = "memory://"
        return self


def validate_settings() -> Settings:
    """Validate settings and raise exception for missing or invalid fields.

    Raises:
        MissingRequiredSettingsError: If required environment variables are missing
        InvalidSettingsError: If environment variables hold invalid values
    """
    try:
        return Settings()
    except ValidationError as e:
        missing_fields: list[str] = []
        for error in e.errors():
            if error["type"] == "missing":
                field_name = error["loc"][0] if error["loc"] else "unknown"
                missing_fields.append(str(field_name).upper())

        if missing_fields:
            raise MissingRequiredSettingsError(missing_fields) from e

        invalid_fields: list[tuple[str, str]] = []
        for error in e.errors():
            field_path = ".".join(str(part) for part in error.get("loc", []))
            message = error.get("msg", "Invalid value")
            invalid_fields.append((field_path or "database_url", message))

        if invalid_fields:
            raise InvalidSettingsError(invalid_fields) from e

        raise


# Validate settings at import time.
# Exceptions will propagate to the importing module (e.g., adintel/main.py)
settings = validate_settings()
