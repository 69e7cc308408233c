# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# Environment-driven configuration for the intake API, read once through
# pydantic-settings and shared as the module-level `settings` object.
#
#   from app.config import settings
#   settings.STORAGE_BUCKET
#
# Values come from the process environment first, then from a .env file in
# the working directory when one exists.
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(raw: str, lower: bool = False) -> list[str]:
    """Comma-separated env value -> list, blanks dropped."""
    items = [part.strip() for part in raw.split(",") if part.strip()]
    return [item.lower() for item in items] if lower else items


class Settings(BaseSettings):
    """
    Intake API configuration.

    The three Supabase keys are mandatory; startup fails without them.
    Everything else has a development-friendly default.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
    )

    # -------------------------------------------------------------------------
    # Supabase backend
    # -------------------------------------------------------------------------

    SUPABASE_URL: str = Field(..., description="Project base URL, https://<ref>.supabase.co")
    SUPABASE_ANON_KEY: str = Field(..., description="Public key used by the dashboard")
    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="service_role key; the API writes with it and so bypasses RLS",
    )
    SUPABASE_JWT_SECRET: str = Field(
        default="",
        description="Shared HS256 secret for access tokens. Empty means verify via JWKS",
    )

    STORAGE_BUCKET: str = Field(
        default="client-files",
        min_length=1,
        description="Bucket for intake attachments and payment screenshots",
    )

    # Applied to PostgREST, Storage and the JWKS fetch alike
    REMOTE_CALL_TIMEOUT_SECONDS: int = Field(default=15, ge=1, le=300)

    # -------------------------------------------------------------------------
    # Intake limits
    # -------------------------------------------------------------------------

    MAX_FILES_PER_CLIENT: int = Field(default=5, ge=0, le=20)
    MAX_UPLOAD_SIZE_MB: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Per-file ceiling; a file of exactly this size is accepted",
    )
    ALLOWED_EXTENSIONS: str = Field(
        default=".pdf,.doc,.docx,.jpg,.jpeg,.png,.gif",
        description="Extensions accepted for client documents",
    )
    ALLOWED_SCREENSHOT_EXTENSIONS: str = Field(
        default=".jpg,.jpeg,.png,.gif,.webp,.pdf",
        description="Extensions accepted for the payment screenshot",
    )

    # -------------------------------------------------------------------------
    # Server
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = "development"
    DEBUG: bool = Field(default=False, description="Verbose logging and auto-reload")
    API_HOST: str = "0.0.0.0"
    API_PORT: int = Field(default=8000, ge=1, le=65535)
    CORS_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Dashboard origins allowed to call the API, comma-separated",
    )

    # -------------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        return _split_csv(self.CORS_ORIGINS)

    @property
    def allowed_extensions_list(self) -> list[str]:
        """Lower-cased, e.g. ".pdf, .PNG" -> [".pdf", ".png"]."""
        return _split_csv(self.ALLOWED_EXTENSIONS, lower=True)

    @property
    def allowed_screenshot_extensions_list(self) -> list[str]:
        return _split_csv(self.ALLOWED_SCREENSHOT_EXTENSIONS, lower=True)

    @property
    def max_upload_size_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """Build Settings once; later calls reuse the validated instance."""
    return Settings()


settings = get_settings()
