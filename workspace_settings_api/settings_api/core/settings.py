from __future__ import annotations

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Process configuration read from the environment (and .env).

    Not to be confused with the per-company key/value settings this service
    stores; database connection options live in settings_api.db.config.
    """

    APP_NAME: str = Field(default="Workspace Settings API")
    APP_DESCRIPTION: str = Field(
        default=(
            "Backend API for scoped (global, company and workspace) settings of a "
            "multi-tenant project-management platform."
        )
    )
    APP_VERSION: str = Field(default="0.1.0")
    APP_URL: str = Field(default="http://localhost:8000", description="Public base URL, used for OAuth redirect URIs")

    CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Comma-separated list or JSON array of allowed origins",
    )
    CORS_ALLOW_CREDENTIALS: bool = Field(default=True)
    CORS_ALLOW_METHODS: List[str] = Field(default_factory=lambda: ["*"])
    CORS_ALLOW_HEADERS: List[str] = Field(default_factory=lambda: ["*"])

    # Deployment mode
    IS_SAAS: bool = Field(
        default=True,
        description="SaaS mode keeps settings per company workspace; self-hosted collapses them to the company owner.",
    )
    IS_DEMO: bool = Field(default=False, description="Demo deployments also provision cookie consent defaults.")

    # Tokens are issued by the main application with the same secret
    JWT_SECRET_KEY: str = Field(default="change-me")
    JWT_ALGORITHM: str = Field(default="HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=60)

    RUN_MIGRATIONS_ON_STARTUP: bool = Field(default=True, description="Run 'alembic upgrade head' at startup")
    AUTO_SEED: bool = Field(
        default=False,
        description="Seed a superadmin, a company owner and default settings after migrations",
    )

    STORAGE_ROOT: str = Field(default="storage/app/public", description="Disk root for uploaded credential files")
    CACHE_DIR: str = Field(default="storage/framework", description="Directory reported and cleared by the cache page")

    HTTP_TIMEOUT_SECONDS: float = Field(default=15.0, ge=1.0, description="Timeout for Zoom/Slack/Telegram/Google calls")

    LOG_LEVEL: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        if isinstance(v, str):
            v = [p.strip() for p in v.split(",") if p.strip()]
        return v or ["*"]


# PUBLIC_INTERFACE
def get_app_settings() -> AppSettings:
    """
    Build AppSettings from the current environment.

    Not cached; IS_SAAS is read per request when resolving the settings scope.
    """
    return AppSettings()
