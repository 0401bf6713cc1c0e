from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL, make_url

# Driver used for each backend by the async engine and by Alembic offline mode
_ASYNC_DRIVERS = {"postgresql": "asyncpg", "sqlite": "aiosqlite"}


class Settings(BaseSettings):
    """
    Connection settings for the database holding the settings table.

    DATABASE_URL wins when set; otherwise a PostgreSQL URL is assembled from
    the POSTGRES_* variables.
    """

    DATABASE_URL: Optional[str] = Field(default=None, description="Full SQLAlchemy URL, any driver suffix")
    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_DB: Optional[str] = None
    POSTGRES_HOST: str = Field(default="localhost")
    POSTGRES_PORT: int = Field(default=5432)

    SQL_ECHO: bool = Field(default=False, description="Log every SQL statement")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    def _url(self) -> URL:
        if self.DATABASE_URL:
            return make_url(self.DATABASE_URL)
        if not (self.POSTGRES_USER and self.POSTGRES_PASSWORD and self.POSTGRES_DB):
            raise ValueError(
                "Database configuration missing: set DATABASE_URL, or POSTGRES_USER, "
                "POSTGRES_PASSWORD and POSTGRES_DB."
            )
        # URL.create quotes special characters in the password
        return URL.create(
            "postgresql",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_HOST,
            port=self.POSTGRES_PORT,
            database=self.POSTGRES_DB,
        )

    @property
    def async_database_url(self) -> str:
        """URL with the async driver (asyncpg or aiosqlite) the AsyncEngine needs."""
        url = self._url()
        backend = url.get_backend_name()
        driver = _ASYNC_DRIVERS.get(backend)
        if driver is not None:
            url = url.set(drivername=f"{backend}+{driver}")
        return url.render_as_string(hide_password=False)

    @property
    def sync_database_url(self) -> str:
        """URL without a driver suffix, for Alembic offline mode."""
        url = self._url()
        return url.set(drivername=url.get_backend_name()).render_as_string(hide_password=False)


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return database settings built from the environment."""
    return Settings()
