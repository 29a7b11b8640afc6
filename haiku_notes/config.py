"""
Haiku Notes Backend: Application Configuration
===============================================

What:  Typed configuration loaded from environment variables (or a .env file).
How:   Pydantic Settings models, one per concern, each with its own env prefix.
       load_settings() builds them once at process start; the resulting
       Settings object is passed explicitly to create_app(). Nothing in the
       package reads configuration from module globals.
When:  Validated before the server binds its port. Missing database
       credentials abort startup.

Environment variables:
    API_HOST, API_PORT, API_READ_TIMEOUT, API_WRITE_TIMEOUT
    DB_HOST, DB_PORT, DB_DATABASE, DB_USER, DB_PASSWORD   (last three required)
    DB_URL, DB_POOL_SIZE, DB_MAX_OVERFLOW, DB_POOL_PRE_PING
    LOG_LEVEL, OWNER_SCOPED_NOTE_READS
"""

from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL

from haiku_notes.exceptions import ConfigurationError


class APISettings(BaseSettings):
    """HTTP server binding and per-request deadlines."""

    # "0.0.0.0" listens on every interface
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080, ge=1, le=65535)

    # Seconds allowed for the client to deliver a request body
    read_timeout: float = Field(default=30.0, gt=0)

    # Seconds allowed for a handler to produce its response
    write_timeout: float = Field(default=30.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="API_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


class DatabaseSettings(BaseSettings):
    """
    Relational store connection settings.

    database, user and password have no defaults: a deployment that forgets
    them fails at startup instead of on the first query.
    """

    host: str = Field(default="localhost")
    port: int = Field(default=5432, ge=1, le=65535)
    database: str = Field(min_length=1)
    user: str = Field(min_length=1)
    password: str = Field(min_length=1)

    # Full SQLAlchemy URL; when set it replaces the individual parts above
    url: Optional[str] = Field(default=None)

    # ── Pool ──────────────────────────────────────────────────────────────
    pool_size: int = Field(default=20, ge=1, le=100)
    max_overflow: int = Field(default=10, ge=0, le=50)
    pool_pre_ping: bool = Field(default=True)

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def sqlalchemy_url(self) -> str:
        """Async driver URL; credentials are escaped by URL.create."""
        if self.url:
            return self.url
        return URL.create(
            drivername="postgresql+asyncpg",
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
        ).render_as_string(hide_password=False)


class Settings(BaseSettings):
    """Top-level settings object handed to create_app()."""

    api: APISettings = Field(default_factory=APISettings)
    db: DatabaseSettings = Field(default_factory=DatabaseSettings)

    log_level: str = Field(default="INFO")

    # When False, GET /user/{user}/note/{note} looks the note up by id only
    owner_scoped_note_reads: bool = Field(default=True)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper


def load_settings() -> Settings:
    """
    Read and validate every setting from the environment.

    Raises:
        ConfigurationError: listing each missing or invalid variable.
    """
    try:
        return Settings()
    except ValidationError as e:
        problems = []
        for err in e.errors():
            field = ".".join(str(loc) for loc in err.get("loc", ()))
            problems.append(f"{field}: {err.get('msg', 'invalid value')}")
        raise ConfigurationError(
            message="Configuration validation failed:\n"
            + "\n".join(f"  - {p}" for p in problems),
            context={"errors": problems},
        ) from e
