"""Application Configuration: env file loading and typed settings via pydantic-settings.

Invariants:
    - load_environment() never mutates os.environ: it returns a fresh mapping
    - Ambient environment values win over .env file values
    - Settings is populated from an injected mapping only (no hidden env reads)
    - get_settings() is cached (lru_cache): single instance per process

Design Decisions:
    - python-dotenv dotenv_values over load_dotenv: the file is read into a dict,
      so validation and tests work on a plain mapping (ADR: testability)
    - pydantic-settings for the typed view: aliases match the env var names,
      validators normalize user-provided values
"""

import os
from collections.abc import Mapping
from functools import lru_cache
from typing import Any

from dotenv import dotenv_values
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ENV_FILE = ".env"
DEFAULT_PORT = 3000
DEFAULT_CORS_ORIGIN = "http://localhost:5173"
DEFAULT_CLIENT_SSR_BASE_URL = "http://localhost:3000"


def load_environment(
    env_file: str | os.PathLike | None = DEFAULT_ENV_FILE,
    environ: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Read env_file as defaults, then overlay the ambient environment.

    A missing file yields no defaults. Keys declared without a value in the
    file (``KEY`` with no ``=``) are skipped.
    """
    values: dict[str, str] = {}
    if env_file is not None:
        values = {
            key: value
            for key, value in dotenv_values(env_file).items()
            if value is not None
        }
    values.update(os.environ if environ is None else environ)
    return values


def _split_origins(raw: Any) -> list[str]:
    """Normalize CORS origins: list, single origin, or comma-separated string."""
    if isinstance(raw, list):
        items = [str(x).strip() for x in raw]
    else:
        items = [p.strip() for p in str(raw).split(",")]
    return [x for x in items if x] or [DEFAULT_CORS_ORIGIN]


class Settings(BaseSettings):
    """Typed view of the process environment."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    # Database
    database_uri: str = Field(default="", alias="DATABASE_URI")

    # Tokens (signing material consumed by the auth layer)
    access_token_secret: str = Field(default="", alias="ACCESS_TOKEN_SECRET")
    refresh_token_secret: str = Field(default="", alias="REFRESH_TOKEN_SECRET")
    access_token_expiry: str = Field(default="", alias="ACCESS_TOKEN_EXPIRY")
    refresh_token_expiry: str = Field(default="", alias="REFRESH_TOKEN_EXPIRY")

    # Server runtime (uvicorn)
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=DEFAULT_PORT, alias="PORT")

    # Clients
    cors_origin: list[str] = Field(
        default_factory=lambda: [DEFAULT_CORS_ORIGIN], alias="CORS_ORIGIN",
    )
    client_ssr_base_url: str = Field(
        default=DEFAULT_CLIENT_SSR_BASE_URL, alias="CLIENT_SSR_BASE_URL",
    )

    # Email
    smtp_host: str = Field(default="", alias="SMTP_HOST")
    smtp_port: str = Field(default="", alias="SMTP_PORT")
    smtp_user: str = Field(default="", alias="SMTP_USER")
    smtp_pass: str = Field(default="", alias="SMTP_PASS")

    # Observability
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="text", alias="LOG_FORMAT")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (init_settings,)

    @classmethod
    def from_environment(cls, env: Mapping[str, str]) -> "Settings":
        """Build settings from an environment mapping; blank values fall back to defaults."""
        return cls(**{key: value for key, value in env.items() if value != ""})

    @field_validator("cors_origin", mode="before")
    @classmethod
    def _norm_cors_origin(cls, v: Any) -> list[str]:
        return _split_origins(v)

    @field_validator("log_level", mode="before")
    @classmethod
    def _norm_log_level(cls, v: Any) -> str:
        return str(v).strip().upper() or "INFO"

    @field_validator("log_format", mode="before")
    @classmethod
    def _norm_log_format(cls, v: Any) -> str:
        return str(v).strip().lower() or "text"


@lru_cache
def get_settings() -> Settings:
    return Settings.from_environment(load_environment())
