"""
Environment-driven settings for the Tasks API.

All configuration comes from environment variables with safe defaults, so the
service starts with an in-memory store and no external dependencies. Settings
are validated on construction; every problem found is reported at once.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import List, Optional

from sqlalchemy.engine import URL

from errors import ConfigurationError

VALID_BACKENDS = ("memory", "postgresql", "postgres", "pg")
DURABLE_BACKENDS = ("postgresql", "postgres", "pg")


class SettingsValidationError(ValueError):
    """Raised when one or more settings are invalid."""

    def __init__(self, errors: List[str]) -> None:
        self.errors = list(errors)
        super().__init__("Invalid settings: " + "; ".join(self.errors))


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int, errors: List[str]) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw.strip())
    except ValueError:
        errors.append(f"{name} must be an integer, got {raw!r}")
        return default


def _load_version() -> str:
    pyproject = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"
    try:
        with pyproject.open("rb") as fh:
            return str(tomllib.load(fh)["project"]["version"])
    except (OSError, KeyError, tomllib.TOMLDecodeError):
        return "0.0.0"


class Settings:
    """Snapshot of the process configuration."""

    def __init__(self) -> None:
        errors: List[str] = []

        self.VERSION = _load_version()
        self.SERVICE_NAME = os.getenv("SERVICE_NAME", "tasks-api")

        self.STORE_BACKEND = os.getenv("STORE_BACKEND", "memory").strip().lower()
        self.STORE_INIT_STRICT = _env_bool("STORE_INIT_STRICT", False)

        # Database (durable backend only)
        self.DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL") or None
        self.DB_HOST = os.getenv("DB_HOST", "localhost")
        self.DB_PORT = _env_int("DB_PORT", 5432, errors)
        self.DB_NAME = os.getenv("DB_NAME", "tasks")
        self.DB_USER = os.getenv("DB_USER", "postgres")
        self.DB_PASSWORD = os.getenv("DB_PASSWORD", "postgres")
        self.DB_POOL_SIZE = _env_int("DB_POOL_SIZE", 10, errors)
        self.DB_POOL_MAX_OVERFLOW = _env_int("DB_POOL_MAX_OVERFLOW", 0, errors)
        self.DB_POOL_TIMEOUT = _env_int("DB_POOL_TIMEOUT", 30, errors)

        # HTTP
        self.API_HOST = os.getenv("API_HOST", "0.0.0.0")
        self.API_PORT = _env_int("API_PORT", 3000, errors)
        self.CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

        self._validate(errors)

    def _validate(self, errors: List[str]) -> None:
        if self.STORE_BACKEND not in VALID_BACKENDS:
            errors.append(f"STORE_BACKEND must be one of {', '.join(VALID_BACKENDS)}, got {self.STORE_BACKEND!r}")
        if not 1 <= self.API_PORT <= 65535:
            errors.append(f"API_PORT must be between 1 and 65535, got {self.API_PORT}")
        if not 1 <= self.DB_PORT <= 65535:
            errors.append(f"DB_PORT must be between 1 and 65535, got {self.DB_PORT}")
        if self.DB_POOL_SIZE < 1:
            errors.append(f"DB_POOL_SIZE must be at least 1, got {self.DB_POOL_SIZE}")
        if self.DB_POOL_MAX_OVERFLOW < 0:
            errors.append(f"DB_POOL_MAX_OVERFLOW must not be negative, got {self.DB_POOL_MAX_OVERFLOW}")
        if self.DB_POOL_TIMEOUT < 0:
            errors.append(f"DB_POOL_TIMEOUT must not be negative, got {self.DB_POOL_TIMEOUT}")
        if errors:
            raise SettingsValidationError(errors)

    @property
    def durable(self) -> bool:
        return self.STORE_BACKEND in DURABLE_BACKENDS

    @property
    def database_url(self) -> str:
        """SQLAlchemy URL for the durable backend; DATABASE_URL wins when set."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return URL.create(
            "postgresql+psycopg2",
            username=self.DB_USER,
            password=self.DB_PASSWORD,
            host=self.DB_HOST,
            port=self.DB_PORT,
            database=self.DB_NAME,
        ).render_as_string(hide_password=False)


def get_settings() -> Settings:
    """Load settings, reporting an invalid environment as a ConfigurationError."""
    try:
        return Settings()
    except SettingsValidationError as e:
        raise ConfigurationError(str(e), data={"errors": e.errors}) from e
