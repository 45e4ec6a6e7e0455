"""Application configuration read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

_TRUTHY = ("1", "true", "yes")

DEFAULT_LISTENER_TIMEOUT = 30.0


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in _TRUTHY


def resolve_base_path() -> Path:
    """Project root: the working directory, or its parent when run from backend/."""
    cwd = Path.cwd()
    return cwd.parent if cwd.name == "backend" else cwd


@dataclass
class AppConfig:
    """Runtime configuration for a DocForge application.

    Attributes:
        database_url: SQLAlchemy URL of the document store
        schema_path: Directory holding schema YAML files
        environment: Deployment environment; "production" disables clear
        api_prefix: Path prefix for all collection routes
        listener_timeout: Seconds one emission step may take (None = unbounded)
        error_status_codes: Send real HTTP status codes with error envelopes
        dev_user: Fixed identity injected into every request (development only)
        cors_origins: Origins allowed by the CORS middleware
    """

    database_url: str = "sqlite:///:memory:"
    schema_path: Path = field(default_factory=lambda: Path("schemas"))
    environment: str = "development"
    api_prefix: str = "/api"
    listener_timeout: float | None = DEFAULT_LISTENER_TIMEOUT
    error_status_codes: bool = False
    dev_user: str | None = None
    cors_origins: list[str] = field(default_factory=list)

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> AppConfig:
        """Create config from environment variables.

        Database resolution order:
        1. DATABASE_URL env var
        2. DOCFORGE_DB_PATH env var (converted to a sqlite:/// URL)
        3. Default: sqlite:///{base_path}/data/docforge.db

        base_path defaults to the project root (see resolve_base_path), so
        the server and the CLI resolve the same database.
        """
        base = base_path or resolve_base_path()

        url = os.environ.get("DATABASE_URL")
        if not url:
            db_path = os.environ.get("DOCFORGE_DB_PATH")
            if db_path:
                url = f"sqlite:///{db_path}"
            else:
                url = f"sqlite:///{base / 'data' / 'docforge.db'}"

        schema_path = Path(os.environ.get("DOCFORGE_SCHEMA_PATH", base / "schemas"))

        timeout_raw = os.environ.get("DOCFORGE_LISTENER_TIMEOUT")
        listener_timeout: float | None = DEFAULT_LISTENER_TIMEOUT
        if timeout_raw is not None:
            try:
                listener_timeout = float(timeout_raw)
            except ValueError:
                raise ValueError(
                    f"DOCFORGE_LISTENER_TIMEOUT must be a number, got '{timeout_raw}'"
                ) from None
            if listener_timeout <= 0:
                listener_timeout = None

        origins = os.environ.get("DOCFORGE_CORS_ORIGINS", "")

        return cls(
            database_url=url,
            schema_path=schema_path,
            environment=os.environ.get("DOCFORGE_ENV", "development").lower(),
            api_prefix=os.environ.get("DOCFORGE_API_PREFIX", "/api").rstrip("/"),
            listener_timeout=listener_timeout,
            error_status_codes=_env_flag("DOCFORGE_ERROR_STATUS_CODES"),
            dev_user=os.environ.get("DOCFORGE_DEV_USER") or None,
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"
