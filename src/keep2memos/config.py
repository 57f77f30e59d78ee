"""Configuration module for the Keep to Memos importer."""

import logging
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.engine import URL

from keep2memos.exceptions import ConfigurationError, ErrorCode

# Load environment variables from the project root .env file, then from the
# working directory (values already set are not overridden).
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(_PROJECT_ROOT / ".env")
load_dotenv(Path.cwd() / ".env")


logger = logging.getLogger(__name__)

ENV_PREFIX = "KEEP2MEMOS_"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(ENV_PREFIX + name)
    if value is None or not value.strip():
        return default
    return value


def _env_path(name: str) -> Optional[Path]:
    value = _env(name)
    return Path(value) if value else None


class ImporterConfig(BaseModel):
    """Configuration for one import run."""

    # Directory with the per-note Keep JSON files and their attachments
    source_dir: Optional[Path] = Field(default_factory=lambda: _env_path("SOURCE_DIR"))
    # Which sync backend to use: the Memos HTTP API or direct database writes
    backend: Literal["api", "db"] = Field(
        default_factory=lambda: _env("BACKEND", "api").lower()
    )
    # Parallel note processing (1 = sequential)
    workers: int = Field(default_factory=lambda: _env("WORKERS", "1"))

    # API backend
    memos_url: Optional[str] = Field(default_factory=lambda: _env("MEMOS_URL"))
    memos_token: Optional[str] = Field(default_factory=lambda: _env("MEMOS_TOKEN"))
    # Seconds, applied to connect and read of every request
    request_timeout: float = Field(
        default_factory=lambda: _env("REQUEST_TIMEOUT", "30")
    )

    # Direct-store backend. database_url wins over the individual settings.
    database_url: Optional[str] = Field(default_factory=lambda: _env("DATABASE_URL"))
    db_driver: str = Field(default_factory=lambda: _env("DB_DRIVER", "mysql+pymysql"))
    db_host: Optional[str] = Field(default_factory=lambda: _env("DB_HOST"))
    db_port: int = Field(default_factory=lambda: _env("DB_PORT", "3306"))
    db_name: Optional[str] = Field(default_factory=lambda: _env("DB_NAME"))
    db_username: Optional[str] = Field(default_factory=lambda: _env("DB_USERNAME"))
    db_password: Optional[str] = Field(default_factory=lambda: _env("DB_PASSWORD"))
    # Memos user that owns the imported rows
    memos_user_id: Optional[int] = Field(default_factory=lambda: _env("MEMOS_USER_ID"))
    # Memos data directory and the resources path inside it
    memos_dir: Optional[Path] = Field(default_factory=lambda: _env_path("MEMOS_DIR"))
    memos_resources_path: str = Field(
        default_factory=lambda: _env("MEMOS_RESOURCES_PATH", "assets")
    )

    # Logging
    log_level: str = Field(default_factory=lambda: _env("LOG_LEVEL", "INFO").upper())
    log_dir: Optional[Path] = Field(default_factory=lambda: _env_path("LOG_DIR"))

    # Env defaults are raw strings, so they go through the same validation
    model_config = {"validate_assignment": True, "validate_default": True}

    @model_validator(mode="after")
    def _validate_limits(self) -> "ImporterConfig":
        """Reject settings that cannot work for any backend."""
        if self.workers < 1:
            raise ValueError("workers must be >= 1")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be > 0")
        if (
            self.workers > 1
            and self.backend == "db"
            and (self.database_url or "").startswith("sqlite")
        ):
            logger.warning(
                "SQLite allows a single writer; %d workers will mostly wait on locks",
                self.workers,
            )
        return self

    def validate_for_backend(self) -> None:
        """Check that every setting the selected backend needs is present.

        Raises:
            ConfigurationError: naming the first missing setting.
        """
        required = ["source_dir"]
        if self.backend == "api":
            required += ["memos_url", "memos_token"]
        else:
            if not self.database_url:
                required += ["db_host", "db_name", "db_username"]
            required += ["memos_user_id", "memos_dir"]

        for key in required:
            value = getattr(self, key)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ConfigurationError(
                    f"Missing '{key}' setting for the {self.backend} backend",
                    config_key=key,
                    code=ErrorCode.CONFIG_MISSING,
                )

        if not self.memos_resources_path.strip() and self.backend == "db":
            raise ConfigurationError(
                "Option 'memos_resources_path' is invalid",
                config_key="memos_resources_path",
            )

    def get_db_url(self) -> str:
        """Get the SQLAlchemy URL of the Memos database."""
        if self.database_url:
            return self.database_url
        url = URL.create(
            self.db_driver,
            username=self.db_username,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
            query={"charset": "utf8mb4"} if self.db_driver.startswith("mysql") else {},
        )
        return url.render_as_string(hide_password=False)

