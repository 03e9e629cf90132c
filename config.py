"""
FastAPI Configuration Management

Pydantic-based settings for the user directory service.
Covers server, database, password hashing, form handling and logging.
"""

import os
import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional
from logging import Handler
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def setup_universal_logging(
    log_file: str = "logs/userdesk.log",
    log_level: str = "INFO",
    rotation_type: str = "size",
    rotation_when: str | None = None,
    rotation_interval: int = 1,
    max_bytes: int = 50 * 1024 * 1024,
    backup_count: int = 10,
) -> None:
    """
    Universal logging setup for the API process.

    Args:
        log_file: Path to log file (creates directory if needed)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        rotation_type: "size" for RotatingFileHandler, "time" for TimedRotatingFileHandler
    """
    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Remove all existing handlers to prevent duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    try:
        file_handler: Handler
        if rotation_type and rotation_type.lower() in ("time", "timed"):
            file_handler = TimedRotatingFileHandler(
                filename=log_file,
                when=rotation_when or "midnight",
                interval=rotation_interval,
                backupCount=backup_count,
                encoding="utf-8",
            )
        else:
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        file_handler.setLevel(getattr(logging, log_level.upper(), logging.INFO))
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)8s] %(name)s: %(message)s "
                "[%(filename)s:%(lineno)d in %(funcName)s()]"
            )
        )
        root_logger.addHandler(file_handler)
    except (OSError, IOError) as e:
        print(f"Warning: Could not setup file logging to {log_file}: {e}")

    # Console only shows warnings and errors
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    root_logger.addHandler(console_handler)

    verbose_loggers = [
        "sqlalchemy.engine",
        "sqlalchemy.pool",
        "aiosqlite",
        "passlib",
        "uvicorn.access",
    ]
    for logger_name in verbose_loggers:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    root_logger.info(
        f"Universal logging initialized. Log file: {log_file}, Level: {log_level}"
    )


class Settings(BaseSettings):
    """
    Application settings with automatic environment variable loading.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",
    )

    # === CORE APPLICATION METADATA ===
    APP_NAME: str = "Userdesk"
    APP_VERSION: str = "1.0.0"
    APP_DESCRIPTION: str = "User directory API: list, fetch, create, update and delete user accounts."
    DEBUG: bool = False
    TESTING: bool = False

    # Server configuration
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    # CORS and security
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8080"]
    ALLOWED_HOSTS: List[str] = ["localhost", "127.0.0.1"]
    API_DOCS_ENABLED: bool | None = None
    API_DOCS_URL: str = "/docs"
    API_REDOC_URL: str = "/redoc"
    API_OPENAPI_URL: str = "/openapi.json"

    # === DATABASE CONFIGURATION ===
    DATABASE_URL: str = "sqlite+aiosqlite:///./userdesk.db"
    DB_ECHO: bool = False  # Set to True for SQL query logging
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    DB_TYPE: str = "sqlite"  # sqlite or postgres
    DB_PATH: str = "userdesk.db"
    DB_USER: Optional[str] = None
    DB_PASSWORD: Optional[str] = None
    DB_HOST: Optional[str] = None
    DB_PORT: Optional[int] = None
    DB_NAME: Optional[str] = None
    DB_SSLMODE: Optional[str] = None

    # === USERS ===
    # passlib scheme names, first one is used for new hashes
    PASSWORD_HASH_SCHEMES: List[str] = ["bcrypt"]
    # Legacy clients expect 200 on form errors
    FORM_ERROR_STATUS_CODE: int = 400

    # === LOGGING ===
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/userdesk.log"
    LOG_MAX_SIZE: int = 50 * 1024 * 1024  # 50MB
    LOG_BACKUP_COUNT: int = 10
    # "size" or "time"
    LOG_ROTATION_TYPE: str = "size"
    LOG_ROTATION_WHEN: Optional[str] = "midnight"
    LOG_ROTATION_INTERVAL: int = 1

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("ALLOWED_HOSTS", mode="before")
    @classmethod
    def parse_allowed_hosts(cls, v):
        if isinstance(v, str):
            return [host.strip() for host in v.split(",")]
        return v

    @field_validator("PASSWORD_HASH_SCHEMES", mode="before")
    @classmethod
    def parse_password_hash_schemes(cls, v):
        if isinstance(v, str):
            return [scheme.strip() for scheme in v.split(",") if scheme.strip()]
        return v

    @field_validator("PASSWORD_HASH_SCHEMES")
    @classmethod
    def validate_password_hash_schemes(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("PASSWORD_HASH_SCHEMES must name at least one passlib scheme")
        return v

    @field_validator("FORM_ERROR_STATUS_CODE")
    @classmethod
    def validate_form_error_status(cls, v: int) -> int:
        if v != 200 and not 400 <= v < 500:
            raise ValueError("FORM_ERROR_STATUS_CODE must be 200 or a 4xx status code")
        return v

    @model_validator(mode="after")
    def validate_database_config(self):
        """Validate database configuration consistency and auto-construct DATABASE_URL."""
        if self.DB_TYPE == "postgres":
            if not self.DATABASE_URL.startswith("postgresql"):
                if not all([self.DB_USER, self.DB_PASSWORD, self.DB_HOST, self.DB_NAME]):
                    raise ValueError(
                        "For PostgreSQL, either provide DATABASE_URL or all of: "
                        "DB_USER, DB_PASSWORD, DB_HOST, DB_NAME"
                    )
                self.DATABASE_URL = self.get_postgresql_url()
        elif self.DB_TYPE == "sqlite":
            if not self.DATABASE_URL.startswith("sqlite"):
                self.DATABASE_URL = f"sqlite+aiosqlite:///./{self.DB_PATH or 'userdesk.db'}"

        return self

    def get_postgresql_url(self) -> str:
        """Get PostgreSQL database URL from configuration."""
        if not all([self.DB_USER, self.DB_PASSWORD, self.DB_HOST, self.DB_NAME]):
            raise ValueError("PostgreSQL configuration incomplete: missing DB_USER, DB_PASSWORD, DB_HOST, or DB_NAME")

        port = self.DB_PORT or 5432
        url = f"postgresql+asyncpg://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{port}/{self.DB_NAME}"

        if self.DB_SSLMODE:
            url += f"?sslmode={self.DB_SSLMODE}"

        return url

    def create_directories(self) -> None:
        """Create the log directory if it doesn't exist."""
        Path(self.LOG_FILE).parent.mkdir(parents=True, exist_ok=True)

    def setup_logging(self) -> None:
        """Initialize application logging."""
        setup_universal_logging(
            log_file=self.LOG_FILE,
            log_level=self.LOG_LEVEL,
            rotation_type=self.LOG_ROTATION_TYPE,
            rotation_when=self.LOG_ROTATION_WHEN,
            rotation_interval=self.LOG_ROTATION_INTERVAL,
            max_bytes=self.LOG_MAX_SIZE,
            backup_count=self.LOG_BACKUP_COUNT,
        )

    @property
    def environment(self) -> str:
        if self.TESTING:
            return "testing"
        return "development" if self.DEBUG else "production"


class DevelopmentSettings(Settings):
    """Development environment settings."""
    DEBUG: bool = True
    LOG_LEVEL: str = "DEBUG"
    HOST: str = "0.0.0.0"  # Allow external connections in dev
    CORS_ORIGINS: List[str] = ["*"]

    def init_dev_features(self) -> None:
        """Initialize development-specific features."""
        self.setup_logging()


class ProductionSettings(Settings):
    """Production environment settings."""
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    DB_ECHO: bool = False

    def init_production_features(self) -> None:
        """Initialize production-specific features."""
        self.setup_logging()


class TestingSettings(Settings):
    """Testing environment settings."""
    TESTING: bool = True
    DEBUG: bool = True
    DATABASE_URL: str = "sqlite+aiosqlite:///:memory:"
    LOG_LEVEL: str = "DEBUG"
    LOG_FILE: str = "logs/userdesk_test.log"
    ALLOWED_HOSTS: List[str] = ["localhost", "127.0.0.1", "testserver"]
    # pbkdf2 keeps the suite fast; bcrypt is covered by its own test
    PASSWORD_HASH_SCHEMES: List[str] = ["pbkdf2_sha256"]

    def init_test_features(self) -> None:
        """Initialize testing-specific features."""
        self.setup_logging()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings based on environment.
    Uses lru_cache to avoid recreating settings on every call.
    """
    env = os.getenv("FASTAPI_ENV", "development").lower()

    if env == "production":
        production_settings = ProductionSettings()
        production_settings.init_production_features()
        settings: Settings = production_settings
    elif env == "testing":
        testing_settings = TestingSettings()
        testing_settings.init_test_features()
        settings = testing_settings
    else:
        development_settings = DevelopmentSettings()
        development_settings.init_dev_features()
        settings = development_settings

    settings.create_directories()

    return settings
