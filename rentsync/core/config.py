"""Configuration settings for the rentsync service.

Wraps environment variables and provides defaults.
"""

from typing import Optional

from pydantic import Field, PostgresDsn, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Pydantic settings class.

    Attributes:
    ----------
        PROJECT_NAME (str): The name of the project.
        LOCAL_DEVELOPMENT (bool): Whether the application is running locally.
            Switches log output from JSON to plain text.
        DEBUG (bool): Whether debug mode is enabled.
        LOG_LEVEL (str): The logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        POSTGRES_HOST (str): The PostgreSQL server hostname.
        POSTGRES_PORT (int): The PostgreSQL server port.
        POSTGRES_DB (str): The PostgreSQL database name.
        POSTGRES_USER (str): The PostgreSQL username.
        POSTGRES_PASSWORD (str): The PostgreSQL password.
        SQLALCHEMY_ASYNC_DATABASE_URI (Optional[PostgresDsn]): The SQLAlchemy async database URI.
        RUN_DB_CREATE_ALL (bool): Whether to create missing tables on startup.
        INGEST_SCHEDULER_ENABLED (bool): Whether the periodic ingest sweep runs in-process.
        INGEST_CHECK_INTERVAL_SECONDS (int): Seconds between two sweeps over due sources.
        INGEST_DEFAULT_SYNC_INTERVAL_SECONDS (int): Poll interval for sources without one.
        INGEST_HTTP_TIMEOUT_SECONDS (float): Timeout for every outbound upstream request.
        INGEST_TOKEN_EXPIRY_SKEW_SECONDS (int): Refresh tokens this long before they expire.
        INGEST_MAX_CONCURRENT_SOURCES (int): Max sources synced concurrently in one sweep.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    PROJECT_NAME: str = "rentsync"
    LOCAL_DEVELOPMENT: bool = False

    # Debug configuration
    DEBUG: bool = False

    # Logging configuration
    LOG_LEVEL: str = "INFO"

    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "rentsync"
    POSTGRES_USER: str = "rentsync"
    POSTGRES_PASSWORD: str = "rentsync"
    SQLALCHEMY_ASYNC_DATABASE_URI: Optional[PostgresDsn] = Field(
        default=None, validate_default=True
    )

    RUN_DB_CREATE_ALL: bool = False

    # Ingest configuration
    INGEST_SCHEDULER_ENABLED: bool = True
    INGEST_CHECK_INTERVAL_SECONDS: int = 30
    INGEST_DEFAULT_SYNC_INTERVAL_SECONDS: int = 3600
    INGEST_HTTP_TIMEOUT_SECONDS: float = 30.0
    INGEST_TOKEN_EXPIRY_SKEW_SECONDS: int = 300
    INGEST_MAX_CONCURRENT_SOURCES: int = 5

    @field_validator("SQLALCHEMY_ASYNC_DATABASE_URI", mode="before")
    def assemble_db_connection(cls, v: Optional[str], info: ValidationInfo) -> PostgresDsn:
        """Build the SQLAlchemy database URI.

        Args:
        ----
            v (Optional[str]): The value of the SQLALCHEMY_ASYNC_DATABASE_URI setting.
            info (ValidationInfo): The validation context containing all field values.

        Returns:
        -------
            PostgresDsn: The assembled SQLAlchemy async database URI.

        """
        if isinstance(v, str):
            return v

        return PostgresDsn.build(
            scheme="postgresql+asyncpg",
            username=info.data.get("POSTGRES_USER"),
            password=info.data.get("POSTGRES_PASSWORD"),
            host=info.data.get("POSTGRES_HOST", "localhost"),
            port=info.data.get("POSTGRES_PORT"),
            path=f"{info.data.get('POSTGRES_DB') or ''}",
        )


settings = Settings()
