"""
Environment configuration for the complaints management backend.
Uses Pydantic's settings management to handle environment variables
with proper type validation and default values.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Set, Union

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file if it exists
env_path = Path('.') / '.env'
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application configuration
    APP_NAME: str = Field(
        default="Government Complaints Service",
        validation_alias=AliasChoices("APP_NAME", "PROJECT_NAME"),
    )
    ENVIRONMENT: str = "production"
    DEBUG: bool = False

    # Database configuration - support both individual fields and DATABASE_URL
    DATABASE_URL: Optional[str] = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "postgres"
    DB_PASSWORD: str = "postgres"
    DB_NAME: str = "complaints"
    DB_POOL_SIZE: int = 20
    DB_POOL_OVERFLOW: int = 10
    DB_ECHO: bool = False
    DB_CONNECT_ARGS: Dict[str, Any] = {}
    DB_SLOW_QUERY_SECONDS: float = 0.5

    # File storage
    UPLOAD_DIR: str = "storage/uploads"
    MAX_UPLOAD_SIZE: int = Field(
        default=10485760,
        validation_alias=AliasChoices("MAX_UPLOAD_SIZE", "MAX_FILE_SIZE"),
    )
    ALLOWED_IMAGE_EXTENSIONS: Set[str] = {"jpg", "jpeg", "png", "gif", "webp"}

    # Complaint workflow rules
    COMPLAINT_LOCK_MINUTES: int = 480
    COMPLAINT_MAX_IMAGES: int = 5
    COMPLAINT_MAX_PDFS: int = 5
    TRACKING_NUMBER_PREFIX: str = "CMP"

    # Notifications
    # AUTH_VERIFICATION_BYPASS is the older name of the same switch
    NOTIFICATIONS_BYPASS_ENABLED: bool = Field(
        default=False,
        validation_alias=AliasChoices("NOTIFICATIONS_BYPASS_ENABLED", "AUTH_VERIFICATION_BYPASS"),
    )

    # Background jobs
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/1"
    LOCK_SWEEP_CRON_MINUTE: str = "0"
    LOCK_SWEEP_CRON_HOUR: str = "*"

    # Monitoring and logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"
    ENABLE_STRUCTURED_LOGGING: bool = True

    @field_validator('ALLOWED_IMAGE_EXTENSIONS', mode='before')
    @classmethod
    def parse_image_extensions(cls, v: Union[str, Set[str]]) -> Set[str]:
        """Parse ALLOWED_IMAGE_EXTENSIONS from a comma separated string"""
        if isinstance(v, str):
            return {ext.strip().lstrip('.').lower() for ext in v.split(",") if ext.strip()}
        return v

    @field_validator('LOG_LEVEL')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    def get_database_url(self) -> str:
        """Construct database URL from components or use provided URL"""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        return (
            f"postgresql+psycopg2://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    def notifications_suppressed(self) -> bool:
        """Notifications are skipped in bypass mode and in local environments"""
        return self.NOTIFICATIONS_BYPASS_ENABLED or self.ENVIRONMENT == "local"

    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
