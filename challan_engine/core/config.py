"""
Configuration Management

Centralized configuration management using Pydantic Settings for type safety
and environment variable integration.
"""

from typing import Optional
from functools import lru_cache

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator


_ENV_CONFIG = {
    "env_file": ".env",
    "env_file_encoding": "utf-8",
    "case_sensitive": True,
    "extra": "ignore",
}


class DatabaseSettings(BaseSettings):
    """Database configuration settings"""

    DATABASE_URL: str = Field(default="sqlite:///./challans.db")

    # Connection pool settings (ignored for SQLite)
    DB_POOL_SIZE: int = Field(default=10)
    DB_MAX_OVERFLOW: int = Field(default=20)
    DB_POOL_RECYCLE: int = Field(default=3600)

    DB_ECHO: bool = Field(default=False)

    model_config = _ENV_CONFIG

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


class LoggingSettings(BaseSettings):
    """Logging configuration settings"""

    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="json")  # json or text
    LOG_FILE: Optional[str] = Field(default=None)
    LOG_RETENTION: int = Field(default=30)  # days

    ENABLE_STRUCTURED_LOGGING: bool = Field(default=True)
    LOG_SQL_QUERIES: bool = Field(default=False)

    model_config = _ENV_CONFIG

    @field_validator('LOG_LEVEL')
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'Log level must be one of {valid_levels}')
        return v.upper()

    @field_validator('LOG_FORMAT')
    @classmethod
    def validate_log_format(cls, v):
        if v not in ('json', 'text'):
            raise ValueError('Log format must be "json" or "text"')
        return v


class BillingSettings(BaseSettings):
    """Challan generation and collection settings"""

    # Students resolved in full by a preview before extrapolating
    PREVIEW_SAMPLE_SIZE: int = Field(default=5, ge=1)

    FIRST_CHALLAN_DUE_DAYS: int = Field(default=15, ge=0)
    DEFAULT_DUE_DAYS: int = Field(default=10, ge=0)

    BATCH_CHUNK_SIZE: int = Field(default=200, ge=1)
    MAX_BATCH_ERROR_MESSAGES: int = Field(default=100, ge=1)

    OVERDUE_CRITICAL_DAYS: int = Field(default=30, ge=0)
    REMINDER_WINDOW_DAYS: int = Field(default=7, ge=0)

    model_config = _ENV_CONFIG


class TaskSettings(BaseSettings):
    """Background task configuration"""

    CELERY_BROKER_URL: str = Field(default="redis://localhost:6379/1")
    CELERY_RESULT_BACKEND: str = Field(default="redis://localhost:6379/2")
    TASK_ALWAYS_EAGER: bool = Field(default=False)

    # Hour of day (server time) for the daily overdue sweep
    OVERDUE_SWEEP_HOUR: int = Field(default=1, ge=0, le=23)

    model_config = _ENV_CONFIG


class Settings(BaseSettings):
    """Main application settings"""

    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)

    PROJECT_NAME: str = Field(default="Challan Billing Engine")
    PROJECT_VERSION: str = Field(default="1.0.0")
    API_V1_STR: str = "/api/v1"

    database: DatabaseSettings = DatabaseSettings()
    logging: LoggingSettings = LoggingSettings()
    billing: BillingSettings = BillingSettings()
    tasks: TaskSettings = TaskSettings()

    model_config = _ENV_CONFIG

    @field_validator('ENVIRONMENT')
    @classmethod
    def validate_environment(cls, v):
        valid_envs = ['development', 'staging', 'production', 'testing']
        if v not in valid_envs:
            raise ValueError(f'Environment must be one of {valid_envs}')
        return v

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def is_testing(self) -> bool:
        return self.ENVIRONMENT == "testing"


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings"""
    return Settings()


# Global settings instance
settings = get_settings()
