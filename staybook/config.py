"""
Application configuration management
"""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Staybook"
    APP_VERSION: str = "1.0.0"
    APP_ENV: str = "development"
    DEBUG: bool = False  # Default to production-safe
    API_PREFIX: str = "/api/v1"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database
    DATABASE_URL: str  # Must be provided via environment

    @field_validator('DATABASE_URL')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if v.startswith('postgresql://'):
            v = v.replace('postgresql://', 'postgresql+asyncpg://', 1)
        return v
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 40
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600
    DB_ECHO: bool = False

    # JWT
    JWT_SECRET_KEY: str  # Must be provided via environment
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    # Token endpoint of the identity service that issues access tokens
    AUTH_TOKEN_URL: str = "https://auth.staybook.local/oauth/token"

    @field_validator('JWT_SECRET_KEY')
    @classmethod
    def validate_jwt_secret_key(cls, v: str) -> str:
        if not v or v == "your-secret-key-change-this-in-production":
            raise ValueError("JWT_SECRET_KEY must be set to a secure value")
        if len(v) < 32:
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters long")
        return v

    # Monitoring
    PROMETHEUS_ENABLED: bool = True
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"
    LOG_FILE: Optional[str] = "logs/app.log"

    # Booking
    # Applied to booking create/update transactions on PostgreSQL
    BOOKING_ISOLATION_LEVEL: Optional[str] = "SERIALIZABLE"

    @field_validator('BOOKING_ISOLATION_LEVEL')
    @classmethod
    def validate_isolation_level(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.upper().replace("_", " ")
        allowed = {"READ COMMITTED", "REPEATABLE READ", "SERIALIZABLE"}
        if v not in allowed:
            raise ValueError(f"BOOKING_ISOLATION_LEVEL must be one of {sorted(allowed)}")
        return v

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    @property
    def is_testing(self) -> bool:
        return self.APP_ENV == "testing"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


# Create global settings instance
settings = Settings()
