"""
Configuration management for the tenant auth service
"""
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Auth service configuration loaded from environment variables"""

    # Server Configuration
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "./logs"

    # Tenant Stores
    # Each tenant gets its own logical database; "{tenant}" is replaced by the
    # tenant identifier taken from the request path.
    TENANT_DATABASE_URL_TEMPLATE: str = "sqlite:///./data/{tenant}.db"

    # Session Tokens
    JWT_SECRET: str = ""
    JWT_SECRET_FILE: str = "/run/secrets/jwt_secret"
    JWT_ALGORITHM: str = "HS256"
    TOKEN_TTL_DAYS: int = 7

    # Admin registration secret
    ADMIN_KEY: Optional[str] = None

    # Single-tenant deployments serve /register, /login and /users/{id}
    # against this tenant.
    DEFAULT_TENANT: Optional[str] = None

    # Diagnostics
    DEV_MODE: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
