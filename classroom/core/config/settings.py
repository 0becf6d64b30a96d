from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    # Database settings
    DATABASE_URL: str = "sqlite:///./classroom.db"

    # JWT settings
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Object storage settings
    STORAGE_ROOT: str = "storage"
    STORAGE_PUBLIC_URL: str = "/storage"
    MAX_UPLOAD_SIZE: int = 10_485_760  # 10MB in bytes
    MAX_FILES_PER_UPLOAD: int = 5

    # Class registry settings
    CLASS_CODE_LENGTH: int = 6
    CLASS_CODE_MAX_ATTEMPTS: int = 10

    # Reporting settings
    AT_RISK_THRESHOLD: int = 3
    AUDIT_LOG_LIMIT: int = 100

    # API settings
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "Classroom API"
    DEBUG: bool = False
    CORS_ORIGINS: list = ["*"]

    # Rate limiting
    REDIS_URL: Optional[str] = None
    RATE_LIMIT_PER_MINUTE: int = 100

    # Logging
    LOG_DIR: str = "logs"

    # Bootstrap admin, created on startup when both are set
    DEFAULT_ADMIN_EMAIL: Optional[str] = None
    DEFAULT_ADMIN_PASSWORD: Optional[str] = None
    DEFAULT_ADMIN_NAME: str = "Administrator"

    class Config:
        env_file = ".env"
        case_sensitive = True

@lru_cache()
def get_settings() -> Settings:
    """
    Get settings instance with caching
    Returns:
        Settings instance
    """
    return Settings()
