"""
Application configuration using environment variables.
"""
from functools import lru_cache
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Social API"
    debug: bool = False
    environment: str = "development"

    # Security
    jwt_private_key: Optional[str] = None
    jwt_public_key: Optional[str] = None
    jwt_private_key_file: Optional[str] = None
    jwt_public_key_file: Optional[str] = None
    jwt_key_id: Optional[str] = None
    access_token_expire_minutes: int = 60  # 1 hour; 1440 for the long-lived profile
    bcrypt_rounds: int = 12
    allow_tier_selection: bool = True

    # Database
    database_url: str = "sqlite:///./social.db"
    db_timeout_seconds: int = 5

    # CORS
    cors_origins: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://localhost:8787",
    ]

    # Rate limiting
    login_rate_limit: str = "5/minute"
    register_rate_limit: str = "3/minute"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
