from pydantic_settings import BaseSettings
from functools import lru_cache
from pathlib import Path


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Short Links"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    BASE_URL: str = "http://localhost:8080"
    
    # Storage: "json", "sql" or "memory"
    STORAGE_BACKEND: str = "json"
    DATA_FILE: str = "url_data.json"
    ANALYTICS_FILE: str = "analytics_data.json"
    DATABASE_URL: str = "sqlite:///shortlinks.db"
    
    # Code Settings
    DEFAULT_CODE_LENGTH: int = 7
    MAX_CODE_ATTEMPTS: int = 100
    MIN_ALIAS_LENGTH: int = 3
    MAX_ALIAS_LENGTH: int = 20
    ALIAS_EXPIRY_DAYS: int = 30
    
    # Analytics
    RECENT_CLICKS_LIMIT: int = 10
    
    # Background sweep of expired aliases; 0 disables the timer
    CLEANUP_INTERVAL_SECONDS: int = 3600
    
    # HTTP
    CORS_ORIGINS: list[str] = ["*"]
    REDIRECT_STATUS_CODE: int = 301
    
    class Config:
        # Resolve backend/.env relative to this file so settings load correctly
        env_file = str(Path(__file__).resolve().parents[1] / ".env")
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
