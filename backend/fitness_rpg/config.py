"""Application configuration from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment."""
    
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")
    
    # Database
    database_url: str = "sqlite:///./fitness_rpg.db"
    
    # Day boundaries for the daily workout cap (IANA name)
    timezone: str = "UTC"
    
    # Identity tokens (issued by the external auth provider)
    auth_enabled: bool = False
    auth_secret_key: str = "dev-secret-key-change-in-prod"
    auth_algorithm: str = "HS256"
    
    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"  # empty string disables the file handler
    
    # Frontend
    frontend_url: str = "http://localhost:5173"
    
    # App settings
    app_name: str = "Fitness RPG"
    debug: bool = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
