"""Application configuration."""
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    # Application
    APP_NAME: str = "Incident Teller"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    
    # Netdata alert source
    NETDATA_URL: str = "http://localhost:19999"
    NETDATA_HOSTNAME: str = "localhost"  # Used when an alarm carries no hostname
    NETDATA_TIMEOUT_SECONDS: float = 30.0
    NETDATA_RETRY_ATTEMPTS: int = 3
    
    # Analysis windows
    CORRELATION_WINDOW_SECONDS: int = 900  # 15 minutes
    CASCADE_WINDOW_SECONDS: int = 600  # 10 minutes
    MAX_ALTERNATIVE_CAUSES: int = 5
    
    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
