"""
Application configuration using Pydantic Settings
"""
from typing import List
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    
    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    
    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    
    # Configured URL store: "redis" or "memory"
    URL_STORE_BACKEND: str = "memory"
    REDIS_URL: str = "redis://localhost:6379"
    
    # Gateway (upstream fetch)
    PROXY_TIMEOUT_SECONDS: float = 30.0
    PROXY_DEFAULT_USER_AGENT: str = "Mozilla/5.0"
    PROXY_DEFAULT_ACCEPT: str = "*/*"
    PROXY_DEFAULT_ACCEPT_LANGUAGE: str = "en"
    
    # Host allowlist for proxied targets. Only applied when
    # ENFORCE_PROXY_ALLOWLIST is true.
    # Example: ["example.com", "asia-south1.workflow.boltic.app"]
    ALLOWED_PROXY_DOMAINS: List[str] = []
    ENFORCE_PROXY_ALLOWLIST: bool = False
    
    # Embed watchdog (client side)
    EMBED_WATCHDOG_SECONDS: float = 15.0
    EMBED_CONFIG_PATH: str = "/proxy"
    EMBED_FRAME_PATH: str = "/proxy/frame"
    
    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance"""
    return Settings()


settings = get_settings()
