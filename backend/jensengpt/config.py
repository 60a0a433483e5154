"""
Configuration settings for JensenGPT backend.
Uses pydantic-settings for environment variable support.
"""

from pydantic_settings import BaseSettings
from typing import List, Optional
import os


_BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


class Settings(BaseSettings):
    """Application configuration settings."""

    # Application
    APP_NAME: str = "JensenGPT"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Database
    # File-backed so each session gets its own connection. An in-memory URL
    # (sqlite+aiosqlite:///:memory:) runs every session on one connection and
    # only suits single-session use such as tests.
    DATABASE_URL: str = f"sqlite+aiosqlite:///{os.path.join(_BASE_DIR, 'jensengpt.db')}"

    # Reject writes that reference conversations, branches or parent
    # messages that do not exist
    STRICT_REFERENCES: bool = True

    # Default LLM Settings (any OpenAI-compatible provider)
    LLM_API_BASE: str = "https://integrate.api.nvidia.com/v1"
    LLM_API_KEY: Optional[str] = None
    DEFAULT_MODEL_ID: str = "nvidia/llama-3.1-nemotron-ultra-253b-v1"
    LLM_TIMEOUT_SECONDS: float = 120.0

    # Sampling policy, fixed for every chat turn
    LLM_TEMPERATURE: float = 0.6
    LLM_TOP_P: float = 0.95
    LLM_MAX_TOKENS: int = 4096

    # Number of prior messages sent to the provider with each turn
    CONTEXT_WINDOW_MESSAGES: int = 10

    # Response cache TTLs (seconds)
    MESSAGE_CACHE_TTL: float = 10.0
    LISTING_CACHE_TTL: float = 30.0

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    CORS_ORIGINS: List[str] = ["*"]

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
