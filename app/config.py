"""Application settings loaded from environment variables and .env."""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Runtime configuration.

    Every field can be overridden by an environment variable of the same name.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database
    DATABASE_URL: str = "sqlite:///./chatbot.db"

    # Auth
    JWT_SECRET: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_MINUTES: int = 60 * 24 * 7

    # Model backend (any OpenAI-compatible chat completions endpoint)
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_BASE_URL: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_TIMEOUT: float = 30.0

    # Chat context
    CHAT_CONTEXT_WINDOW: int = 20
    CHAT_HISTORY_LIMIT: int = 50
    CHAT_NATIVE_SYSTEM_ROLE: bool = False

    # Generation parameters
    CHAT_MAX_OUTPUT_TOKENS: int = 2048
    CHAT_TEMPERATURE: float = 0.7
    CHAT_TOP_P: float = 0.8
    # Sent only when set; plain OpenAI rejects top_k, Gemini accepts it
    CHAT_TOP_K: Optional[int] = None

    # Uploads
    UPLOAD_DIR: str = "uploads"
    MAX_FILE_SIZE: int = 10 * 1024 * 1024

    CORS_ORIGINS: list[str] = ["*"]
    LOG_LEVEL: str = "INFO"


settings = Settings()
