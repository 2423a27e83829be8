"""Dependency providers and settings management."""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.orm import Session

from .database import get_db
from .services.dataset_loader import DatasetLoader, SqlDatasetLoader
from .services.qa_service import QAService


class Settings(BaseSettings):
    """Application settings loaded from environment or .env."""

    BACKEND_CORS_ORIGINS: str = "http://localhost:3000"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    SENTRY_DSN: Optional[str] = None

    # Answer gateway: an AI gateway key wins over a direct OpenAI key
    AI_GATEWAY_API_KEY: Optional[str] = None
    VERCEL_AI_GATEWAY_API_KEY: Optional[str] = None
    AI_GATEWAY_BASE_URL: str = "https://ai-gateway.vercel.sh/v1"
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_CHAT_MODEL: Optional[str] = None
    AI_CHAT_MODEL: Optional[str] = None
    AI_TEMPERATURE: float = 0.2
    AI_MAX_OUTPUT_TOKENS: int = 260
    AI_TIMEOUT_SECONDS: float = 15.0

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.BACKEND_CORS_ORIGINS.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()  # type: ignore[call-arg]


def get_qa_service(request: Request) -> QAService:
    """The process-wide QAService built in create_app()."""
    return request.app.state.qa_service


def get_dataset_loader(db: Session = Depends(get_db)) -> DatasetLoader:
    """Dataset loader bound to the request's database session."""
    return SqlDatasetLoader(db)
