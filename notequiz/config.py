from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Service
    HOST: str = '0.0.0.0'
    PORT: int = 8000
    ENVIRONMENT: str = 'development'
    LOG_LEVEL: str = 'INFO'
    CORS_ORIGIN: str = '*'

    # Generation
    QUIZ_PROVIDER_PRIORITY: str = 'gemini,ollama'
    QUIZ_MAX_QUESTIONS: int = 10
    QUIZ_NOTES_PER_BATCH: int = 20
    QUIZ_RETRY_ATTEMPTS: int = 1
    QUIZ_RETRY_MAX_WAIT: float = 10.0

    model_config = SettingsConfigDict(env_file='.env', case_sensitive=True, extra='ignore')

    @property
    def provider_priority(self) -> List[str]:
        return [p.strip().lower() for p in self.QUIZ_PROVIDER_PRIORITY.split(',') if p.strip()]


@lru_cache()
def get_settings() -> Settings:
    return Settings()
