from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings, read from the environment and an optional .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    PROJECT_NAME: str = "QuizHub"
    API_VERSION: str = "1.0.0"
    ENV: str = "dev"
    API_PREFIX: str = "/api"
    FRONTEND_URL: str = "http://localhost:5173"

    # single-file SQLite store unless a full URL is given
    DATABASE_URL: str = "sqlite:///./data/quizhub.sqlite"

    SECRET_KEY: str = "dev_secret"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: Optional[str] = "https://api.aimlapi.com/v1"
    OPENAI_MODEL: str = "google/gemma-3n-e4b-it"
    AI_TIMEOUT_SECONDS: float = 60.0

    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 3000
    LOG_LEVEL: str = "INFO"


settings = Settings()
