"""
Configuration management using Pydantic Settings
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str = "sqlite:///./quiz.db"

    # Trivia provider
    TRIVIA_API_URL: str = "https://opentdb.com/api.php"
    TRIVIA_TIMEOUT_SECONDS: float = 5.0

    # Application
    APP_NAME: str = "Quiz Leaderboard Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8080"]
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # Quiz Settings
    DEFAULT_QUESTION_COUNT: int = 10
    DEFAULT_LIST_LIMIT: int = 10
    DEFAULT_LEADERBOARD_LIMIT: int = 10

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
