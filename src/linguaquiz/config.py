"""Configuration settings for the learning core."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Define base directory
BASE_DIR = Path(__file__).parent.parent.parent

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# Learning settings
MASTERY_REWARD = 0.05  # added to mastery on a net-correct review
MASTERY_PENALTY = 0.2  # removed from mastery on a net-incorrect review
STREAK_LOOKBACK_DAYS = 365


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = os.getenv("DATABASE_URL", "sqlite:///linguaquiz.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


@dataclass
class GenerationSettings:
    """Generative backend settings."""
    api_key: str = os.getenv("GOOGLE_AI_API_KEY", "")
    model: str = os.getenv("GENERATION_MODEL", "gemini-2.0-flash")
    timeout: float = float(os.getenv("GENERATION_TIMEOUT", "30"))


@dataclass
class MonitoringSettings:
    """Prometheus exporter settings."""
    port: int = int(os.getenv("METRICS_PORT", "0"))  # 0 disables the exporter


@dataclass
class ResilienceSettings:
    """Circuit breaker, request queue and retry settings."""
    failure_threshold: int = int(os.getenv("BREAKER_FAILURE_THRESHOLD", "5"))
    reset_timeout: float = float(os.getenv("BREAKER_RESET_TIMEOUT", "30"))  # seconds
    concurrency: int = int(os.getenv("QUEUE_CONCURRENCY", "3"))
    rate_limit: int = int(os.getenv("QUEUE_RATE_LIMIT", "10"))
    interval: float = float(os.getenv("QUEUE_INTERVAL", "60"))  # seconds
    poll_delay: float = float(os.getenv("QUEUE_POLL_DELAY", "1"))  # seconds
    max_retries: int = int(os.getenv("GENERATION_MAX_RETRIES", "3"))
    initial_delay: float = float(os.getenv("GENERATION_INITIAL_DELAY", "1"))  # seconds


@dataclass
class LearningSettings:
    """Learning process settings."""
    mastery_reward: float = MASTERY_REWARD
    mastery_penalty: float = MASTERY_PENALTY
    streak_lookback_days: int = STREAK_LOOKBACK_DAYS
    default_question_count: int = int(os.getenv("DEFAULT_QUESTION_COUNT", "10"))
    default_difficulty: str = os.getenv("DEFAULT_DIFFICULTY", "medium")
    recent_attempts: int = 10
    recommendation_attempts: int = 20
    stats_window: int = 30
    weak_mastery: float = 0.6


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_generation_settings() -> GenerationSettings:
    """Get generation settings."""
    return GenerationSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


def get_resilience_settings() -> ResilienceSettings:
    """Get resilience settings."""
    return ResilienceSettings()


def get_learning_settings() -> LearningSettings:
    """Get learning settings."""
    return LearningSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    generation: GenerationSettings = field(default_factory=get_generation_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)
    resilience: ResilienceSettings = field(default_factory=get_resilience_settings)
    learning: LearningSettings = field(default_factory=get_learning_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if self.resilience.failure_threshold < 1:
            raise ValueError("BREAKER_FAILURE_THRESHOLD must be positive")

        if self.resilience.concurrency < 1:
            raise ValueError("QUEUE_CONCURRENCY must be positive")

        if self.resilience.rate_limit < 1:
            raise ValueError("QUEUE_RATE_LIMIT must be positive")

        if self.resilience.max_retries < 1:
            raise ValueError("GENERATION_MAX_RETRIES must be positive")

        if self.resilience.initial_delay < 0 or self.resilience.reset_timeout < 0:
            raise ValueError("Delays and timeouts cannot be negative")

        if self.learning.default_difficulty not in ("easy", "medium", "hard"):
            raise ValueError("DEFAULT_DIFFICULTY must be one of easy, medium, hard")


# Create global settings instance
settings = Settings()
settings.validate()
