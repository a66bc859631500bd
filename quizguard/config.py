"""
quizguard Configuration Settings

Monitoring defaults:
- Same-kind violations within 2s are suppressed
- 3 answers within 5s raise a fast-answering violation
- The countdown ticks once per second
"""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Configuration for the monitoring service."""

    # API Settings
    APP_NAME: str = "quizguard Monitoring Service"
    DEBUG: bool = True
    PORT: int = 8001

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False
    LOG_DIR: str = "logs"

    # Monitoring policy
    SUPPRESSION_WINDOW_MS: int = 2000
    FAST_ANSWER_WINDOW_MS: int = 5000
    FAST_ANSWER_THRESHOLD: int = 3
    TICK_INTERVAL_MS: int = 1000
    LOW_TIME_WARNING_SECONDS: int = 60

    # How long a stopped session stays queryable over HTTP
    SESSION_RETENTION_SECONDS: int = 60

    # Accepted skew between client event timestamps and the server clock
    TIMESTAMP_TOLERANCE_MS: int = 5000

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
