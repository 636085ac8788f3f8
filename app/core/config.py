from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    app_name: str = "LectureLab"
    debug: bool = False
    environment: str = "development"  # development, production
    log_level: str = ""  # DEBUG, INFO, WARNING, ERROR, CRITICAL (empty = auto based on environment)
    log_to_file: bool = True  # Enable file logging
    slow_request_ms: float = 1000.0  # requests slower than this are logged as warnings

    # Database (SQLite for local dev, PostgreSQL for production)
    database_url: str = "sqlite:///./lecturelab.db"

    # Frontend
    frontend_url: str = "http://localhost:3000"

    # CORS (comma-separated origins, empty = local defaults)
    allowed_origins: str = ""

    # AI chat quota
    default_daily_chat_limit: int = 3
    quota_timezone: str = "UTC"  # Calendar used for the midnight rollover

    # Study progress
    activity_history_enabled: bool = True
    activity_history_limit: int = 50

    # True = conditional UPDATE / SELECT FOR UPDATE, False = legacy read-then-write
    strict_concurrency: bool = True

    # Rate limiting (per client address, independent of the chat quota)
    rate_limit_enabled: bool = True
    activity_rate_limit: str = "120/minute"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()

if settings.default_daily_chat_limit < 1:
    raise RuntimeError("DEFAULT_DAILY_CHAT_LIMIT must be at least 1.")
