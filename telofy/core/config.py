from typing import Generator, List
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session, declarative_base
from pydantic_settings import BaseSettings, SettingsConfigDict


# =====================================================================
# SETTINGS
# =====================================================================


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # App
    APP_NAME: str = "Telofy API"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database (PostgreSQL in production, SQLite file for local runs)
    DATABASE_URL: str = "sqlite:///./telofy.db"

    # JWT
    SECRET_KEY: str = "telofy-access-secret"
    REFRESH_SECRET_KEY: str = "telofy-refresh-secret"
    RESET_SECRET_KEY: str = "telofy-reset-secret"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60
    PASSWORD_RESET_URL: str = "https://telofy.ai/reset-password"

    CORS_ORIGINS: List[str] = [
        "https://telofy.ai",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Tracking rules
    DEFAULT_TIMEZONE: str = "America/Los_Angeles"
    PILLAR_WEIGHT_TOLERANCE: float = 0.01
    PILLAR_PROGRESS_WINDOW_DAYS: int = 7
    METRIC_REGRESSION_TOLERANCE: float = 0.05
    WEEKLY_STREAK_RULE: str = "per_day"  # per_day | aggregate
    CONCURRENCY_RETRY_ATTEMPTS: int = 3


settings = Settings()


# =====================================================================
# DATABASE
# =====================================================================


def enable_sqlite_foreign_keys(bind) -> None:
    """SQLite ignores ON DELETE rules unless the pragma is set per connection."""

    @event.listens_for(bind, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_engine(
    settings.DATABASE_URL,
    connect_args=(
        {"check_same_thread": False} if "sqlite" in settings.DATABASE_URL else {}
    ),
)
if engine.dialect.name == "sqlite":
    enable_sqlite_foreign_keys(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
