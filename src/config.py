import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT: str = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def _database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    user = os.getenv("POSTGRES_USER", "postgres")
    password = os.getenv("POSTGRES_PASSWORD", "postgres")
    db = os.getenv("POSTGRES_DB_URL", "localhost:5432/club")
    return f"postgresql+asyncpg://{user}:{password}@{db}"


@dataclass(frozen=True)
class Settings:
    """Application configuration read from the environment (and `.env`)."""

    database_url: str = field(default_factory=_database_url)
    sql_echo: bool = field(
        default_factory=lambda: os.getenv("SQL_ECHO", "false").lower() == "true"
    )
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    default_match_duration: int = field(
        default_factory=lambda: int(os.getenv("DEFAULT_MATCH_DURATION", "90"))
    )
    default_match_type: str = field(
        default_factory=lambda: os.getenv("DEFAULT_MATCH_TYPE", "Doubles")
    )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
