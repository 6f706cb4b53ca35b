"""Environment-variable-based configuration."""

import os
from pathlib import Path


def get_db_path() -> Path:
    """Return the database file path from DIARY_DB_PATH."""
    raw = os.environ.get("DIARY_DB_PATH", "~/.local/share/personal_diary/diary.db")
    return Path(raw).expanduser()


def get_database_url() -> str | None:
    """Return the PostgreSQL URL from DIARY_DATABASE_URL, if set."""
    return os.environ.get("DIARY_DATABASE_URL") or None


def get_user_id() -> str | None:
    """Return the current user from DIARY_USER_ID. Empty means unauthenticated."""
    return os.environ.get("DIARY_USER_ID", "local") or None


def get_log_level() -> str:
    """Return the logging level from DIARY_LOG_LEVEL."""
    return os.environ.get("DIARY_LOG_LEVEL", "WARNING")


def get_retry_attempts() -> int:
    """Return the storage retry budget from DIARY_RETRY_ATTEMPTS."""
    return int(os.environ.get("DIARY_RETRY_ATTEMPTS", "3"))


def get_retry_delay() -> float:
    """Return the delay between storage retries in seconds from DIARY_RETRY_DELAY."""
    return float(os.environ.get("DIARY_RETRY_DELAY", "1.0"))


def get_recent_cap() -> int:
    """Return the recent-access tracker capacity from DIARY_RECENT_CAP."""
    return int(os.environ.get("DIARY_RECENT_CAP", "10"))


def is_manager_mode() -> bool:
    """Return True if DIARY_MANAGER is set to TRUE."""
    return os.environ.get("DIARY_MANAGER", "").upper() == "TRUE"
