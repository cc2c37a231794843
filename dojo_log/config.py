"""
Configuration constants for the dojo-log system.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from .user_config import load_user_config

DB_FILE = "dojo_log.db"

# History screens page through at most this many rows per query.
DEFAULT_LIST_LIMIT = 50

DEFAULT_LOCALE = "fr-FR"

# Hold-to-talk gestures are force-stopped after this many seconds.
DICTATION_TIMEOUT_SECONDS = 2.5

# A timed-out gesture waits this long for the engine's result before giving up.
DICTATION_STOP_GRACE_SECONDS = 5.0

# Form fields, in display order. All of them accept dictation.
FORM_FIELDS = ("technique_name", "notes", "teacher", "partner")

_DB_PATH_ENV = "DOJO_LOG_DB_PATH"
_LOCALE_ENV = "DOJO_LOG_LOCALE"
_DICTATION_TIMEOUT_ENV = "DOJO_LOG_DICTATION_TIMEOUT"


@dataclass
class Settings:
    db_path: Path
    locale: str = DEFAULT_LOCALE
    dictation_timeout_seconds: float = DICTATION_TIMEOUT_SECONDS
    list_limit: int = DEFAULT_LIST_LIMIT


def default_data_dir() -> Path:
    """Return the platform-appropriate directory holding the database."""
    if os.name == "nt":
        base = Path(os.environ.get("LOCALAPPDATA", str(Path.home() / "AppData" / "Local")))
        return base / "dojo-log"
    return Path.home() / ".local" / "share" / "dojo-log"


def _to_float_env(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def load_settings() -> Settings:
    """Resolve settings from environment, then user config, then defaults."""
    user = load_user_config()

    db_path = os.environ.get(_DB_PATH_ENV, "").strip() or user.db_path
    locale = os.environ.get(_LOCALE_ENV, "").strip() or user.locale or DEFAULT_LOCALE

    return Settings(
        db_path=Path(db_path).expanduser() if db_path else default_data_dir() / DB_FILE,
        locale=locale,
        dictation_timeout_seconds=_to_float_env(
            _DICTATION_TIMEOUT_ENV, user.dictation_timeout_seconds or DICTATION_TIMEOUT_SECONDS,
        ),
    )
