"""Per-user preferences saved by ``dojo-log config``.

The file is plain JSON. Keys that are missing, blank or of the wrong type
read back as unset, so a hand-edited file never stops the CLI from starting.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, replace
from pathlib import Path

logger = logging.getLogger(__name__)

USER_CONFIG_ENV = "DOJO_LOG_USER_CONFIG_PATH"


@dataclass(frozen=True)
class UserConfig:
    db_path: str | None = None
    locale: str | None = None
    dictation_timeout_seconds: float | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "UserConfig":
        timeout = data.get("dictation_timeout_seconds")
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            timeout = None
        return cls(
            db_path=_text(data.get("db_path")),
            locale=_text(data.get("locale")),
            dictation_timeout_seconds=float(timeout) if timeout is not None else None,
        )

    def to_dict(self) -> dict:
        return {key: value for key, value in asdict(self).items() if value is not None}


def _text(value) -> str | None:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def user_config_path() -> Path:
    override = os.environ.get(USER_CONFIG_ENV, "").strip()
    if override:
        return Path(override)
    if os.name == "nt":
        return Path(os.environ.get("APPDATA", str(Path.home() / "AppData" / "Roaming"))) / "dojo-log" / "config.json"
    xdg = os.environ.get("XDG_CONFIG_HOME", "").strip()
    return (Path(xdg) if xdg else Path.home() / ".config") / "dojo-log" / "config.json"


def load_user_config() -> UserConfig:
    path = user_config_path()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return UserConfig()
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable user config %s: %s", path, e)
        return UserConfig()
    return UserConfig.from_dict(data) if isinstance(data, dict) else UserConfig()


def save_user_config(config: UserConfig) -> Path:
    path = user_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.to_dict(), indent=2) + "\n", encoding="utf-8")
    return path


def update_user_config(**changes) -> UserConfig:
    """Merge *changes* into the saved preferences and write them back.

    An empty string clears a key.
    """
    cleaned = {key: (None if value == "" else value) for key, value in changes.items()}
    config = replace(load_user_config(), **cleaned)
    path = save_user_config(config)
    logger.info("Saved user config to %s", path)
    return config
