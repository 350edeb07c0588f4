# src/tasktracker/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing is required at import time; every key has a default.
- Local overrides go to .env or an untracked config_local.py.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_PREFIX = "TASKTRACKER"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %s", name, raw, default)
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_path: Path

    # ---- Repository tuning ----
    history_limit: int

    # ---- Connector flags ----
    console_enabled: bool

    @staticmethod
    def from_env() -> Settings:
        app_name = _env(_k("APP_NAME"), "tasktracker").strip() or "tasktracker"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/tasktracker"))
        tasks_path = _env_path(_k("TASKS_PATH"), data_dir / "tasks.csv")

        history_limit = max(0, _env_int(_k("HISTORY_LIMIT"), 0))
        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            tasks_path=tasks_path,
            history_limit=history_limit,
            console_enabled=console_enabled,
        )


def _apply_local_overrides(settings: Settings) -> None:
    """Apply safe overrides from an optional, untracked config_local.py."""
    try:
        import config_local as _config_local  # type: ignore
    except ModuleNotFoundError:
        return

    # Keep it explicit: only these names are honoured.
    if hasattr(_config_local, "CONSOLE_ENABLED"):
        object.__setattr__(settings, "console_enabled", bool(_config_local.CONSOLE_ENABLED))
    if hasattr(_config_local, "HISTORY_LIMIT"):
        object.__setattr__(settings, "history_limit", max(0, int(_config_local.HISTORY_LIMIT)))
    if hasattr(_config_local, "TASKS_PATH"):
        object.__setattr__(settings, "tasks_path", Path(_config_local.TASKS_PATH).expanduser())


SETTINGS = Settings.from_env()
_apply_local_overrides(SETTINGS)


def get_settings() -> Settings:
    return SETTINGS
