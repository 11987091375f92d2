# src/whistle_notify/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .core.models import DEFAULT_NOTIFICATION_TEMPLATE

ENV_PREFIX = "WHISTLE"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


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
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
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

    # ---- Connector flags ----
    console_enabled: bool
    matrix_enabled: bool

    # ---- Reconciliation ----
    notification_template: str
    reconcile_timeout_seconds: float
    reconcile_concurrency: int

    # ---- Matrix ----
    matrix_homeserver: str
    matrix_user_id: str
    matrix_password: str
    matrix_room: Optional[str]

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    subscriptions_db_path: Path
    prefs_path: Path
    matrix_store_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "whistle").strip() or "whistle"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)
        matrix_enabled = _env_bool(_k("MATRIX_ENABLED"), False)

        notification_template = _env(_k("NOTIFICATION_TEMPLATE"), "") or DEFAULT_NOTIFICATION_TEMPLATE
        reconcile_timeout_seconds = _env_float(_k("RECONCILE_TIMEOUT"), 30.0)
        reconcile_concurrency = max(1, _env_int(_k("RECONCILE_CONCURRENCY"), 8))

        matrix_homeserver = _env(_k("MATRIX_HOMESERVER")).strip()
        matrix_user_id = _env(_k("MATRIX_USER_ID")).strip()
        matrix_password = _env(_k("MATRIX_PASSWORD")).strip()
        matrix_room = _env(_k("MATRIX_ROOM")).strip() or None

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/whistle"))
        subscriptions_db_path = _env_path(_k("SUBSCRIPTIONS_DB_PATH"), data_dir / "subscriptions.sqlite3")
        prefs_path = _env_path(_k("PREFS_PATH"), data_dir / "my_genres.json")
        matrix_store_path = _env_path(_k("MATRIX_STORE_PATH"), data_dir / "matrix_store")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            matrix_enabled=matrix_enabled,
            notification_template=notification_template,
            reconcile_timeout_seconds=reconcile_timeout_seconds,
            reconcile_concurrency=reconcile_concurrency,
            matrix_homeserver=matrix_homeserver,
            matrix_user_id=matrix_user_id,
            matrix_password=matrix_password,
            matrix_room=matrix_room,
            data_dir=data_dir,
            subscriptions_db_path=subscriptions_db_path,
            prefs_path=prefs_path,
            matrix_store_path=matrix_store_path,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
