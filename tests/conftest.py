# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from whistle_notify.cli.bootstrap import create_initial_state
from whistle_notify.core.models import DEFAULT_NOTIFICATION_TEMPLATE
from whistle_notify.core.state import AppState


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the bootstrap and commands.

    A SimpleNamespace rather than the real config keeps tests independent
    of the environment and any local .env.
    """
    return SimpleNamespace(
        app_name="whistle-test",
        data_dir=tmp_path,
        subscriptions_db_path=tmp_path / "subscriptions.sqlite3",
        prefs_path=tmp_path / "my_genres.json",
        notification_template=DEFAULT_NOTIFICATION_TEMPLATE,
        reconcile_timeout_seconds=5.0,
        reconcile_concurrency=4,
        matrix_enabled=False,
    )


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    """AppState wired by the real bootstrap, backed by a per-test SQLite store."""
    return create_initial_state(settings=settings)
