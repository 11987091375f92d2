# src/whistle_notify/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the subscription store, prefs file and reconciler into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.reconciler import SubscriptionReconciler
from ..core.state import AppState
from ..prefs.interest_prefs import InterestPrefs
from ..subscriptions.sqlite_store import SqliteSubscriptionStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.subscriptions_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.prefs_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    If settings is None, falls back to get_settings().
    The saved genre selection is loaded into state.my_genres.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    prefs = InterestPrefs(settings.prefs_path)
    state = AppState(
        settings=settings,
        store=SqliteSubscriptionStore(settings.subscriptions_db_path),
        prefs=prefs,
        reconciler=SubscriptionReconciler(
            notification_template=settings.notification_template,
            concurrency=settings.reconcile_concurrency,
        ),
        my_genres=prefs.load(),
    )
    return state
