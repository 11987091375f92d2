# src/whistle_notify/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..prefs.interest_prefs import InterestPrefs
from ..subscriptions.sqlite_store import SqliteSubscriptionStore
from .reconciler import SubscriptionReconciler


@dataclass
class AppState:
    # Settings object (real Settings or a test namespace).
    settings: Any

    store: SqliteSubscriptionStore
    prefs: InterestPrefs
    reconciler: SubscriptionReconciler

    # Current session selection; only grows until saved.
    my_genres: list[str] = field(default_factory=list)
