# src/whistle_notify/core/errors.py

from __future__ import annotations

"""
Error taxonomy for subscription store operations.

Stores raise these; the reconciler records them per item instead of
propagating. `kind` is the stable, serializable name used in reports.
"""


class SubscriptionError(Exception):
    kind = "error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.kind)
        self.message = message or self.kind


class RemoteUnavailable(SubscriptionError):
    """Transient transport/backend failure."""

    kind = "remote_unavailable"


class NotFound(SubscriptionError):
    """Delete target vanished (already satisfied)."""

    kind = "not_found"


class InvalidInterest(SubscriptionError):
    kind = "invalid_interest"


class Timeout(SubscriptionError):
    """The pass deadline expired before this item finished."""

    kind = "timeout"
