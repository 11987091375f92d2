# src/whistle_notify/core/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from .errors import InvalidInterest, SubscriptionError

Interest = str
# Opaque topic id (a genre name). Only membership matters.

DEFAULT_NOTIFICATION_TEMPLATE = "There's a new whistle in the {interest} genre."
DEFAULT_SOUND = "default"
DEFAULT_RECORD_TYPE = "Whistles"

LIST_TARGET = "*"


def validate_interest(interest: object) -> Interest:
    """
    Return the interest unchanged or raise InvalidInterest.

    Interests are stored exactly as given, so padded values are rejected
    rather than trimmed: "Rock " must never collapse onto "Rock".
    """
    if not isinstance(interest, str):
        raise InvalidInterest(f"interest must be a string, got {type(interest).__name__}")
    if not interest.strip():
        raise InvalidInterest("interest must not be empty")
    if interest != interest.strip():
        raise InvalidInterest(f"interest has surrounding whitespace: {interest!r}")
    return interest


def render_template(template: str, interest: Interest) -> str:
    # str.replace keeps stray braces in user templates harmless.
    return template.replace("{interest}", interest)


@dataclass(slots=True, frozen=True)
class Subscription:
    subscription_id: str
    interest: Interest
    notification_template: str = DEFAULT_NOTIFICATION_TEMPLATE
    sound: str = DEFAULT_SOUND
    record_type: str = DEFAULT_RECORD_TYPE
    created_at: float = 0.0

    def render_alert(self) -> str:
        return render_template(self.notification_template, self.interest)


@dataclass(slots=True)
class Whistle:
    """A newly created record that subscriptions fire on."""

    genre: str
    comments: str = ""
    record_id: str | None = None


class Operation(StrEnum):
    LIST = "list"
    DELETE = "delete"
    CREATE = "create"


@dataclass(slots=True, frozen=True)
class ReconcileFailure:
    operation: Operation
    target: str
    error: SubscriptionError

    @property
    def kind(self) -> str:
        return self.error.kind

    def describe(self) -> str:
        return f"{self.operation.value} {self.target}: {self.kind} ({self.error.message})"


@dataclass(slots=True)
class ReconcileResult:
    deleted: int = 0
    created: int = 0
    failures: list[ReconcileFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def failures_for(self, operation: Operation) -> list[ReconcileFailure]:
        return [f for f in self.failures if f.operation == operation]
