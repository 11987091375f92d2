# src/whistle_notify/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The reconciler and dispatcher depend on Protocols instead of concrete
backends. This keeps the subscription backend and the delivery transport
swappable and makes testing easier.
"""

from typing import Awaitable, Protocol

from .models import Interest, Subscription


class SubscriptionStore(Protocol):
    """
    Remote subscription backend (managed database / push service).

    Errors are reported with the exceptions from core.errors:
    - list_subscriptions: RemoteUnavailable
    - delete_subscription: NotFound, RemoteUnavailable
    - create_subscription: InvalidInterest, RemoteUnavailable
    """

    async def list_subscriptions(self) -> list[Subscription]: ...

    async def delete_subscription(self, subscription_id: str) -> None: ...

    async def create_subscription(
            self,
            interest: Interest,
            *,
            notification_template: str,
    ) -> Subscription: ...


class OutboundMessenger(Protocol):
    """
    Connector-side port: how the dispatcher delivers rendered alerts.

    The connector decides where the text goes (a room, a terminal, ...).
    """

    def send_text(self, *, text: str) -> Awaitable[None]: ...
