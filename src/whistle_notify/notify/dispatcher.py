# src/whistle_notify/notify/dispatcher.py

from __future__ import annotations

"""
Whistle dispatcher.

When a new whistle is recorded, every subscription watching its genre fires:
the subscription's template is rendered and handed to the messenger.
Transport details (room selection, formatting) belong to the connector.
"""

import logging
from dataclasses import dataclass, field

from ..core.models import Subscription, Whistle
from ..core.ports import OutboundMessenger, SubscriptionStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DispatchReport:
    matched: int = 0
    sent: int = 0
    failed: int = 0
    alerts: list[str] = field(default_factory=list)


def matching_subscriptions(subscriptions: list[Subscription], whistle: Whistle) -> list[Subscription]:
    genre = (whistle.genre or "").strip()
    return [s for s in subscriptions if s.interest == genre]


async def dispatch_whistle(
        whistle: Whistle,
        store: SubscriptionStore,
        messenger: OutboundMessenger,
) -> DispatchReport:
    report = DispatchReport()

    try:
        subscriptions = await store.list_subscriptions()
    except Exception:
        logger.exception("list_subscriptions failed; whistle genre=%s not dispatched", whistle.genre)
        return report

    matched = matching_subscriptions(subscriptions, whistle)
    report.matched = len(matched)

    for sub in matched:
        text = sub.render_alert()
        try:
            await messenger.send_text(text=text)
        except Exception:
            report.failed += 1
            logger.exception("Alert send failed subscription=%s", sub.subscription_id)
            continue
        report.sent += 1
        report.alerts.append(text)

    logger.info(
        "Whistle genre=%s matched=%d sent=%d failed=%d",
        whistle.genre,
        report.matched,
        report.sent,
        report.failed,
    )
    return report
