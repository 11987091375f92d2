# src/whistle_notify/connectors/console_messenger.py

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


class ConsoleMessenger:
    """OutboundMessenger that prints alerts to the terminal."""

    def __init__(self, emit: Callable[[str], None] | None = None) -> None:
        self._emit = emit or print

    async def send_text(self, *, text: str) -> None:
        self._emit(f"[{_ts_local()}] [ALERT] {text}")
