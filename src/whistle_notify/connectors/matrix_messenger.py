# src/whistle_notify/connectors/matrix_messenger.py

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator

from nio import AsyncClient, RoomSendResponse

from .matrix_client import create_matrix_client

logger = logging.getLogger(__name__)


class MatrixDeliveryError(RuntimeError):
    pass


class MatrixMessenger:
    """OutboundMessenger that posts alerts as m.text events into one room."""

    def __init__(self, client: AsyncClient, room_id: str) -> None:
        self._client = client
        self._room_id = room_id

    async def send_text(self, *, text: str) -> None:
        resp = await self._client.room_send(
            room_id=self._room_id,
            message_type="m.room.message",
            content={"msgtype": "m.text", "body": text},
            ignore_unverified_devices=True,
        )
        if not isinstance(resp, RoomSendResponse):
            raise MatrixDeliveryError(f"room_send failed: {resp!r}")
        logger.debug("Alert sent to room %s event=%s", self._room_id, resp.event_id)


@contextlib.asynccontextmanager
async def open_matrix_messenger(settings) -> AsyncIterator[MatrixMessenger | None]:
    """Yield a ready MatrixMessenger, or None when Matrix is not usable."""
    room_id = (getattr(settings, "matrix_room", None) or "").strip()
    if not room_id:
        logger.error("Matrix room is not configured: set WHISTLE_MATRIX_ROOM")
        yield None
        return

    client = await create_matrix_client(settings)
    if client is None:
        yield None
        return

    try:
        yield MatrixMessenger(client, room_id)
    finally:
        await client.close()
