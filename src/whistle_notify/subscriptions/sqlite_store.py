# src/whistle_notify/subscriptions/sqlite_store.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import sqlite3
import time
import uuid
from collections.abc import Iterator
from pathlib import Path

from ..core.errors import NotFound, RemoteUnavailable
from ..core.models import (
    DEFAULT_NOTIFICATION_TEMPLATE,
    DEFAULT_RECORD_TYPE,
    DEFAULT_SOUND,
    Interest,
    Subscription,
    validate_interest,
)

logger = logging.getLogger(__name__)


class SqliteSubscriptionStore:
    """
    SQLite-backed SubscriptionStore.

    Stands in for the managed push backend during local runs and tests.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each method opens its own SQLite connection
    - async methods run the blocking work via asyncio.to_thread, so the
      reconciler can keep several operations in flight
    """

    def __init__(self, db_path: str | Path = "subscriptions.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_subscriptions()
        except Exception:
            total = -1
        logger.info("SubscriptionStore ready db=%s total=%s", self._db_path, total)

    @property
    def db_path(self) -> Path:
        return self._db_path

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    @contextlib.contextmanager
    def _conn(self) -> Iterator[sqlite3.Connection]:
        """Connection scope that reports SQLite failures as RemoteUnavailable."""
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            raise RemoteUnavailable(f"cannot open {self._db_path}: {e}") from e
        try:
            yield conn
        except sqlite3.Error as e:
            raise RemoteUnavailable(f"sqlite error: {e}") from e
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._conn() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS subscriptions (
                    id TEXT PRIMARY KEY,
                    interest TEXT NOT NULL,
                    notification_template TEXT NOT NULL,
                    sound TEXT NOT NULL DEFAULT 'default',
                    record_type TEXT NOT NULL DEFAULT 'Whistles',
                    created_at REAL NOT NULL
                )
                """
            )

            cur.execute("PRAGMA table_info(subscriptions)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE subscriptions ADD COLUMN {name} {decl}")
                logger.info("SubscriptionStore migration: added column %s", name)

            add_col("sound", "TEXT NOT NULL DEFAULT 'default'")
            add_col("record_type", "TEXT NOT NULL DEFAULT 'Whistles'")
            add_col("created_at", "REAL NOT NULL DEFAULT 0")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_subscriptions_interest ON subscriptions(interest)")
            conn.commit()

    @staticmethod
    def _row_to_subscription(row: sqlite3.Row) -> Subscription:
        return Subscription(
            subscription_id=str(row["id"]),
            interest=str(row["interest"]),
            notification_template=str(row["notification_template"] or DEFAULT_NOTIFICATION_TEMPLATE),
            sound=str(row["sound"] or DEFAULT_SOUND),
            record_type=str(row["record_type"] or DEFAULT_RECORD_TYPE),
            created_at=float(row["created_at"] or 0.0),
        )

    # ---- sync API ----

    def count_subscriptions(self) -> int:
        with self._conn() as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM subscriptions").fetchone()
            return int(n)

    def list_subscriptions_sync(self) -> list[Subscription]:
        with self._conn() as conn:
            rows = conn.execute("SELECT * FROM subscriptions ORDER BY created_at ASC, id ASC").fetchall()
            return [self._row_to_subscription(r) for r in rows]

    def list_for_interest(self, interest: Interest) -> list[Subscription]:
        with self._conn() as conn:
            rows = conn.execute(
                "SELECT * FROM subscriptions WHERE interest = ? ORDER BY created_at ASC, id ASC",
                (interest,),
            ).fetchall()
            return [self._row_to_subscription(r) for r in rows]

    def delete_subscription_sync(self, subscription_id: str) -> None:
        with self._conn() as conn:
            cur = conn.execute("DELETE FROM subscriptions WHERE id = ?", (str(subscription_id),))
            conn.commit()
            if cur.rowcount == 0:
                raise NotFound(f"subscription {subscription_id} does not exist")
        logger.debug("Subscription %s deleted", subscription_id)

    def create_subscription_sync(
        self,
        interest: Interest,
        *,
        notification_template: str = DEFAULT_NOTIFICATION_TEMPLATE,
        sound: str = DEFAULT_SOUND,
        record_type: str = DEFAULT_RECORD_TYPE,
    ) -> Subscription:
        value = validate_interest(interest)
        sub = Subscription(
            subscription_id=uuid.uuid4().hex,
            interest=value,
            notification_template=notification_template,
            sound=sound,
            record_type=record_type,
            created_at=time.time(),
        )
        with self._conn() as conn:
            conn.execute(
                """
                INSERT INTO subscriptions (id, interest, notification_template, sound, record_type, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    sub.subscription_id,
                    sub.interest,
                    sub.notification_template,
                    sub.sound,
                    sub.record_type,
                    sub.created_at,
                ),
            )
            conn.commit()
        logger.debug("Subscription %s created interest=%s", sub.subscription_id, sub.interest)
        return sub

    # ---- SubscriptionStore (async) ----

    async def list_subscriptions(self) -> list[Subscription]:
        return await asyncio.to_thread(self.list_subscriptions_sync)

    async def delete_subscription(self, subscription_id: str) -> None:
        await asyncio.to_thread(self.delete_subscription_sync, subscription_id)

    async def create_subscription(
        self,
        interest: Interest,
        *,
        notification_template: str = DEFAULT_NOTIFICATION_TEMPLATE,
    ) -> Subscription:
        return await asyncio.to_thread(
            self.create_subscription_sync,
            interest,
            notification_template=notification_template,
        )
