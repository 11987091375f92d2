# tests/test_sqlite_store.py

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from whistle_notify.core.errors import InvalidInterest, NotFound, RemoteUnavailable
from whistle_notify.core.reconciler import reconcile
from whistle_notify.subscriptions.sqlite_store import SqliteSubscriptionStore


def test_create_list_delete(tmp_path: Path) -> None:
    store = SqliteSubscriptionStore(tmp_path / "subs.sqlite3")

    sub = store.create_subscription_sync("Jazz", notification_template="{interest}!")
    assert sub.interest == "Jazz"
    assert sub.subscription_id
    assert sub.render_alert() == "Jazz!"
    assert store.count_subscriptions() == 1

    listed = store.list_subscriptions_sync()
    assert [s.subscription_id for s in listed] == [sub.subscription_id]
    assert listed[0].sound == "default"
    assert listed[0].record_type == "Whistles"
    assert store.list_for_interest("Jazz") == listed
    assert store.list_for_interest("Rock") == []

    store.delete_subscription_sync(sub.subscription_id)
    assert store.count_subscriptions() == 0


def test_delete_unknown_id_raises_not_found(tmp_path: Path) -> None:
    store = SqliteSubscriptionStore(tmp_path / "subs.sqlite3")
    with pytest.raises(NotFound):
        store.delete_subscription_sync("missing")


@pytest.mark.parametrize("bad", ["", "   ", None, "Rock ", "  Jazz"])
def test_create_rejects_invalid_interest(tmp_path: Path, bad) -> None:
    store = SqliteSubscriptionStore(tmp_path / "subs.sqlite3")
    with pytest.raises(InvalidInterest):
        store.create_subscription_sync(bad)
    assert store.count_subscriptions() == 0


def test_unopenable_database_is_remote_unavailable(tmp_path: Path) -> None:
    # A directory cannot be opened as a database file.
    with pytest.raises(RemoteUnavailable):
        SqliteSubscriptionStore(tmp_path)


def test_old_schema_gets_missing_columns(tmp_path: Path) -> None:
    db = tmp_path / "subs.sqlite3"
    conn = sqlite3.connect(str(db))
    conn.execute("CREATE TABLE subscriptions (id TEXT PRIMARY KEY, interest TEXT NOT NULL, notification_template TEXT NOT NULL)")
    conn.execute("INSERT INTO subscriptions VALUES ('old', 'Rock', 'hey {interest}')")
    conn.commit()
    conn.close()

    store = SqliteSubscriptionStore(db)

    (sub,) = store.list_subscriptions_sync()
    assert sub.subscription_id == "old"
    assert sub.sound == "default"
    assert sub.render_alert() == "hey Rock"


@pytest.mark.asyncio
async def test_reconcile_against_sqlite_store(tmp_path: Path) -> None:
    store = SqliteSubscriptionStore(tmp_path / "subs.sqlite3")
    store.create_subscription_sync("Rock")

    result = await reconcile({"Rock", "Jazz"}, store)

    assert (result.deleted, result.created, result.failures) == (1, 2, [])
    subs = await store.list_subscriptions()
    assert sorted(s.interest for s in subs) == ["Jazz", "Rock"]
    assert all(s.render_alert().startswith("There's a new whistle in the ") for s in subs)


@pytest.mark.asyncio
async def test_padded_interest_never_doubles_up_a_subscription(tmp_path: Path) -> None:
    store = SqliteSubscriptionStore(tmp_path / "subs.sqlite3")

    result = await reconcile({"Rock", "Rock "}, store)

    assert result.created == 1
    (failure,) = result.failures
    assert failure.target == "Rock "
    assert failure.kind == "invalid_interest"
    subs = await store.list_subscriptions()
    assert [s.interest for s in subs] == ["Rock"]
