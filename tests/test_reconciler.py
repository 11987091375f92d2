# tests/test_reconciler.py

from __future__ import annotations

import pytest

from whistle_notify.core.errors import NotFound, RemoteUnavailable
from whistle_notify.core.models import Operation, Subscription
from whistle_notify.core.reconciler import SubscriptionReconciler, reconcile, reconcile_sync

from .fakes import FakeSubscriptionStore


@pytest.mark.asyncio
async def test_existing_rock_desired_rock_and_jazz() -> None:
    store = FakeSubscriptionStore(["rock"])

    result = await reconcile({"rock", "jazz"}, store)

    assert result.deleted == 1
    assert result.created == 2
    assert result.failures == []
    assert result.ok
    assert store.interests() == ["jazz", "rock"]


@pytest.mark.asyncio
async def test_one_subscription_per_desired_interest() -> None:
    store = FakeSubscriptionStore(["rock", "rock", "pop", "metal"])
    desired = {"Blues", "Jazz", "Soul"}

    result = await reconcile(desired, store)

    assert result.ok
    assert result.deleted == 4
    subs = await store.list_subscriptions()
    assert len(subs) == len(desired)
    assert {s.interest for s in subs} == desired


@pytest.mark.asyncio
async def test_second_pass_keeps_same_interests_with_new_ids() -> None:
    store = FakeSubscriptionStore(["rock"])
    desired = {"rock", "jazz"}

    first = await reconcile(desired, store)
    ids_after_first = set(store.subs)
    second = await reconcile(desired, store)

    assert first.ok and second.ok
    assert second.deleted == 2
    assert second.created == 2
    assert store.interests() == ["jazz", "rock"]
    assert set(store.subs).isdisjoint(ids_after_first)


@pytest.mark.asyncio
async def test_empty_desired_set_clears_everything() -> None:
    store = FakeSubscriptionStore(["rock", "jazz"])

    result = await reconcile(set(), store)

    assert result.deleted == 2
    assert result.created == 0
    assert store.subs == {}


@pytest.mark.asyncio
async def test_list_failure_aborts_pass() -> None:
    store = FakeSubscriptionStore(["rock"])
    store.list_error = RemoteUnavailable("offline")

    result = await reconcile({"jazz"}, store)

    assert result.deleted == 0
    assert result.created == 0
    assert len(result.failures) == 1
    failure = result.failures[0]
    assert failure.operation == Operation.LIST
    assert failure.kind == "remote_unavailable"
    assert store.calls("delete") == []
    assert store.calls("create") == []
    assert store.interests() == ["rock"]


@pytest.mark.asyncio
async def test_invalid_interest_does_not_stop_other_creates() -> None:
    store = FakeSubscriptionStore()
    desired = {"rock", "jazz", "", "pop"}

    result = await reconcile(desired, store)

    assert result.created == 3
    assert len(result.failures) == 1
    failure = result.failures[0]
    assert failure.operation == Operation.CREATE
    assert failure.operation == "create"
    assert failure.target == ""
    assert failure.kind == "invalid_interest"
    assert store.interests() == ["jazz", "pop", "rock"]


@pytest.mark.asyncio
async def test_delete_of_vanished_subscription_is_recorded_not_fatal() -> None:
    store = FakeSubscriptionStore(["rock"])
    store.phantoms.append(Subscription(subscription_id="gone", interest="jazz"))

    result = await reconcile({"soul"}, store)

    assert result.deleted == 1
    assert result.created == 1
    assert len(result.failures) == 1
    failure = result.failures[0]
    assert failure.operation == Operation.DELETE
    assert failure.target == "gone"
    assert isinstance(failure.error, NotFound)
    assert store.interests() == ["soul"]


@pytest.mark.asyncio
async def test_delete_failure_still_creates_desired() -> None:
    store = FakeSubscriptionStore(["rock", "pop"])
    store.delete_errors["sub-2"] = RemoteUnavailable("flaky")

    result = await reconcile({"jazz"}, store)

    assert result.deleted == 1
    assert result.created == 1
    assert [f.target for f in result.failures_for(Operation.DELETE)] == ["sub-2"]
    # The stale subscription survives; it will be retried on the next pass.
    assert store.interests() == ["jazz", "pop"]


@pytest.mark.asyncio
async def test_unexpected_store_exception_is_wrapped() -> None:
    store = FakeSubscriptionStore()
    store.create_errors["rock"] = ValueError("boom")

    result = await reconcile({"rock"}, store)

    assert result.created == 0
    assert isinstance(result.failures[0].error, RemoteUnavailable)
    assert "ValueError" in result.failures[0].error.message


@pytest.mark.asyncio
async def test_all_deletes_finish_before_first_create() -> None:
    store = FakeSubscriptionStore(["a", "b", "c", "d"])
    store.delete_delay = 0.01

    result = await reconcile({"x", "y"}, store, concurrency=4)

    assert result.ok
    names = [name for name, _ in store.events]
    last_deleted = max(i for i, n in enumerate(names) if n == "deleted")
    first_create = names.index("create")
    assert last_deleted < first_create


@pytest.mark.asyncio
async def test_deletes_run_concurrently_within_limit() -> None:
    store = FakeSubscriptionStore([f"g{i}" for i in range(6)])
    store.delete_delay = 0.02

    reconciler = SubscriptionReconciler(concurrency=3)
    result = await reconciler.reconcile(set(), store)

    assert result.deleted == 6
    assert store.max_in_flight == 3


@pytest.mark.asyncio
async def test_creates_use_configured_template() -> None:
    store = FakeSubscriptionStore()
    reconciler = SubscriptionReconciler(notification_template="New {interest} drop!")

    await reconciler.reconcile({"Jazz"}, store)

    (sub,) = store.subs.values()
    assert sub.render_alert() == "New Jazz drop!"


@pytest.mark.asyncio
async def test_timeout_in_create_phase_returns_partial_result() -> None:
    store = FakeSubscriptionStore(["rock"])
    store.create_delay = 1.0

    result = await reconcile({"jazz", "pop"}, store, timeout=0.1)

    assert result.deleted == 1
    assert result.created == 0
    assert sorted(f.target for f in result.failures) == ["jazz", "pop"]
    assert {f.kind for f in result.failures} == {"timeout"}
    assert store.in_flight == 0


@pytest.mark.asyncio
async def test_timeout_in_delete_phase_never_starts_creates() -> None:
    store = FakeSubscriptionStore(["rock", "pop"])
    store.delete_delay = 1.0

    result = await reconcile({"jazz"}, store, timeout=0.1)

    assert result.deleted == 0
    assert result.created == 0
    assert store.calls("create") == []
    deletes = result.failures_for(Operation.DELETE)
    creates = result.failures_for(Operation.CREATE)
    assert sorted(f.target for f in deletes) == ["sub-1", "sub-2"]
    assert [f.target for f in creates] == ["jazz"]
    assert all(f.kind == "timeout" for f in result.failures)


@pytest.mark.asyncio
async def test_timeout_while_listing_is_the_single_fatal_failure() -> None:
    store = FakeSubscriptionStore(["rock"])
    store.list_delay = 1.0

    result = await reconcile({"jazz"}, store, timeout=0.05)

    assert (result.deleted, result.created) == (0, 0)
    assert len(result.failures) == 1
    assert result.failures[0].operation == Operation.LIST
    assert result.failures[0].kind == "timeout"


def test_reconcile_sync_runs_without_event_loop() -> None:
    store = FakeSubscriptionStore(["rock"])

    result = reconcile_sync(["rock", "jazz", "rock"], store)

    assert (result.deleted, result.created) == (1, 2)
    assert store.interests() == ["jazz", "rock"]
