# src/whistle_notify/core/reconciler.py

from __future__ import annotations

"""
Subscription reconciler.

One pass brings the remote store in line with the desired interest set:
- list every existing subscription (the only fatal step),
- delete all of them, concurrently,
- once every delete has finished, create one subscription per desired interest, concurrently.

Per-item errors are collected into ReconcileResult.failures; the pass never raises.
The reconciler keeps no state between passes and touches nothing but the store.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable

from .errors import RemoteUnavailable, SubscriptionError, Timeout
from .models import (
    DEFAULT_NOTIFICATION_TEMPLATE,
    LIST_TARGET,
    Interest,
    Operation,
    ReconcileFailure,
    ReconcileResult,
)
from .ports import SubscriptionStore

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 8


def _as_error(exc: BaseException) -> SubscriptionError:
    if isinstance(exc, SubscriptionError):
        return exc
    if isinstance(exc, TimeoutError):
        return Timeout(str(exc) or "operation timed out")
    # Unknown store exception: report it as a backend failure instead of leaking it.
    return RemoteUnavailable(f"{type(exc).__name__}: {exc}")


class SubscriptionReconciler:
    """Delete-all / create-all reconciliation against a SubscriptionStore."""

    def __init__(
            self,
            *,
            notification_template: str = DEFAULT_NOTIFICATION_TEMPLATE,
            concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        self.notification_template = notification_template
        self.concurrency = max(1, int(concurrency))

    async def reconcile(
            self,
            desired_interests: Iterable[Interest],
            store: SubscriptionStore,
            *,
            timeout: float | None = None,
    ) -> ReconcileResult:
        """
        Run one reconciliation pass.

        desired_interests is the complete target set, not a delta.
        timeout (seconds) bounds the whole call; None or <= 0 means unbounded.
        On expiry, unfinished work is cancelled and reported as `timeout` failures.
        """
        loop = asyncio.get_running_loop()
        deadline = None
        if timeout is not None and timeout > 0:
            deadline = loop.time() + float(timeout)

        # Sorted for a deterministic create order; key=str tolerates non-string junk.
        interests = sorted(set(desired_interests), key=str)
        result = ReconcileResult()

        try:
            existing = await asyncio.wait_for(store.list_subscriptions(), timeout=self._remaining(deadline))
        except Exception as e:
            error = _as_error(e)
            result.failures.append(ReconcileFailure(Operation.LIST, LIST_TARGET, error))
            logger.warning("Reconcile aborted: list_subscriptions failed: %s", error.message)
            return result

        logger.debug(
            "Reconcile start existing=%d desired=%d timeout=%s",
            len(existing),
            len(interests),
            timeout,
        )

        result.deleted, timed_out = await self._run_phase(
            Operation.DELETE,
            [s.subscription_id for s in existing],
            store.delete_subscription,
            deadline,
            result,
        )

        async def create(interest: Interest) -> None:
            await store.create_subscription(interest, notification_template=self.notification_template)

        if timed_out:
            self._expire(Operation.CREATE, interests, result)
        else:
            result.created, _ = await self._run_phase(
                Operation.CREATE,
                interests,
                create,
                deadline,
                result,
            )

        for failure in result.failures:
            logger.warning("Reconcile failure: %s", failure.describe())
        logger.info(
            "Reconcile done deleted=%d created=%d failures=%d",
            result.deleted,
            result.created,
            len(result.failures),
        )
        return result

    async def _run_phase(
            self,
            operation: Operation,
            targets: list,
            call: Callable[..., Awaitable[object]],
            deadline: float | None,
            result: ReconcileResult,
    ) -> tuple[int, bool]:
        """
        Run `call(target)` for every target with bounded concurrency.

        Returns (successful calls, whether the deadline cut the phase short);
        failures are appended to result.
        The phase is over only when every call has finished or been cancelled.
        """
        if not targets:
            return 0, False

        remaining = self._remaining(deadline)
        if remaining is not None and remaining <= 0:
            self._expire(operation, targets, result)
            return 0, True

        sem = asyncio.Semaphore(self.concurrency)

        async def guarded(target) -> None:
            async with sem:
                await call(target)

        tasks = {asyncio.create_task(guarded(t)): t for t in targets}
        _done, pending = await asyncio.wait(tasks.keys(), timeout=remaining)

        if pending:
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        succeeded = 0
        for task, target in tasks.items():
            if task in pending or task.cancelled():
                error: SubscriptionError = Timeout("deadline expired")
            else:
                exc = task.exception()
                if exc is None:
                    succeeded += 1
                    continue
                error = _as_error(exc)
            result.failures.append(ReconcileFailure(operation, str(target), error))

        return succeeded, bool(pending)

    @staticmethod
    def _expire(operation: Operation, targets: list, result: ReconcileResult) -> None:
        # Deadline already spent: nothing in this phase may start.
        for target in targets:
            result.failures.append(
                ReconcileFailure(operation, str(target), Timeout("deadline expired before start"))
            )

    @staticmethod
    def _remaining(deadline: float | None) -> float | None:
        if deadline is None:
            return None
        return max(0.0, deadline - asyncio.get_running_loop().time())


async def reconcile(
        desired_interests: Iterable[Interest],
        store: SubscriptionStore,
        *,
        timeout: float | None = None,
        notification_template: str = DEFAULT_NOTIFICATION_TEMPLATE,
        concurrency: int = DEFAULT_CONCURRENCY,
) -> ReconcileResult:
    reconciler = SubscriptionReconciler(
        notification_template=notification_template,
        concurrency=concurrency,
    )
    return await reconciler.reconcile(desired_interests, store, timeout=timeout)


def reconcile_sync(
        desired_interests: Iterable[Interest],
        store: SubscriptionStore,
        *,
        timeout: float | None = None,
        reconciler: SubscriptionReconciler | None = None,
) -> ReconcileResult:
    """Blocking wrapper for callers without a running event loop (CLI)."""
    reconciler = reconciler or SubscriptionReconciler()
    return asyncio.run(reconciler.reconcile(desired_interests, store, timeout=timeout))
