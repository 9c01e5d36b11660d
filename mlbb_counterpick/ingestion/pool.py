"""
Bounded-concurrency async work pool.

``BoundedWorkPool(limit).map(inputs, worker)`` runs ``worker(item, index)``
for every input with at most ``limit`` invocations in flight, and returns the
results in input order regardless of completion order.

Scheduling
----------
The pool starts ``min(limit, len(inputs))`` worker tasks that pull the next
index from a shared cursor. All workers run on one event loop, so the cursor,
the results list and the failure slot need no locking.

Failure policy
--------------
The first exception raised by ``worker`` is recorded and stops all further
scheduling. Invocations already in flight are drained (awaited, not
cancelled) so no straggler keeps mutating shared state after ``map`` returns;
then the first exception is re-raised. Exceptions raised by stragglers during
the drain are logged at DEBUG and dropped.

Cancelling the task awaiting ``map`` cancels every worker.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class BoundedWorkPool(Generic[T, R]):
    """Fixed-concurrency scheduler over an ordered list of inputs.

    Usage::

        pool = BoundedWorkPool(limit=8)
        results = await pool.map(heroes, lookup_one)

    Attributes:
        limit: Maximum number of ``worker`` invocations outstanding at once.
    """

    def __init__(self, limit: int) -> None:
        if limit < 1:
            raise ValueError(f"Pool limit must be >= 1, got {limit}.")
        self.limit = limit

    async def map(
        self,
        inputs: Sequence[T],
        worker: Callable[[T, int], Awaitable[R]],
    ) -> list[R]:
        """Run ``worker`` over ``inputs`` and return index-ordered results.

        Raises:
            Exception: The first exception raised by any ``worker`` call, after
                in-flight siblings have finished.
        """
        total = len(inputs)
        results: list[Any] = [None] * total
        if total == 0:
            return results

        cursor = 0
        first_error: Optional[BaseException] = None

        async def _run_worker() -> None:
            nonlocal cursor, first_error
            while first_error is None and cursor < total:
                index = cursor
                cursor += 1
                try:
                    results[index] = await worker(inputs[index], index)
                except Exception as exc:
                    if first_error is None:
                        first_error = exc
                        logger.debug("Pool worker failed on index %d: %r", index, exc)
                    else:
                        logger.debug(
                            "Pool worker failed on index %d after abort: %r", index, exc
                        )

        workers = [
            asyncio.create_task(_run_worker())
            for _ in range(min(self.limit, total))
        ]
        # Workers never raise Exception, so gather only fails on cancellation,
        # which it forwards to every child task.
        await asyncio.gather(*workers)

        if first_error is not None:
            raise first_error
        return results
