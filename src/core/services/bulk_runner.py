"""Concurrent fan-out of one async action per item.

Semantics:
- Every action is launched before any is awaited (no batching).
- `max_concurrency=None` means no cap; an int bounds how many actions run at once.
- The first observed failure decides the outcome (`AggregateBulkError`), but
  siblings are never cancelled: the runner lets them settle before raising, so
  their side effects are complete and nothing is left running when the event
  loop shuts down. The first failure is logged at WARNING as soon as it is
  observed, before the wait for siblings.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, TypeVar

from core.errors import AggregateBulkError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_all(
    items: Iterable[T],
    action: Callable[[T], Awaitable[object]],
    *,
    max_concurrency: int | None = None,
) -> None:
    items = list(items)
    if not items:
        return

    sem = asyncio.Semaphore(max_concurrency) if max_concurrency else None

    async def run_one(item: T) -> None:
        if sem is None:
            await action(item)
            return
        async with sem:
            await action(item)

    tasks = [asyncio.ensure_future(run_one(item)) for item in items]

    done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    first_error = next((t.exception() for t in tasks if t in done and t.exception()), None)
    if first_error is None:
        return

    logger.warning("Bulk action failed (%d still in flight): %s", len(pending), first_error)
    if pending:
        await asyncio.wait(pending)

    failed = sum(1 for t in tasks if t.exception() is not None)
    raise AggregateBulkError(first_error, failed=failed, total=len(tasks)) from first_error
