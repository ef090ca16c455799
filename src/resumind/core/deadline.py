from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _discard_outcome(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("Abandoned call finished with %s: %s", type(exc).__name__, exc)


async def race_deadline(
    awaitable: Awaitable[T],
    timeout_sec: float,
    on_timeout: Callable[[], Exception],
) -> T:
    """Await ``awaitable`` for at most ``timeout_sec`` seconds.

    The losing call is abandoned, not cancelled: it may still complete
    remotely, and its eventual result or exception is consumed by a done
    callback so it never surfaces as an unretrieved task error.
    """
    task = asyncio.ensure_future(awaitable)
    done, _ = await asyncio.wait({task}, timeout=timeout_sec)
    if task in done:
        return task.result()

    task.add_done_callback(_discard_outcome)
    raise on_timeout()
