"""Cooperative cancellation for awaitables driven by an ``asyncio.Event``."""

from __future__ import annotations

import asyncio
import inspect
from contextlib import suppress
from typing import Awaitable, TypeVar

from reelarr.domain.providers.exceptions import OperationCancelledError

T = TypeVar("T")


def raise_if_cancelled(cancel: asyncio.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        raise OperationCancelledError("operation cancelled by caller")


async def run_cancellable(awaitable: Awaitable[T], cancel: asyncio.Event | None) -> T:
    """Await *awaitable* unless *cancel* fires first.

    When the event is set before the awaitable completes, the underlying
    task is cancelled and ``OperationCancelledError`` is raised.
    """
    if cancel is None:
        return await awaitable

    if cancel.is_set():
        if inspect.iscoroutine(awaitable):
            awaitable.close()
        raise OperationCancelledError("operation cancelled by caller")

    task = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(cancel.wait())
    try:
        await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not task.done():
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

    if task.cancelled():
        raise OperationCancelledError("operation cancelled by caller")
    return task.result()
