# SPDX-FileCopyrightText: 2025 vulnscope contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Scoped periodic timers.

A timer lives exactly as long as the ``async with`` block that owns it. Leaving
the block, normally or through an exception or cancellation, cancels the
underlying task and waits for it, so no tick can fire after the scope exits.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager, suppress

logger = logging.getLogger(__name__)

TickCallback = Callable[[], "bool | None"]


async def _run_periodic(interval: float, callback: TickCallback, name: str) -> None:
    ticks = 0
    while True:
        await asyncio.sleep(interval)
        ticks += 1
        # Returning False (not None) from the callback ends the timer early.
        if callback() is False:
            logger.debug("timer %s finished after %d ticks", name, ticks)
            return


@asynccontextmanager
async def periodic(interval: float, callback: TickCallback, *, name: str = "periodic") -> AsyncIterator[asyncio.Task[None]]:
    """Run ``callback`` every ``interval`` seconds for the duration of the block."""
    if interval <= 0:
        raise ValueError(f"timer interval must be positive, got {interval!r}")
    task = asyncio.create_task(_run_periodic(interval, callback, name), name=name)
    try:
        yield task
    finally:
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task


__all__ = ["TickCallback", "periodic"]
