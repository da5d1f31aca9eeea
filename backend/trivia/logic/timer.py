"""
Server-side round expiry timer.

A round gets one fixed countdown. When it runs out, the callback ends the round
with reason time_expired. Any other round end cancels the countdown first.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import structlog

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


class RoundTimer:
    """
    Manage the expiry countdown for a single round.

    The timer exposes the wall-clock deadline so clients can render a countdown.
    """

    def __init__(self) -> None:
        self._active_task: asyncio.Task[None] | None = None
        self._deadline: datetime | None = None

    @property
    def deadline(self) -> datetime | None:
        """Wall-clock instant at which the running countdown fires, or None."""
        return self._deadline

    @property
    def is_active(self) -> bool:
        return self._active_task is not None and not self._active_task.done()

    def start(self, duration: float, on_timeout: Callable[[], Awaitable[None]]) -> datetime:
        """Start the countdown and return its deadline. Restarting replaces any running countdown."""
        self.cancel()
        self._deadline = datetime.now(tz=UTC) + timedelta(seconds=duration)
        self._active_task = asyncio.create_task(self._run_timer(duration, on_timeout))
        return self._deadline

    def cancel(self) -> None:
        """Cancel the countdown so its callback never runs."""
        if self._active_task is not None and not self._active_task.done():
            self._active_task.cancel()
        self._active_task = None
        self._deadline = None

    def release(self) -> None:
        """
        Forget the running task without cancelling it.

        Used by the timeout callback itself, which executes inside the timer task;
        cancelling there would abort the callback halfway through.
        """
        self._active_task = None
        self._deadline = None

    async def _run_timer(self, seconds: float, on_timeout: Callable[[], Awaitable[None]]) -> None:
        try:
            await asyncio.sleep(seconds)
            await on_timeout()
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("round timer callback failed")
