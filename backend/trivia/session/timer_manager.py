"""Manage round expiry timers for live sessions."""

from collections.abc import Awaitable, Callable
from datetime import datetime

import structlog

from trivia.logic.timer import RoundTimer

logger = structlog.get_logger()

# Callback type: (session_id, round_number) -> Awaitable[None]
ExpiryCallback = Callable[[str, int], Awaitable[None]]


class TimerManager:
    """Own one cancellable expiry timer per session.

    Timers are keyed by session id and tagged with the round number they were
    armed for, so the callback can tell a stale fire from a live one. The
    caller (SessionManager) decides what expiry means; this class only handles
    arming, firing and cancellation.
    """

    def __init__(self, on_expire: ExpiryCallback) -> None:
        self._timers: dict[str, RoundTimer] = {}
        self._on_expire = on_expire

    def has_timer(self, session_id: str) -> bool:
        """Check if a countdown is currently armed for a session."""
        timer = self._timers.get(session_id)
        return timer is not None and timer.is_active

    def get_timer(self, session_id: str) -> RoundTimer | None:
        return self._timers.get(session_id)

    @property
    def active_count(self) -> int:
        return sum(1 for timer in self._timers.values() if timer.is_active)

    def start(self, session_id: str, round_number: int, duration: float) -> datetime:
        """Arm the expiry countdown for a session's round and return the deadline."""
        self.cancel(session_id)
        timer = RoundTimer()
        self._timers[session_id] = timer

        async def fire() -> None:
            # drop the entry before the callback so round end does not cancel
            # the task that is running it
            if self._timers.get(session_id) is timer:
                del self._timers[session_id]
            timer.release()
            logger.info("round timer fired", session_id=session_id, round_number=round_number)
            await self._on_expire(session_id, round_number)

        return timer.start(duration, fire)

    def cancel(self, session_id: str) -> None:
        """Cancel and forget a session's countdown. No-op when none is armed."""
        timer = self._timers.pop(session_id, None)
        if timer is not None:
            timer.cancel()

    def cancel_all(self) -> None:
        """Cancel every armed countdown (server shutdown)."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
