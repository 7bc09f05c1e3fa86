"""
Countdown Clock

One countdown per session. A background task advances the clock once per
tick interval; tick() can also be called directly to drive it step by step.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from constants import CLOCK_TICK_SECONDS

logger = logging.getLogger(__name__)


def format_time(seconds: int) -> str:
    """Format seconds as MM:SS."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


class Clock:
    """
    Countdown timer with per-tick and expiry callbacks.

    Usage:
        clock = Clock()
        clock.start(45, on_tick=show_remaining, on_expire=freeze_board)
        ...
        clock.stop()  # no callback fires after this
    """

    def __init__(self, tick_seconds: float = CLOCK_TICK_SECONDS) -> None:
        self.tick_seconds = tick_seconds
        self.remaining = 0
        self._on_tick: Optional[Callable[[int], None]] = None
        self._on_expire: Optional[Callable[[], None]] = None
        self._task: Optional[asyncio.Task] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(
        self,
        limit_seconds: int,
        on_tick: Callable[[int], None],
        on_expire: Callable[[], None],
    ) -> None:
        """Start counting down from ``limit_seconds``, replacing any running countdown."""
        self.stop()
        self.remaining = limit_seconds
        self._on_tick = on_tick
        self._on_expire = on_expire
        self._running = True
        self._task = asyncio.create_task(self._run(), name="countdown_clock")
        logger.debug("Clock started at %ds", limit_seconds)

    def stop(self) -> None:
        """Cancel the countdown. No callback fires afterwards."""
        self._running = False
        self._on_tick = None
        self._on_expire = None
        if self._task is not None:
            self._task.cancel()
            self._task = None

    def tick(self) -> None:
        """Advance one step. Expires instead of going below zero."""
        if not self._running:
            return

        next_value = self.remaining - 1
        if next_value < 0:
            on_expire = self._on_expire
            self.stop()
            logger.debug("Clock expired")
            if on_expire is not None:
                on_expire()
            return

        self.remaining = next_value
        if self._on_tick is not None:
            self._on_tick(next_value)

    async def _run(self) -> None:
        try:
            while self._running:
                await asyncio.sleep(self.tick_seconds)
                self.tick()
        except asyncio.CancelledError:
            pass  # Stopped
