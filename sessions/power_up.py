"""
Reveal-All Power-Up

One use per session. Shows every targeted tile for a few seconds through the
display-only power_up_reveal overlay, then hides them again.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Sequence

from models import Session, Tile

logger = logging.getLogger(__name__)


class PowerUp:
    """
    Time-boxed reveal overlay bound to one session.

    The overlay never touches tile state, selection or the lock, so matching
    continues normally while it is showing.
    """

    def __init__(self, session: Session, on_change: Optional[Callable[[], None]] = None) -> None:
        self.session = session
        self.on_change = on_change
        self._revealed: list[Tile] = []
        self._clear_handle: Optional[asyncio.TimerHandle] = None

    @property
    def active(self) -> bool:
        return self._clear_handle is not None

    def activate(self, target_tiles: Sequence[Tile], duration_seconds: float) -> bool:
        """
        Reveal ``target_tiles`` for ``duration_seconds``.

        Returns:
            True on the first activation of the session, False (no-op) after that
            or once the session has ended
        """
        if self.session.power_up_used or self.session.status.is_terminal:
            return False

        self.session.power_up_used = True
        self._revealed = list(target_tiles)
        for tile in self._revealed:
            tile.power_up_reveal = True

        loop = asyncio.get_running_loop()
        self._clear_handle = loop.call_later(duration_seconds, self._clear)
        logger.info("Power-up revealed %d tiles for %.1fs", len(self._revealed), duration_seconds)
        return True

    def cancel(self) -> None:
        """Drop a pending clear without notifying."""
        if self._clear_handle is not None:
            self._clear_handle.cancel()
            self._clear_handle = None

    def _clear(self) -> None:
        self._clear_handle = None
        for tile in self._revealed:
            tile.power_up_reveal = False
        self._revealed = []
        logger.debug("Power-up reveal cleared")
        if self.on_change is not None:
            self.on_change()
