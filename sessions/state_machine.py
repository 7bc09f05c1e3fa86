"""
Session State Machine

Owns one Session and is the only thing that mutates it.

States: ACTIVE → WON | EXPIRED (both terminal)

Driven by:
- select_tile() / activate_power_up() from the view layer
- Clock ticks and expiry
- the mismatch lock window and power-up timers it schedules itself

Every change is announced to the listener with an UpdateKind so the caller
can push fresh render instructions.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Callable, Optional, Sequence

from constants import MISMATCH_DELAY_SECONDS, POWER_UP_DURATION_SECONDS
from logging_config import get_session_logger
from models import Session, SessionStatus, Tile, TileState
from sessions.clock import Clock
from sessions.power_up import PowerUp


class UpdateKind(Enum):
    BOARD = "board"  # Tiles, counters or lock changed
    TIMER = "timer"  # Countdown ticked
    OUTCOME = "outcome"  # Session reached WON or EXPIRED


class SelectionResult(Enum):
    IGNORED = "ignored"
    FIRST = "first"
    MATCH = "match"
    MISMATCH = "mismatch"


class SessionStateMachine:
    """
    Selection, matching, timing and win/expiry for one session.

    Usage:
        machine = SessionStateMachine(tiles, time_limit=45, on_update=push_render)
        machine.start()
        machine.select_tile(3)
        machine.select_tile(7)
        ...
        machine.dispose()
    """

    def __init__(
        self,
        tiles: Sequence[Tile],
        time_limit: int,
        on_update: Optional[Callable[[UpdateKind], None]] = None,
        clock: Optional[Clock] = None,
        mismatch_delay: float = MISMATCH_DELAY_SECONDS,
        power_up_duration: float = POWER_UP_DURATION_SECONDS,
    ) -> None:
        if not tiles or len(tiles) % 2:
            raise ValueError(f"A deck needs a positive even number of tiles, got {len(tiles)}")

        self.session = Session(
            pair_count=len(tiles) // 2,
            tiles=list(tiles),
            time_limit=time_limit,
            time_remaining=time_limit,
        )
        self._tiles_by_id = {tile.id: tile for tile in self.session.tiles}
        if len(self._tiles_by_id) != len(self.session.tiles):
            raise ValueError("Tile ids must be unique within a session")

        self.on_update = on_update
        self.clock = clock or Clock()
        self.power_up = PowerUp(self.session, on_change=lambda: self._notify(UpdateKind.BOARD))
        self.mismatch_delay = mismatch_delay
        self.power_up_duration = power_up_duration
        self._mismatch_handle: Optional[asyncio.TimerHandle] = None

        self.logger = get_session_logger(
            __name__,
            session_id=self.session.session_id,
            pair_count=self.session.pair_count,
        )

    # === Lifecycle ===

    def start(self) -> None:
        """Start the countdown and announce the initial board."""
        self.clock.start(self.session.time_limit, self._on_clock_tick, self.on_clock_expire)
        self.logger.info_event(
            "session_started",
            "Session started",
            time_limit=self.session.time_limit,
        )
        self._notify(UpdateKind.BOARD)

    def dispose(self) -> None:
        """Stop the clock and drop pending timers. No further updates are emitted."""
        self.clock.stop()
        self.power_up.cancel()
        if self._mismatch_handle is not None:
            self._mismatch_handle.cancel()
            self._mismatch_handle = None
        self.on_update = None

    # === View-layer operations ===

    def get_tile(self, tile_id: int) -> Optional[Tile]:
        return self._tiles_by_id.get(tile_id)

    def select_tile(self, tile_id: int) -> SelectionResult:
        """
        Reveal a tile and resolve the pair once two are selected.

        Ignored (no click counted) when the session is over, the board is
        locked, the id is unknown, or the tile is not hidden.
        """
        session = self.session
        tile = self._tiles_by_id.get(tile_id)

        if session.status is not SessionStatus.ACTIVE or session.locked:
            return SelectionResult.IGNORED
        if tile is None:
            self.logger.debug("Ignoring unknown tile id %s", tile_id)
            return SelectionResult.IGNORED
        if tile.state is not TileState.HIDDEN:
            return SelectionResult.IGNORED

        session.clicks += 1
        tile.state = TileState.REVEALED
        session.selection.append(tile.id)

        if len(session.selection) == 1:
            self._notify(UpdateKind.BOARD)
            return SelectionResult.FIRST

        first, second = (self._tiles_by_id[tid] for tid in session.selection)
        if first.asset is second.asset:
            self._resolve_match(first, second)
            return SelectionResult.MATCH

        self._resolve_mismatch(first, second)
        return SelectionResult.MISMATCH

    def activate_power_up(self) -> bool:
        """Reveal every unmatched tile for the power-up duration. Once per session."""
        targets = [tile for tile in self.session.tiles if tile.state is not TileState.MATCHED]
        if not self.power_up.activate(targets, self.power_up_duration):
            return False

        self.logger.info_event("power_up_used", "Power-up activated", tiles=len(targets))
        self._notify(UpdateKind.BOARD)
        return True

    # === Clock callbacks ===

    def on_clock_expire(self) -> None:
        """Time ran out: freeze the board for good."""
        if self.session.status is not SessionStatus.ACTIVE:
            return

        self.session.time_remaining = 0
        self.session.status = SessionStatus.EXPIRED
        self.logger.info_event(
            "session_expired",
            "Time expired",
            matched_pairs=self.session.matched_pairs,
            clicks=self.session.clicks,
        )
        self._notify(UpdateKind.OUTCOME)

    def _on_clock_tick(self, remaining: int) -> None:
        self.session.time_remaining = remaining
        self._notify(UpdateKind.TIMER)

    # === Internals ===

    def _resolve_match(self, first: Tile, second: Tile) -> None:
        session = self.session
        first.state = TileState.MATCHED
        second.state = TileState.MATCHED
        session.matched_pairs += 1
        session.selection.clear()
        session.locked = False

        self.logger.debug_event(
            "pair_matched", "Pair matched", matched_pairs=session.matched_pairs
        )

        if session.matched_pairs == session.pair_count:
            self.clock.stop()
            session.status = SessionStatus.WON
            self.logger.info_event(
                "session_won",
                "All pairs matched",
                clicks=session.clicks,
                time_remaining=session.time_remaining,
            )
            self._notify(UpdateKind.BOARD)
            self._notify(UpdateKind.OUTCOME)
            return

        self._notify(UpdateKind.BOARD)

    def _resolve_mismatch(self, first: Tile, second: Tile) -> None:
        self.session.locked = True
        loop = asyncio.get_running_loop()
        self._mismatch_handle = loop.call_later(
            self.mismatch_delay, self._end_lock_window, first, second
        )
        self._notify(UpdateKind.BOARD)

    def _end_lock_window(self, first: Tile, second: Tile) -> None:
        self._mismatch_handle = None
        for tile in (first, second):
            if tile.state is TileState.REVEALED:
                tile.state = TileState.HIDDEN
        self.session.selection.clear()
        self.session.locked = False
        self._notify(UpdateKind.BOARD)

    def _notify(self, kind: UpdateKind) -> None:
        if self.on_update is not None:
            self.on_update(kind)

    def snapshot(self) -> dict[str, Any]:
        """Counters and flags for the view layer."""
        session = self.session
        return {
            "session_id": session.session_id,
            "status": session.status.value,
            "clicks": session.clicks,
            "matched": session.matched_pairs,
            "total_pairs": session.pair_count,
            "pairs_left": session.pairs_left,
            "time_remaining": session.time_remaining,
            "locked": session.locked,
            "power_up_available": not session.power_up_used and not session.status.is_terminal,
        }
