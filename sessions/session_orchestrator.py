"""
Session Orchestrator Module

Coordinates one client connection: builds decks, owns the active
SessionStateMachine, routes view-layer messages into it and streams render
instructions back through the outbound queue.

Only one session is live per connection. Starting a new one cancels an
in-flight deck build and disposes the previous machine.
"""

from __future__ import annotations

import asyncio
import secrets
from typing import TYPE_CHECKING, Any, Callable, Coroutine, Optional

from config import get_default_pair_count, get_time_limit
from constants import (
    CLOCK_TICK_SECONDS,
    DECK_FAILURE_MESSAGE,
    MISMATCH_DELAY_SECONDS,
    POWER_UP_DURATION_SECONDS,
    SERVER_ERROR_MESSAGE,
)
from deck_builder import DeckBuilder
from error_tracking import add_sentry_breadcrumb, add_sentry_context
from exceptions import CatalogUnavailable, InsufficientAssets, InvalidMessageError
from logging_config import get_session_logger
from message_queue import MessageKind, OutboundMessageQueue
from metrics import record_deck_build, record_session_outcome, track_deck_build, track_error
from sessions.clock import Clock
from sessions.render import board_message, error_message, outcome_message, timer_message
from sessions.state_machine import SelectionResult, SessionStateMachine, UpdateKind

if TYPE_CHECKING:
    from aiohttp import web


class SessionOrchestrator:
    """
    Coordinates deck building and play for a single WebSocket client.
    """

    def __init__(
        self,
        ws: web.WebSocketResponse,
        deck_builder: DeckBuilder,
        time_limit_for: Callable[[int], int] = get_time_limit,
        tick_seconds: float = CLOCK_TICK_SECONDS,
        mismatch_delay: float = MISMATCH_DELAY_SECONDS,
        power_up_duration: float = POWER_UP_DURATION_SECONDS,
    ) -> None:
        """
        Args:
            ws: WebSocket connection (only send_json is used)
            deck_builder: Shared deck builder
            time_limit_for: Maps a pair count to its countdown; raises
                UnknownDifficultyError for unsupported counts
            tick_seconds: Clock tick interval
            mismatch_delay: Lock window after a wrong pair
            power_up_duration: Reveal-all duration
        """
        self.ws = ws
        self.deck_builder = deck_builder
        self.time_limit_for = time_limit_for
        self.tick_seconds = tick_seconds
        self.mismatch_delay = mismatch_delay
        self.power_up_duration = power_up_duration

        self.connection_id = secrets.token_urlsafe(16)
        self.logger = get_session_logger(__name__, connection_id=self.connection_id)

        self.outbox = OutboundMessageQueue(ws.send_json)
        self.machine: Optional[SessionStateMachine] = None
        self._build_task: Optional[asyncio.Task] = None
        self._background_tasks: set[asyncio.Task] = set()

    # === Background tasks ===

    def _create_tracked_task(self, coro: Coroutine[Any, Any, Any], name: str = "unknown") -> asyncio.Task:
        """Create a background task that is cancelled when the connection closes."""
        task = asyncio.create_task(coro, name=name)
        self._background_tasks.add(task)

        def _task_done_callback(t: asyncio.Task) -> None:
            self._background_tasks.discard(t)
            if t.cancelled():
                self.logger.debug("Task '%s' was cancelled", name)
                return
            exc = t.exception()
            if exc is not None:
                self.logger.error("Task '%s' failed: %s", name, exc, exc_info=exc)

        task.add_done_callback(_task_done_callback)
        return task

    async def _cleanup_background_tasks(self) -> None:
        if not self._background_tasks:
            return

        for task in self._background_tasks:
            if not task.done():
                task.cancel()

        await asyncio.gather(*self._background_tasks, return_exceptions=True)
        self._background_tasks.clear()

    # === Session lifecycle ===

    def request_session(self, pair_count: int) -> asyncio.Task:
        """
        Start building a session in the background.

        Validates the difficulty up front so an unsupported pair count fails
        before anything is cancelled.

        Raises:
            UnknownDifficultyError: no time limit configured for pair_count
        """
        self.time_limit_for(pair_count)

        if self._build_task is not None and not self._build_task.done():
            self.logger.info("Cancelling in-flight deck build")
            self._build_task.cancel()

        self._build_task = self._create_tracked_task(
            self.start_session(pair_count), name="deck_build"
        )
        return self._build_task

    async def start_session(self, pair_count: int) -> Optional[SessionStateMachine]:
        """
        Build a deck and start a new session.

        Returns:
            The running machine, or None if the deck could not be built (the
            client has been sent an error and may retry)
        """
        time_limit = self.time_limit_for(pair_count)
        self._end_current_session(reason="restarted")

        self.outbox.enqueue(
            {"type": "loading", "pair_count": pair_count},
            MessageKind.CONTROL,
            "start_session",
        )
        add_sentry_breadcrumb("session", "Deck build started", pair_count=pair_count)

        try:
            with track_deck_build():
                tiles = await self.deck_builder.build_deck(pair_count)
        except asyncio.CancelledError:
            record_deck_build("cancelled")
            raise
        except (CatalogUnavailable, InsufficientAssets) as e:
            outcome = "catalog_unavailable" if isinstance(e, CatalogUnavailable) else "insufficient_assets"
            record_deck_build(outcome)
            track_error(outcome)
            add_sentry_breadcrumb("session", "Deck build failed", reason=outcome)
            self.logger.warning_event("deck_failed", "Deck build failed", reason=outcome, error=str(e))
            self.outbox.enqueue(
                error_message(DECK_FAILURE_MESSAGE, reason=outcome),
                MessageKind.CONTROL,
                "start_session",
            )
            return None
        except Exception:
            record_deck_build("error")
            track_error("deck_build_error")
            self.logger.exception("Unexpected error building deck for %d pairs", pair_count)
            self.outbox.enqueue(error_message(SERVER_ERROR_MESSAGE), MessageKind.CONTROL, "start_session")
            return None

        record_deck_build("success")
        machine = SessionStateMachine(
            tiles,
            time_limit,
            on_update=self._on_update,
            clock=Clock(self.tick_seconds),
            mismatch_delay=self.mismatch_delay,
            power_up_duration=self.power_up_duration,
        )
        self.machine = machine
        add_sentry_context(machine.session.session_id, pair_count)
        machine.start()
        return machine

    def _end_current_session(self, reason: str) -> None:
        machine = self.machine
        if machine is None:
            return

        if not machine.session.status.is_terminal:
            record_session_outcome("abandoned")
            self.logger.info_event(
                "session_abandoned",
                "Session ended before completion",
                session_id=machine.session.session_id,
                reason=reason,
            )
        machine.dispose()
        self.machine = None

    # === View-layer operations ===

    def select_tile(self, tile_id: int) -> SelectionResult:
        if self.machine is None:
            return SelectionResult.IGNORED
        return self.machine.select_tile(tile_id)

    def activate_power_up(self) -> bool:
        if self.machine is None:
            return False
        return self.machine.activate_power_up()

    async def handle_message(self, data: dict[str, Any]) -> None:
        """
        Route one decoded client message.

        Raises:
            InvalidMessageError: unknown type or missing/invalid fields
            UnknownDifficultyError: start_session with an unsupported pair count
        """
        msg_type = data.get("type")

        if msg_type == "start_session":
            pair_count = data.get("pair_count", get_default_pair_count())
            if not isinstance(pair_count, int) or isinstance(pair_count, bool):
                raise InvalidMessageError(str(data), "pair_count must be an integer")
            self.request_session(pair_count)

        elif msg_type == "select_tile":
            tile_id = data.get("tile_id")
            if not isinstance(tile_id, int) or isinstance(tile_id, bool):
                raise InvalidMessageError(str(data), "tile_id must be an integer")
            self.select_tile(tile_id)

        elif msg_type == "activate_power_up":
            self.activate_power_up()

        else:
            raise InvalidMessageError(str(data), f"unknown message type: {msg_type!r}")

    def send_error(self, message: str, **details: Any) -> None:
        self.outbox.enqueue(error_message(message, **details), MessageKind.CONTROL, "error")

    async def close(self) -> None:
        """Tear down everything owned by this connection."""
        self._end_current_session(reason="disconnected")
        await self._cleanup_background_tasks()
        self._build_task = None
        await self.outbox.close()

    # === Machine updates ===

    def _on_update(self, kind: UpdateKind) -> None:
        machine = self.machine
        if machine is None:
            return

        if kind is UpdateKind.BOARD:
            self.outbox.enqueue(board_message(machine), MessageKind.BOARD, "board")
        elif kind is UpdateKind.TIMER:
            self.outbox.enqueue(timer_message(machine), MessageKind.TIMER, "clock")
        elif kind is UpdateKind.OUTCOME:
            record_session_outcome(machine.session.status.value)
            self.outbox.enqueue(outcome_message(machine), MessageKind.CONTROL, "outcome")
