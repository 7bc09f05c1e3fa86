"""
Outbound Message Queue for the view layer.

Game updates can arrive faster than a WebSocket drains them (a tick lands
while a board snapshot is still being sent). This queue delivers messages one
at a time, in order, and drops snapshots a newer snapshot already covers.

Key Features:
- FIFO delivery by sequence id
- A newer BOARD snapshot supersedes queued BOARD and TIMER messages
- A newer TIMER supersedes queued TIMER messages
- CONTROL messages (game over, errors, loading) are never dropped
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class MessageKind(IntEnum):
    """
    Kinds of outbound messages. Lower values are never superseded by higher ones.
    """

    CONTROL = 0  # game_over, error, loading - always delivered
    BOARD = 1  # Full board snapshot (includes the timer)
    TIMER = 2  # Countdown tick only


@dataclass
class OutboundMessage:
    """
    A single queued message.

    Attributes:
        payload: JSON-serializable message body
        kind: Determines which queued messages it supersedes
        sequence_id: Monotonic id, also the delivery order
        source: What produced the message (for debugging)
        timestamp: When the message was queued
    """
    payload: dict[str, Any]
    kind: MessageKind
    sequence_id: int
    source: str = "unknown"
    timestamp: float = field(default_factory=time.monotonic)

    def __repr__(self) -> str:
        return (
            f"OutboundMessage(kind={self.kind.name}, seq={self.sequence_id}, "
            f"source={self.source}, type={self.payload.get('type')})"
        )


class OutboundMessageQueue:
    """
    Ordered, superseding delivery of messages to one client.

    Usage:
        queue = OutboundMessageQueue(ws.send_json)
        queue.enqueue(board_message(machine), MessageKind.BOARD, source="select_tile")
        await queue.drain()
    """

    def __init__(
        self,
        send_callback: Callable[[dict[str, Any]], Awaitable[None]],
    ) -> None:
        """
        Args:
            send_callback: Async function delivering one payload to the client
        """
        self._queue: list[OutboundMessage] = []
        self._send_callback = send_callback

        self._is_processing = False
        self._task: Optional[asyncio.Task] = None
        self._idle = asyncio.Event()
        self._idle.set()
        self._global_sequence = 0
        self._closed = False

    def get_next_sequence_id(self) -> int:
        self._global_sequence += 1
        return self._global_sequence

    def enqueue(
        self,
        payload: dict[str, Any],
        kind: MessageKind,
        source: str = "unknown",
    ) -> Optional[OutboundMessage]:
        """
        Queue a message, dropping whatever it supersedes.

        Returns:
            The queued message, or None once the queue is closed
        """
        if self._closed:
            return None

        item = OutboundMessage(
            payload=payload,
            kind=kind,
            sequence_id=self.get_next_sequence_id(),
            source=source,
        )

        if kind is not MessageKind.CONTROL:
            original_size = len(self._queue)
            self._queue = [queued for queued in self._queue if queued.kind < kind]
            superseded = original_size - len(self._queue)
            if superseded:
                logger.debug("[MessageQueue] %s superseded %d queued messages", item, superseded)

        self._queue.append(item)
        self._idle.clear()

        if not self._is_processing:
            self._is_processing = True
            self._task = asyncio.create_task(self._process_queue(), name="outbound_messages")

        return item

    async def drain(self) -> None:
        """Wait until every queued message has been sent."""
        await self._idle.wait()

    async def close(self) -> None:
        """Drop queued messages and stop processing."""
        self._closed = True
        self._queue.clear()
        if self._task is not None and not self._task.done():
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
        self._task = None
        self._is_processing = False
        self._idle.set()

    async def _process_queue(self) -> None:
        """Send queued messages one at a time until the queue is empty."""
        try:
            while self._queue:
                item = self._queue.pop(0)
                try:
                    await self._send_callback(item.payload)
                except Exception as e:
                    logger.error("[MessageQueue] Error sending %s: %s", item, e, exc_info=True)
        finally:
            self._is_processing = False
            self._idle.set()
