"""
Render Instructions

Builds the JSON messages the view layer draws from. Image URLs are only sent
for tiles that are currently face up.
"""

from __future__ import annotations

from typing import Any

from constants import EXPIRED_MESSAGE, WIN_MESSAGE
from models import SessionStatus, Tile
from sessions.clock import format_time
from sessions.state_machine import SessionStateMachine

OUTCOME_MESSAGES = {
    SessionStatus.WON: WIN_MESSAGE,
    SessionStatus.EXPIRED: EXPIRED_MESSAGE,
}


def render_tile(tile: Tile) -> dict[str, Any]:
    return {
        "id": tile.id,
        "state": tile.state.value,
        "face_up": tile.face_up,
        "power_up": tile.power_up_reveal,
        "url": tile.asset.url if tile.face_up else None,
    }


def board_message(machine: SessionStateMachine) -> dict[str, Any]:
    snapshot = machine.snapshot()
    return {
        "type": "board",
        "session_id": snapshot["session_id"],
        "status": snapshot["status"],
        "tiles": [render_tile(tile) for tile in machine.session.tiles],
        "counters": {
            "clicks": snapshot["clicks"],
            "matched": snapshot["matched"],
            "total_pairs": snapshot["total_pairs"],
            "pairs_left": snapshot["pairs_left"],
        },
        "timer": format_time(snapshot["time_remaining"]),
        "locked": snapshot["locked"],
        "power_up_available": snapshot["power_up_available"],
    }


def timer_message(machine: SessionStateMachine) -> dict[str, Any]:
    remaining = machine.session.time_remaining
    return {
        "type": "timer",
        "session_id": machine.session.session_id,
        "time_remaining": remaining,
        "timer": format_time(remaining),
    }


def outcome_message(machine: SessionStateMachine) -> dict[str, Any]:
    session = machine.session
    return {
        "type": "game_over",
        "session_id": session.session_id,
        "outcome": session.status.value,
        "message": OUTCOME_MESSAGES.get(session.status, ""),
        "counters": {
            "clicks": session.clicks,
            "matched": session.matched_pairs,
            "total_pairs": session.pair_count,
            "pairs_left": session.pairs_left,
        },
        "controls_enabled": True,
    }


def error_message(message: str, **details: Any) -> dict[str, Any]:
    """Error shown to the player; controls stay enabled so they can retry."""
    return {"type": "error", "message": message, "controls_enabled": True, **details}
