"""
Game Data Model

Value types shared by deck acquisition and the session state machine.

Lifecycle:
- Candidate / CandidateDetail: ephemeral, only live while a deck is built
- Asset: immutable once validated, shared by exactly two tiles
- Tile / Session: owned by one SessionStateMachine, discarded with it
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class Candidate:
    """One catalog entry considered for the deck."""
    name: str  # Unique key, used for deduplication
    detail_ref: str  # Opaque locator passed back to the catalog


@dataclass(frozen=True)
class CandidateDetail:
    """Resolved candidate. image_url is None when the entry has no artwork."""
    image_url: Optional[str] = None


@dataclass(frozen=True)
class Asset:
    """A validated, reachable image reference backing one pair."""
    url: str


class TileState(Enum):
    HIDDEN = "hidden"
    REVEALED = "revealed"
    MATCHED = "matched"


@dataclass
class Tile:
    """
    One clickable unit in the grid.

    power_up_reveal is a display-only overlay set by the power-up; it is not
    part of matching and never changes ``state``.
    """
    id: int
    asset: Asset
    state: TileState = TileState.HIDDEN
    power_up_reveal: bool = False

    @property
    def face_up(self) -> bool:
        return self.state is not TileState.HIDDEN or self.power_up_reveal


class SessionStatus(Enum):
    """ACTIVE moves to exactly one of the terminal states."""
    ACTIVE = "active"
    WON = "won"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.ACTIVE


@dataclass
class Session:
    """
    State of one play-through.

    Invariants:
    - 0 <= matched_pairs <= pair_count
    - len(selection) <= 2
    - while locked, no tile enters selection
    """
    pair_count: int
    tiles: list[Tile]
    time_limit: int
    time_remaining: int
    session_id: str = field(default_factory=lambda: secrets.token_urlsafe(16))
    selection: list[int] = field(default_factory=list)  # Tile ids, in selection order
    matched_pairs: int = 0
    clicks: int = 0
    locked: bool = False
    power_up_used: bool = False
    status: SessionStatus = SessionStatus.ACTIVE

    @property
    def pairs_left(self) -> int:
        return self.pair_count - self.matched_pairs
