"""
Custom exceptions for Memory Match.

Provides specific exception types for better error handling and debugging.
"""

from __future__ import annotations


class MemoryMatchError(Exception):
    """Base exception for all Memory Match errors."""

    pass


class DeckError(MemoryMatchError):
    """Base exception for deck acquisition errors."""

    pass


class CatalogUnavailable(DeckError):
    """Raised when the candidate catalog cannot be fetched or parsed."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Catalog unavailable: {reason}")


class CandidateUnavailable(DeckError):
    """Raised when a single candidate cannot be resolved. Recoverable."""

    def __init__(self, detail_ref: str, reason: str) -> None:
        self.detail_ref = detail_ref
        self.reason = reason
        super().__init__(f"Candidate unavailable ({detail_ref}): {reason}")


class InsufficientAssets(DeckError):
    """Raised when fewer validated assets were found than pairs requested."""

    def __init__(self, requested: int, found: int) -> None:
        self.requested = requested
        self.found = found
        super().__init__(f"Needed {requested} assets but only {found} were usable")


class ConfigurationError(MemoryMatchError):
    """Base exception for configuration errors."""

    pass


class UnknownDifficultyError(ConfigurationError):
    """Raised when a pair count has no configured difficulty level."""

    def __init__(self, pair_count: int) -> None:
        self.pair_count = pair_count
        super().__init__(f"No difficulty level for {pair_count} pairs")


class WebSocketError(MemoryMatchError):
    """Base exception for WebSocket communication errors."""

    pass


class InvalidMessageError(WebSocketError):
    """Raised when receiving an invalid message format."""

    def __init__(self, message: str, reason: str) -> None:
        self.original_message = message
        self.reason = reason
        super().__init__(f"Invalid message: {reason}")
