"""
Configuration loader module.

Provides centralized access to the difficulty table.
This is the single source of truth for pair count ↔ time limit.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from exceptions import UnknownDifficultyError

# Load configuration once at module import
_CONFIG_DIR = Path(__file__).parent
_DIFFICULTY_LEVELS_PATH = _CONFIG_DIR / "difficulty_levels.json"

# Cache for loaded config
_difficulty_config: dict[str, Any] | None = None


def get_difficulty_config() -> dict[str, Any]:
    """
    Load and return the raw difficulty configuration.

    Returns cached version after first load.
    """
    global _difficulty_config

    if _difficulty_config is None:
        if not _DIFFICULTY_LEVELS_PATH.exists():
            raise FileNotFoundError(f"Difficulty levels not found: {_DIFFICULTY_LEVELS_PATH}")

        with open(_DIFFICULTY_LEVELS_PATH) as f:
            _difficulty_config = json.load(f)

    return _difficulty_config


def get_difficulty_levels() -> list[dict[str, Any]]:
    """
    Get the difficulty levels ordered by pair count.

    Example: [{'pair_count': 3, 'label': 'Easy', 'time_limit_seconds': 60, 'columns': 3}, ...]
    """
    levels = get_difficulty_config()["levels"]
    return [
        {"pair_count": int(pair_count), **level}
        for pair_count, level in sorted(levels.items(), key=lambda item: int(item[0]))
    ]


def get_time_limit(pair_count: int) -> int:
    """Get the countdown limit in seconds for a pair count."""
    level = get_difficulty_config()["levels"].get(str(pair_count))
    if level is None:
        raise UnknownDifficultyError(pair_count)
    return int(level["time_limit_seconds"])


def get_default_pair_count() -> int:
    return int(get_difficulty_config().get("default_pair_count", 3))


# Export commonly used items
__all__ = [
    "get_default_pair_count",
    "get_difficulty_config",
    "get_difficulty_levels",
    "get_time_limit",
]
