"""
Project-wide constants.

Centralizes magic numbers and configuration values for maintainability.
"""

from __future__ import annotations

import os
from typing import Final

# =============================================================================
# Game Mechanics - Timing
# =============================================================================
CLOCK_TICK_SECONDS: Final[float] = 1.0  # One countdown step
MISMATCH_DELAY_SECONDS: Final[float] = 1.0  # Lock window after a wrong pair
POWER_UP_DURATION_SECONDS: Final[float] = 3.0  # Reveal-all overlay lifetime

# =============================================================================
# Game Mechanics - Outcome Messages
# =============================================================================
WIN_MESSAGE: Final[str] = "Congratulations you won!"
EXPIRED_MESSAGE: Final[str] = "Game over! Time's up."
DECK_FAILURE_MESSAGE: Final[str] = "Could not load enough images. Please try again."
SERVER_ERROR_MESSAGE: Final[str] = "Server error. Please try again."

# =============================================================================
# Remote Catalog
# =============================================================================
CATALOG_BASE_URL: Final[str] = os.getenv("CATALOG_BASE_URL", "https://pokeapi.co/api/v2")
CATALOG_LIST_LIMIT: Final[int] = int(os.getenv("CATALOG_LIST_LIMIT", "1500"))

# A timed-out call counts as a failure of that call
CATALOG_REQUEST_TIMEOUT_SECONDS: Final[float] = float(
    os.getenv("CATALOG_REQUEST_TIMEOUT_SECONDS", "10.0")
)
IMAGE_PROBE_TIMEOUT_SECONDS: Final[float] = float(os.getenv("IMAGE_PROBE_TIMEOUT_SECONDS", "10.0"))
DETAIL_FETCH_ATTEMPTS: Final[int] = 1  # Tries per candidate before it is skipped

# =============================================================================
# Server Configuration
# =============================================================================
DEFAULT_SERVER_HOST: Final[str] = os.getenv("SERVER_HOST", "0.0.0.0")
DEFAULT_SERVER_PORT: Final[int] = int(os.getenv("SERVER_PORT", "8080"))

# =============================================================================
# Logging Configuration
# =============================================================================
LOG_LEVEL_PRODUCTION: Final[str] = "INFO"
LOG_LEVEL_DEVELOPMENT: Final[str] = "DEBUG"
LOG_FORMAT_JSON: Final[bool] = True  # Set to False for development readable format

# =============================================================================
# Sentry Error Tracking Configuration
# =============================================================================
# Read from environment variable (optional - Sentry disabled if not set)
SENTRY_DSN: Final[str | None] = os.getenv("SENTRY_DSN")
SENTRY_ENVIRONMENT: Final[str] = os.getenv("SENTRY_ENVIRONMENT", "development")
SENTRY_TRACES_SAMPLE_RATE: Final[float] = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1"))
