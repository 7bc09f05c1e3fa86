"""
Sentry error tracking.

Disabled unless SENTRY_DSN is set. The helpers are safe to call either way:
sentry_sdk turns them into no-ops when no client is initialised.
"""

from __future__ import annotations

import logging
import subprocess
from typing import Any, Optional

import sentry_sdk
from sentry_sdk.integrations.aiohttp import AioHttpIntegration

from constants import SENTRY_DSN, SENTRY_ENVIRONMENT, SENTRY_TRACES_SAMPLE_RATE
from exceptions import CandidateUnavailable, InvalidMessageError

logger = logging.getLogger(__name__)

# Normal-flow failures that should not page anyone
_IGNORED_ERRORS = (CandidateUnavailable, InvalidMessageError)


def get_release() -> Optional[str]:
    """Current git commit, used as the Sentry release."""
    try:
        return subprocess.check_output(
            ["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL
        ).decode().strip()
    except (OSError, subprocess.CalledProcessError):
        return None


def _before_send(event: dict[str, Any], hint: dict[str, Any]) -> Optional[dict[str, Any]]:
    exc_info = hint.get("exc_info")
    if exc_info and isinstance(exc_info[1], _IGNORED_ERRORS):
        return None
    return event


def init_sentry(dsn: Optional[str] = SENTRY_DSN) -> bool:
    """
    Initialise Sentry if a DSN is configured.

    Returns:
        True if Sentry was initialised
    """
    if not dsn:
        logger.info("Sentry disabled (no SENTRY_DSN configured)")
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=SENTRY_ENVIRONMENT,
        traces_sample_rate=SENTRY_TRACES_SAMPLE_RATE,
        release=get_release(),
        integrations=[AioHttpIntegration()],
        before_send=_before_send,
    )
    logger.info("Sentry initialised (environment=%s)", SENTRY_ENVIRONMENT)
    return True


def add_sentry_context(session_id: str, pair_count: int) -> None:
    """Attach the current game session to subsequent events."""
    sentry_sdk.set_context("game_session", {"session_id": session_id, "pair_count": pair_count})
    sentry_sdk.set_tag("pair_count", str(pair_count))


def add_sentry_breadcrumb(category: str, message: str, **data: Any) -> None:
    sentry_sdk.add_breadcrumb(category=category, message=message, data=data, level="info")
