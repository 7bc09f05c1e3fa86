"""
Prometheus metrics instrumentation for Memory Match.

This module provides metrics tracking for:
- Candidate verdicts during deck acquisition
- Deck build outcomes and duration
- Upstream catalog / image probe latency
- Session outcomes
- Active session count

Usage:
    from metrics import (
        track_deck_build,
        track_upstream_call,
        record_candidate_verdict,
        record_session_outcome,
        active_sessions_gauge,
    )

    with track_upstream_call("detail"):
        # ... call the catalog ...
        pass

    record_candidate_verdict("accepted")
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Generator

from prometheus_client import Counter, Gauge, Histogram

# === COUNTERS ===

# Outcome of each candidate considered while building a deck
candidates_total = Counter(
    "memory_match_candidates_total",
    "Catalog candidates evaluated, by verdict",
    ["verdict"],
)

# Deck builds by outcome (success, catalog_unavailable, insufficient_assets, cancelled)
deck_builds_total = Counter(
    "memory_match_deck_builds_total",
    "Deck construction attempts by outcome",
    ["outcome"],
)

# Finished sessions by outcome (won, expired, abandoned)
sessions_total = Counter(
    "memory_match_sessions_total",
    "Game sessions by terminal outcome",
    ["outcome"],
)

errors_total = Counter(
    "memory_match_errors_total",
    "Total number of errors encountered",
    ["error_type"],
)

# === HISTOGRAMS ===

deck_build_seconds = Histogram(
    "memory_match_deck_build_seconds",
    "Time taken to build a deck",
    buckets=(0.5, 1.0, 2.0, 5.0, 10.0, 20.0, 30.0, 60.0, float("inf")),
)

upstream_latency_seconds = Histogram(
    "memory_match_upstream_latency_seconds",
    "Latency of upstream calls (catalog list, detail, image probe)",
    ["call"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, float("inf")),
)

# === GAUGES ===

active_sessions_gauge = Gauge(
    "memory_match_active_sessions",
    "Current number of connected game sessions",
)

# === CONTEXT MANAGERS ===


@contextmanager
def track_deck_build() -> Generator[None, None, None]:
    """
    Context manager timing a deck build.

    Example:
        with track_deck_build():
            tiles = await builder.build_deck(6)
    """
    start_time = time.time()
    try:
        yield
    finally:
        deck_build_seconds.observe(time.time() - start_time)


@contextmanager
def track_upstream_call(call: str) -> Generator[None, None, None]:
    """
    Context manager timing one upstream call.

    Args:
        call: "catalog", "detail" or "probe"
    """
    start_time = time.time()
    try:
        yield
    finally:
        upstream_latency_seconds.labels(call=call).observe(time.time() - start_time)


def record_candidate_verdict(verdict: str) -> None:
    candidates_total.labels(verdict=verdict).inc()


def record_deck_build(outcome: str) -> None:
    deck_builds_total.labels(outcome=outcome).inc()


def record_session_outcome(outcome: str) -> None:
    sessions_total.labels(outcome=outcome).inc()


def track_error(error_type: str) -> None:
    """
    Track an error occurrence.

    Args:
        error_type: The type of error (e.g., "invalid_message", "catalog_unavailable")
    """
    errors_total.labels(error_type=error_type).inc()


def update_active_sessions(count: int) -> None:
    active_sessions_gauge.set(count)
