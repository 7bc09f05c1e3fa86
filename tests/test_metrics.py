"""
Tests for Prometheus metrics helpers.
"""

import pytest
from prometheus_client import REGISTRY

from metrics import (
    record_candidate_verdict,
    record_deck_build,
    record_session_outcome,
    track_deck_build,
    track_error,
    track_upstream_call,
    update_active_sessions,
)


def sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestCounters:
    def test_candidate_verdicts(self):
        before = sample("memory_match_candidates_total", verdict="unreachable")
        record_candidate_verdict("unreachable")
        assert sample("memory_match_candidates_total", verdict="unreachable") == before + 1

    def test_deck_build_and_session_outcomes(self):
        builds = sample("memory_match_deck_builds_total", outcome="cancelled")
        won = sample("memory_match_sessions_total", outcome="won")

        record_deck_build("cancelled")
        record_session_outcome("won")

        assert sample("memory_match_deck_builds_total", outcome="cancelled") == builds + 1
        assert sample("memory_match_sessions_total", outcome="won") == won + 1

    def test_track_error(self):
        before = sample("memory_match_errors_total", error_type="invalid_json")
        track_error("invalid_json")
        assert sample("memory_match_errors_total", error_type="invalid_json") == before + 1


class TestTimers:
    def test_deck_build_observed_even_on_error(self):
        before = sample("memory_match_deck_build_seconds_count")

        with pytest.raises(RuntimeError):
            with track_deck_build():
                raise RuntimeError("catalog down")

        assert sample("memory_match_deck_build_seconds_count") == before + 1

    def test_upstream_call_labelled(self):
        before = sample("memory_match_upstream_latency_seconds_count", call="probe")
        with track_upstream_call("probe"):
            pass
        assert sample("memory_match_upstream_latency_seconds_count", call="probe") == before + 1


def test_active_sessions_gauge():
    update_active_sessions(4)
    assert sample("memory_match_active_sessions") == 4
    update_active_sessions(0)
