"""
Shared fixtures.
"""

import pytest

from tests.fakes import FakeProber


@pytest.fixture
def fake_prober():
    return FakeProber()
