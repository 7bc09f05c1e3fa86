"""
Tests for the difficulty configuration loader.
"""

import pytest

from config import (
    get_default_pair_count,
    get_difficulty_config,
    get_difficulty_levels,
    get_time_limit,
)
from exceptions import ConfigurationError, UnknownDifficultyError


class TestDifficultyConfig:
    """Test the difficulty table."""

    @pytest.mark.parametrize("pair_count,limit", [(3, 60), (6, 45), (9, 30)])
    def test_time_limits(self, pair_count, limit):
        assert get_time_limit(pair_count) == limit

    @pytest.mark.parametrize("pair_count", [0, 1, 4, 12])
    def test_unknown_pair_count(self, pair_count):
        with pytest.raises(UnknownDifficultyError) as exc_info:
            get_time_limit(pair_count)

        assert exc_info.value.pair_count == pair_count
        assert isinstance(exc_info.value, ConfigurationError)

    def test_levels_sorted_by_pair_count(self):
        levels = get_difficulty_levels()

        assert [level["pair_count"] for level in levels] == [3, 6, 9]
        assert [level["label"] for level in levels] == ["Easy", "Medium", "Hard"]
        assert all("columns" in level for level in levels)

    def test_default_pair_count_is_configured(self):
        assert get_default_pair_count() == 3
        assert str(get_default_pair_count()) in get_difficulty_config()["levels"]

    def test_config_is_cached(self):
        assert get_difficulty_config() is get_difficulty_config()
