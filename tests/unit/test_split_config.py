"""Tests for zipsplit/lib/config.py - SplitConfig validation and sizes."""

from pathlib import Path

import pytest

from zipsplit.lib.config import (
    CanaryStrategy,
    SplitConfig,
    SplitStrategy,
    parse_size,
)
from zipsplit.lib.errors import ConfigurationError


def _config(**overrides):
    values = dict(
        inputs=["build/classes"],
        primary_output="out/classes.dex.jar",
        secondary_output_dir="out/secondary",
        soft_limit=800,
        hard_limit=1000,
    )
    values.update(overrides)
    return SplitConfig(**values)


class TestParseSize:
    """Tests for parse_size()."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (4096, 4096),
            ("4096", 4096),
            ("64KB", 64 * 1024),
            ("64k", 64 * 1024),
            ("12MiB", 12 * 1024 ** 2),
            ("3 MB", 3 * 1024 ** 2),
            ("1G", 1024 ** 3),
            ("10B", 10),
        ],
    )
    def test_valid(self, value, expected):
        assert parse_size(value) == expected

    @pytest.mark.parametrize("value", ["", "MB", "1.5MB", "12TB", "ten"])
    def test_invalid(self, value):
        with pytest.raises(ConfigurationError):
            parse_size(value)

    def test_bool_rejected(self):
        with pytest.raises(ConfigurationError):
            parse_size(True)


class TestSplitConfig:
    """Tests for SplitConfig construction."""

    def test_defaults(self):
        config = _config()
        assert config.inputs == (Path("build/classes"),)
        assert config.primary_output == Path("out/classes.dex.jar")
        assert config.split_strategy is SplitStrategy.MAXIMIZE_PRIMARY
        assert config.canary_strategy is CanaryStrategy.NONE
        assert config.required_in_primary("Anything.class") is False
        assert config.report_dir is None

    def test_secondary_paths(self):
        config = _config()
        assert config.secondary_name(1) == "secondary-1.dex.jar"
        assert config.secondary_path(3) == Path("out/secondary/secondary-3.dex.jar")

    def test_padded_pattern(self):
        config = _config(secondary_pattern="classes{index:02d}.jar")
        assert config.secondary_name(2) == "classes02.jar"

    def test_inputs_deduplicated_in_order(self):
        config = _config(inputs=["b", "a", "b"])
        assert config.inputs == (Path("b"), Path("a"))

    def test_soft_equal_to_hard_allowed(self):
        assert _config(soft_limit=1000).soft_limit == 1000

    def test_frozen(self):
        config = _config()
        with pytest.raises(AttributeError):
            config.hard_limit = 5

    @pytest.mark.parametrize(
        "overrides,field",
        [
            ({"inputs": []}, "inputs"),
            ({"hard_limit": 0}, "hard_limit"),
            ({"soft_limit": -1}, "soft_limit"),
            ({"soft_limit": 1001}, "soft_limit"),
            ({"secondary_pattern": "secondary.jar"}, "secondary_pattern"),
            ({"secondary_pattern": "secondary-{idx}.jar"}, "secondary_pattern"),
            ({"split_strategy": "maximize"}, "split_strategy"),
            ({"canary_strategy": "include"}, "canary_strategy"),
        ],
    )
    def test_invalid(self, overrides, field):
        with pytest.raises(ConfigurationError) as exc_info:
            _config(**overrides)
        assert exc_info.value.field == field

    def test_canary_must_fit_hard_limit(self):
        with pytest.raises(ConfigurationError, match="no room for canary"):
            _config(soft_limit=50, hard_limit=60, canary_strategy=CanaryStrategy.INCLUDE)

    def test_canary_with_room(self):
        config = _config(canary_strategy=CanaryStrategy.INCLUDE)
        assert config.canary_strategy is CanaryStrategy.INCLUDE
