"""
Clock and configuration tests.
"""

import logging

import pytest

from src.core import config
from src.core.clock import BlockClock


@pytest.fixture
def bad_lock_config():
    """Break lock settings by patching the global flags."""
    original_granularity = config.LOCK_GRANULARITY
    original_stripes = config.LOCK_STRIPES
    config.LOCK_GRANULARITY = "table"
    config.LOCK_STRIPES = 0
    yield
    config.LOCK_GRANULARITY = original_granularity
    config.LOCK_STRIPES = original_stripes


class TestBlockClock:

    def test_defaults_to_height_one(self):
        assert BlockClock().height() == 1

    def test_advance_and_set(self):
        clock = BlockClock(start=5)

        assert clock.advance() == 6
        assert clock.advance(4) == 10
        assert clock.set(10) == 10
        assert clock.set(20) == 20
        assert clock.height() == 20

    def test_cannot_move_backwards(self):
        clock = BlockClock(start=5)

        with pytest.raises(ValueError, match="backwards"):
            clock.set(4)
        with pytest.raises(ValueError, match="backwards"):
            clock.advance(-1)
        assert clock.height() == 5

    def test_negative_start(self):
        with pytest.raises(ValueError):
            BlockClock(start=-1)


class TestConfig:

    def test_default_config_is_valid(self):
        assert config.validate_registry_config() == []

    def test_invalid_lock_settings_reported(self, bad_lock_config):
        issues = config.validate_registry_config()

        assert "Invalid LOCK_GRANULARITY: table" in issues
        assert "LOCK_STRIPES must be >= 1" in issues

    def test_debug_enabled_reads_environment(self, monkeypatch):
        monkeypatch.setenv("DEBUG", "true")
        assert config.debug_enabled() is True
        monkeypatch.setenv("DEBUG", "false")
        assert config.debug_enabled() is False

    @pytest.mark.parametrize("debug,level", [("true", logging.DEBUG), ("false", logging.INFO)])
    def test_debug_flag_sets_logger_level(self, monkeypatch, debug, level):
        from util.logging import StructuredLogger

        monkeypatch.setenv("DEBUG", debug)
        structured = StructuredLogger(f"test_debug_level_{debug}")

        assert structured.logger.level == level
