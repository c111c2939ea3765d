"""Tests for settings and logging setup."""

import pytest
import structlog
from pydantic import ValidationError

from py_mapgraph.config import Settings
from py_mapgraph.core.city import CityBlueprint, CityGenerator
from py_mapgraph.utils import configure_logging


@pytest.fixture
def reset_structlog():
    yield
    structlog.reset_defaults()


class TestSettings:
    """Test environment-driven settings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("MAPGRAPH_LOG_LEVEL", raising=False)
        s = Settings(_env_file=None)
        assert s.log_level == "INFO"
        assert s.max_subdivision_depth == 12
        assert s.pit_search_limit == 0

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("MAPGRAPH_MAX_SUBDIVISION_DEPTH", "4")
        monkeypatch.setenv("MAPGRAPH_LOG_FORMAT", "json")
        s = Settings(_env_file=None)
        assert s.max_subdivision_depth == 4
        assert s.log_format == "json"

    def test_rejects_invalid_limits(self, monkeypatch):
        monkeypatch.setenv("MAPGRAPH_MAX_SUBDIVISION_DEPTH", "0")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_generator_uses_explicit_depth(self):
        assert CityGenerator(CityBlueprint(), max_subdivision_depth=3).max_subdivision_depth == 3


class TestConfigureLogging:
    """Test structlog wiring."""

    @pytest.mark.parametrize("log_format", ["console", "json"])
    def test_configures_structlog(self, log_format, reset_structlog):
        configure_logging(Settings(_env_file=None, log_format=log_format, log_level="debug"))
        assert structlog.is_configured()
        structlog.get_logger("test").info("configured", log_format=log_format)
