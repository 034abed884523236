"""
Tests for settings and logging setup.
"""

import logging

import pytest

from app.core.config import Settings
from app.core.logging_config import configure_logging
from app.environments.base import ConfigError


class TestDestinationIdFor:
    """Tests for Settings.destination_id_for."""

    def test_configured(self):
        settings = Settings(_env_file=None, NOTION_DB_TASKS="abc", NOTION_DB_KNOWLEDGE="def")

        assert settings.destination_id_for("Tasks") == "abc"
        assert settings.destination_id_for("Knowledge") == "def"

    def test_empty_binding_raises(self):
        settings = Settings(_env_file=None, NOTION_DB_TASKS="")

        with pytest.raises(ConfigError):
            settings.destination_id_for("Tasks")

    def test_unknown_kind_raises(self):
        with pytest.raises(ConfigError):
            Settings(_env_file=None).destination_id_for("Journal")

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.PREVIEW_TTL_SECONDS == 600
        assert settings.LOCATION_TTL_SECONDS == 7200
        assert settings.NOTION_VERSION == "2022-06-28"


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_handler_added_once(self):
        logger = configure_logging("debug")
        configure_logging("info")

        assert logger.name == "notebridge"
        assert len(logger.handlers) == 1
        assert logger.level == logging.INFO
