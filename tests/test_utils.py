"""
Tests for logging, environment and console helpers.

Run: python3 -m pytest tests/test_utils.py -v
"""

import io
import logging
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from opencode_diag.core.models import Status
from opencode_diag.utils import config as env_config
from opencode_diag.utils.console import DARK_THEME, LIGHT_THEME, get_console, reset_console, status_style
from opencode_diag.utils.logging_config import ColoredFormatter, parse_level


class TestParseLevel:
    """Tests for parse_level()."""

    @pytest.mark.parametrize("value,expected", [
        ("debug", logging.DEBUG),
        (" Warning ", logging.WARNING),
        ("ERROR", logging.ERROR),
        (logging.INFO, logging.INFO),
        ("chatty", logging.CRITICAL),
        ("", logging.CRITICAL),
        (None, logging.CRITICAL),
    ])
    def test_parse_level(self, value, expected):
        """Names and numbers parse; anything else falls back to the default."""
        assert parse_level(value, default=logging.CRITICAL) == expected


class TestColoredFormatter:
    """Tests for ColoredFormatter."""

    def test_no_colors_off_terminal(self):
        """A non-tty stream gets plain level names."""
        formatter = ColoredFormatter("%(levelname)s %(message)s", stream=io.StringIO())
        record = logging.LogRecord("x", logging.ERROR, __file__, 1, "boom", None, None)
        assert formatter.format(record) == "ERROR boom"

    def test_record_not_mutated(self):
        """Coloring leaves the original record for other handlers."""
        tty = io.StringIO()
        tty.isatty = lambda: True
        formatter = ColoredFormatter("%(levelname)s", stream=tty)
        record = logging.LogRecord("x", logging.WARNING, __file__, 1, "slow", None, None)
        assert "\033[33m" in formatter.format(record)
        assert record.levelname == "WARNING"


class TestEnvironment:
    """Tests for environment overrides."""

    def test_probe_timeout(self):
        """A positive number is used as the probe timeout."""
        with patch.dict('os.environ', {env_config.ENV_PROBE_TIMEOUT: "4.5"}):
            assert env_config.probe_timeout() == 4.5

    @pytest.mark.parametrize("raw", ["", "soon", "0", "-3"])
    def test_probe_timeout_invalid(self, raw):
        """Unset or invalid values are ignored."""
        with patch.dict('os.environ', {env_config.ENV_PROBE_TIMEOUT: raw}):
            assert env_config.probe_timeout() is None

    def test_log_level_default(self):
        """Log level defaults to WARNING."""
        with patch.dict('os.environ', {}, clear=True):
            assert env_config.log_level() == 'WARNING'
            assert env_config.config_dir() is None
            assert env_config.log_file() is None

    def test_config_dir(self, tmp_path):
        """The settings directory can be overridden."""
        with patch.dict('os.environ', {env_config.ENV_CONFIG_DIR: str(tmp_path)}):
            assert env_config.config_dir() == str(tmp_path)


class TestConsole:
    """Tests for the shared rich console."""

    def teardown_method(self):
        reset_console()

    def test_status_styles_exist_in_themes(self):
        """Every status has a style in both themes."""
        for status in Status:
            assert status_style(status) in DARK_THEME.styles
            assert status_style(status) in LIGHT_THEME.styles

    def test_singleton(self):
        """get_console() returns the same instance until reset."""
        reset_console()
        first = get_console()
        assert get_console() is first
        reset_console()
        assert get_console() is not first
