"""
Tests for settings validation and persistence.

Run: python3 -m pytest tests/test_settings.py -v
"""

import json
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from opencode_diag.core.errors import ConfigurationError
from opencode_diag.core.scheduler import RefreshInterval
from opencode_diag.settings import DEFAULT_ENABLED_CHECKS, DiagnosticSettings, SettingsStore
from opencode_diag.utils.paths import DiagPaths, get_real_user_home


class TestDiagnosticSettings:
    """Tests for the settings value object."""

    def test_defaults(self):
        """Defaults are valid and auto-refresh is off."""
        settings = DiagnosticSettings().validate()
        assert settings.enabled_checks == DEFAULT_ENABLED_CHECKS
        assert settings.refresh_interval == "1m"
        assert settings.effective_interval is RefreshInterval.OFF

    def test_defaults_not_shared(self):
        """Each instance gets its own enabled list."""
        assert DiagnosticSettings().enabled_checks is not DiagnosticSettings().enabled_checks

    @pytest.mark.parametrize("kwargs", [
        {"enabled_checks": "gpu"},
        {"enabled_checks": ["gpu", "gpu"]},
        {"enabled_checks": [1]},
        {"refresh_interval": "10s"},
        {"theme": "solarized"},
        {"probe_timeout": 0},
        {"probe_timeout": 500},
        {"probe_timeout": "10"},
        {"probe_timeout": True},
        {"auto_refresh": "yes"},
    ])
    def test_validate_rejects(self, kwargs):
        """Out-of-range values are configuration errors."""
        with pytest.raises(ConfigurationError):
            DiagnosticSettings(**kwargs).validate()

    def test_probe_timeout_must_fit_refresh_interval(self):
        """A pass that can outlast the auto-refresh interval is rejected."""
        too_slow = DiagnosticSettings(probe_timeout=60.0, refresh_interval="30s", auto_refresh=True)
        with pytest.raises(ConfigurationError, match="too short"):
            too_slow.validate()
        assert DiagnosticSettings(probe_timeout=60.0, refresh_interval="30s").validate()
        assert DiagnosticSettings(probe_timeout=60.0, refresh_interval="5m", auto_refresh=True).validate()

    def test_validate_known_checks(self):
        """Unknown check ids are rejected when the catalog is given."""
        settings = DiagnosticSettings(enabled_checks=["gpu", "teleporter"])
        with pytest.raises(ConfigurationError, match="teleporter"):
            settings.validate(known_checks=["gpu", "vpn"])

    def test_with_check(self):
        """Enabling appends, disabling removes, neither duplicates."""
        settings = DiagnosticSettings(enabled_checks=["internet"])
        settings = settings.with_check("gpu", True).with_check("gpu", True)
        assert settings.enabled_checks == ["internet", "gpu"]
        assert settings.with_check("internet", False).enabled_checks == ["gpu"]

    def test_with_interval(self):
        """Setting a preset turns auto-refresh on; off keeps the preset."""
        settings = DiagnosticSettings().with_interval("2m")
        assert settings.auto_refresh is True
        assert settings.effective_interval is RefreshInterval.MINUTE_2

        off = settings.with_interval("off")
        assert off.auto_refresh is False
        assert off.refresh_interval == "2m"
        assert off.effective_interval is RefreshInterval.OFF

    def test_from_dict_partial(self):
        """Missing keys take defaults and unknown keys are ignored."""
        settings = DiagnosticSettings.from_dict({"theme": "light", "legacy_option": 1})
        assert settings.theme == "light"
        assert settings.enabled_checks == DEFAULT_ENABLED_CHECKS

    def test_from_dict_not_object(self):
        """A JSON list is not a settings object."""
        with pytest.raises(ConfigurationError):
            DiagnosticSettings.from_dict(["gpu"])

    def test_to_dict(self):
        """to_dict() gives plain JSON-ready values."""
        data = DiagnosticSettings().to_dict()
        assert data["auto_refresh"] is False
        assert json.loads(json.dumps(data)) == data


class TestSettingsStore:
    """Tests for JSON persistence."""

    def test_missing_file_gives_defaults(self, tmp_path):
        """No file yet means default settings."""
        assert SettingsStore(tmp_path).load() == DiagnosticSettings()

    def test_save_and_load(self, tmp_path):
        """Saved settings survive a reload."""
        store = SettingsStore(tmp_path / "nested")
        settings = DiagnosticSettings(enabled_checks=["gpu"], theme="light").with_interval("5m")
        assert store.save(settings) is True
        assert store.file_path.exists()
        assert SettingsStore(tmp_path / "nested").load() == settings

    def test_invalid_json_gives_defaults(self, tmp_path):
        """A corrupt file is ignored."""
        store = SettingsStore(tmp_path)
        store.file_path.write_text("{not json")
        assert store.load() == DiagnosticSettings()

    def test_invalid_values_give_defaults(self, tmp_path):
        """A file that fails validation is ignored."""
        store = SettingsStore(tmp_path)
        store.file_path.write_text(json.dumps({"refresh_interval": "10s"}))
        assert store.load() == DiagnosticSettings()

    def test_save_invalid_raises(self, tmp_path):
        """Invalid settings are never written."""
        store = SettingsStore(tmp_path)
        with pytest.raises(ConfigurationError):
            store.save(DiagnosticSettings(theme="neon"))
        assert not store.file_path.exists()


class TestPaths:
    """Tests for settings file locations."""

    def test_override(self, tmp_path):
        """An explicit directory wins."""
        assert DiagPaths.get_settings_file(tmp_path) == tmp_path / "settings.json"
        assert DiagPaths.get_log_file(tmp_path) == tmp_path / "diag.log"

    def test_default_location(self):
        """Settings default to ~/.config/opencode-diag."""
        expected = get_real_user_home() / ".config" / "opencode-diag" / "settings.json"
        assert DiagPaths.get_settings_file() == expected

    def test_sudo_user_home(self):
        """Under sudo the invoking user's home is used."""
        with patch.dict('os.environ', {'SUDO_USER': 'alice'}):
            assert get_real_user_home() == Path('/home/alice')

    def test_root_sudo_user_ignored(self):
        """SUDO_USER=root falls back to the current home."""
        with patch.dict('os.environ', {'SUDO_USER': 'root'}), \
                patch('pathlib.Path.home', return_value=Path('/root')):
            assert get_real_user_home() == Path('/root')
