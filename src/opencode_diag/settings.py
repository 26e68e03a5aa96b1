"""
Settings persistence for OpenCode Diagnostics.

Settings live in ~/.config/opencode-diag/settings.json and are merged
with defaults on load, so a file written by an older version (or edited
by hand with keys missing) still loads. A file that cannot be parsed or
fails validation is ignored with an error logged, and defaults are used.

Usage:
    store = SettingsStore()
    settings = store.load()
    store.save(settings.with_check("gpu", True))
"""

import dataclasses
import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .core.errors import ConfigurationError
from .core.orchestrator import pass_budget
from .core.scheduler import RefreshInterval, check_interval
from .utils.paths import DiagPaths

logger = logging.getLogger(__name__)

DEFAULT_ENABLED_CHECKS = ["local_resources", "internet", "vpn", "claude_api", "opencode"]
THEMES = ("dark", "light")
MAX_PROBE_TIMEOUT = 120.0


@dataclass(frozen=True)
class DiagnosticSettings:
    """
    User configuration.

    Attributes:
        enabled_checks: Ids of checks that run each pass
        refresh_interval: Preset label used when auto-refresh is on
        auto_refresh: Whether the scheduler timer runs at all
        theme: Console theme ("dark" or "light")
        probe_timeout: Per-probe timeout in seconds
        require_client: Treat a missing client process as CRITICAL
    """
    enabled_checks: List[str] = field(default_factory=lambda: list(DEFAULT_ENABLED_CHECKS))
    refresh_interval: str = "1m"
    auto_refresh: bool = False
    theme: str = "dark"
    probe_timeout: float = 10.0
    require_client: bool = False

    def validate(self, known_checks: Optional[Iterable[str]] = None) -> 'DiagnosticSettings':
        """Raise ConfigurationError if any value is out of range."""
        if not isinstance(self.enabled_checks, list) or \
                not all(isinstance(c, str) for c in self.enabled_checks):
            raise ConfigurationError("enabled_checks must be a list of check ids")
        if len(set(self.enabled_checks)) != len(self.enabled_checks):
            raise ConfigurationError("enabled_checks contains duplicates")
        if known_checks is not None:
            unknown = sorted(set(self.enabled_checks) - set(known_checks))
            if unknown:
                raise ConfigurationError(f"Unknown check id(s): {', '.join(unknown)}")

        RefreshInterval.parse(self.refresh_interval)

        if self.theme not in THEMES:
            raise ConfigurationError(f"theme must be one of {', '.join(THEMES)}, got {self.theme!r}")
        if isinstance(self.probe_timeout, bool) or not isinstance(self.probe_timeout, (int, float)):
            raise ConfigurationError("probe_timeout must be a number of seconds")
        if not 0 < self.probe_timeout <= MAX_PROBE_TIMEOUT:
            raise ConfigurationError(
                f"probe_timeout must be in (0, {MAX_PROBE_TIMEOUT:.0f}] seconds, got {self.probe_timeout}"
            )
        if not isinstance(self.auto_refresh, bool) or not isinstance(self.require_client, bool):
            raise ConfigurationError("auto_refresh and require_client must be true or false")
        check_interval(self.effective_interval, pass_budget(self.probe_timeout))
        return self

    @property
    def effective_interval(self) -> RefreshInterval:
        """Interval the scheduler should use: OFF unless auto-refresh is on."""
        if not self.auto_refresh:
            return RefreshInterval.OFF
        return RefreshInterval.parse(self.refresh_interval)

    def with_check(self, check_id: str, enabled: bool) -> 'DiagnosticSettings':
        checks = [c for c in self.enabled_checks if c != check_id]
        if enabled:
            checks.append(check_id)
        return dataclasses.replace(self, enabled_checks=checks)

    def with_interval(self, interval) -> 'DiagnosticSettings':
        """Store an interval; "off" turns auto-refresh off but keeps the preset."""
        parsed = RefreshInterval.parse(interval)
        if not parsed.enabled:
            return dataclasses.replace(self, auto_refresh=False)
        return dataclasses.replace(self, refresh_interval=parsed.label, auto_refresh=True)

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DiagnosticSettings':
        """Build from a (possibly partial) dict; unknown keys are ignored."""
        if not isinstance(data, dict):
            raise ConfigurationError("settings must be a JSON object")
        names = {f.name for f in dataclasses.fields(cls)}
        ignored = sorted(set(data) - names)
        if ignored:
            logger.debug(f"Ignoring unknown settings keys: {', '.join(ignored)}")
        values = {k: v for k, v in data.items() if k in names}
        if 'enabled_checks' in values and isinstance(values['enabled_checks'], tuple):
            values['enabled_checks'] = list(values['enabled_checks'])
        return cls(**values).validate()


class SettingsStore:
    """JSON-backed settings persistence with defaults."""

    def __init__(self, config_dir: Optional[Path] = None):
        self._settings_file = DiagPaths.get_settings_file(config_dir)
        self._lock = threading.Lock()

    @property
    def file_path(self) -> Path:
        return self._settings_file

    def load(self) -> DiagnosticSettings:
        """Load settings, falling back to defaults if missing or invalid."""
        with self._lock:
            if not self._settings_file.exists():
                return DiagnosticSettings()
            try:
                with open(self._settings_file, 'r') as f:
                    saved = json.load(f)
                return DiagnosticSettings.from_dict(saved)
            except json.JSONDecodeError as e:
                logger.error(f"Invalid JSON in {self._settings_file}: {e}")
            except ConfigurationError as e:
                logger.error(f"Invalid settings in {self._settings_file}: {e}")
            except (IOError, TypeError) as e:
                logger.error(f"Error reading {self._settings_file}: {e}")
            return DiagnosticSettings()

    def save(self, settings: DiagnosticSettings) -> bool:
        """
        Validate and write settings.

        Raises:
            ConfigurationError: settings are invalid; nothing is written
        """
        settings.validate()
        with self._lock:
            try:
                self._settings_file.parent.mkdir(parents=True, exist_ok=True)
                with open(self._settings_file, 'w') as f:
                    json.dump(settings.to_dict(), f, indent=2)
                return True
            except IOError as e:
                logger.error(f"Error saving {self._settings_file}: {e}")
                return False
