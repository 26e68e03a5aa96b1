"""
Diagnostics Service

The facade front-ends use: wires registry, orchestrator, error log and
scheduler together, and keeps settings in sync with runtime changes.

Usage:
    service = DiagnosticsService.create()
    diagnostic_pass = service.run_now()
    print(service.render_report(diagnostic_pass))
    service.set_check_enabled("gpu", True)
    service.copy_report(CommandClipboard())
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Union

from .core.error_log import ErrorLog
from .core.errors import DiagnosticsError
from .core.models import DiagnosticPass, ErrorLogEntry
from .core.orchestrator import Orchestrator
from .core.registry import CheckRegistry
from .core.report import render_report
from .core.scheduler import RefreshInterval, Scheduler, shortest_interval_for
from .probes.catalog import build_default_registry
from .settings import DiagnosticSettings, SettingsStore

logger = logging.getLogger(__name__)


class DiagnosticsService:
    """Single entry point for running and reporting diagnostics."""

    def __init__(
        self,
        registry: CheckRegistry,
        settings: Optional[DiagnosticSettings] = None,
        store: Optional[SettingsStore] = None,
        probe_timeout: Optional[float] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._store = store
        if settings is None:
            settings = store.load() if store is not None else DiagnosticSettings()
        self._settings = settings

        self.registry = registry
        self.orchestrator = Orchestrator(
            registry,
            probe_timeout=probe_timeout or settings.probe_timeout,
            clock=clock,
        )
        self.error_log = ErrorLog()
        self.orchestrator.add_listener(self.error_log.update)
        self.scheduler = Scheduler(self.orchestrator, interval=self._fitting_interval(settings))

    @classmethod
    def create(cls, config_dir=None, probe_timeout: Optional[float] = None) -> 'DiagnosticsService':
        """Build a service with the built-in checks and persisted settings."""
        store = SettingsStore(config_dir)
        settings = store.load()
        registry = build_default_registry(settings)
        logger.debug(f"Settings loaded from {store.file_path}")
        return cls(registry, settings=settings, store=store, probe_timeout=probe_timeout)

    @property
    def settings(self) -> DiagnosticSettings:
        return self._settings

    def _fitting_interval(self, settings: DiagnosticSettings) -> RefreshInterval:
        """Saved interval, lengthened if the probe timeout in use cannot fit in it."""
        interval = settings.effective_interval
        budget = self.orchestrator.pass_budget
        if interval.enabled and interval.seconds <= budget:
            fitting = shortest_interval_for(budget)
            logger.warning(
                f"Refresh interval {interval.label} is shorter than a pass may take "
                f"({budget:.0f}s); using {fitting.label}"
            )
            return fitting
        return interval

    # === Running ===

    def run_now(self, block: bool = True) -> Optional[DiagnosticPass]:
        """
        Run a pass now, preempting any pass in flight.

        With block=False the pass runs in the background and None is
        returned; the result appears through current_pass().
        """
        if not block:
            self.scheduler.run_now()
            return None
        return self.orchestrator.run_pass()

    def current_pass(self) -> Optional[DiagnosticPass]:
        return self.orchestrator.current_pass()

    def error_log_entries(self) -> List[ErrorLogEntry]:
        return self.error_log.entries()

    def start(self) -> None:
        self.scheduler.start()

    def stop(self, cancel_running: bool = False) -> None:
        self.scheduler.stop()
        if cancel_running:
            self.orchestrator.cancel()

    # === Reporting ===

    def render_report(
        self,
        diagnostic_pass: Optional[DiagnosticPass] = None,
        include_error_log: bool = True,
    ) -> str:
        """Render a pass (default: the current one) as text."""
        if diagnostic_pass is None:
            diagnostic_pass = self.current_pass()
        if diagnostic_pass is None:
            raise DiagnosticsError("No diagnostic pass has completed yet")
        entries = self.error_log_entries() if include_error_log else None
        return render_report(diagnostic_pass, entries)

    def copy_report(self, sink, diagnostic_pass: Optional[DiagnosticPass] = None) -> str:
        """Render and hand the report to a sink with write_text(). Returns the text."""
        text = self.render_report(diagnostic_pass)
        sink.write_text(text)
        logger.info("Report copied")
        return text

    # === Configuration ===

    def set_refresh_interval(self, interval: Union[str, int, RefreshInterval],
                             persist: bool = True) -> RefreshInterval:
        """
        Change the auto-refresh interval.

        Raises:
            ConfigurationError: unknown interval, or one a pass cannot finish in
        """
        parsed = RefreshInterval.parse(interval)
        settings = self._settings.with_interval(parsed)
        if persist:
            settings.validate()
        self.scheduler.set_interval(parsed)
        self._update_settings(settings, persist)
        return parsed

    def set_check_enabled(self, check_id: str, enabled: bool, persist: bool = True) -> None:
        """
        Enable or disable a check from the next pass on.

        A disabled check keeps its error-log entry until it is re-enabled
        and reports OK.
        """
        self.registry.set_enabled(check_id, enabled)
        self._update_settings(self._settings.with_check(check_id, enabled), persist)

    def _update_settings(self, settings: DiagnosticSettings, persist: bool) -> None:
        self._settings = settings
        if persist and self._store is not None:
            self._store.save(settings)
