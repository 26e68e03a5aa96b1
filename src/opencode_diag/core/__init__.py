"""
Diagnostic Check Orchestration Engine

The pieces every front-end (CLI, GUI, scripts) consumes:

Usage:
    from opencode_diag.core import CheckRegistry, Orchestrator, ErrorLog

    orchestrator = Orchestrator(registry, probe_timeout=10.0)
    orchestrator.add_listener(error_log.update)
    diagnostic_pass = orchestrator.run_pass()
    print(render_report(diagnostic_pass, error_log.entries()))
"""

from .cancel import CancelToken
from .error_log import ErrorLog
from .errors import (
    ConfigurationError,
    DiagnosticsError,
    InvariantViolation,
    ProbeCancelled,
    ProbeError,
    ProbeTimeout,
    ProbeUnavailable,
    SinkUnavailable,
    TransportFailure,
)
from .models import (
    CheckCategory,
    CheckDefinition,
    CheckResult,
    DiagnosticPass,
    ErrorLogEntry,
    Status,
    aggregate_status,
)
from .orchestrator import Orchestrator, PassCell
from .registry import CheckRegistry
from .report import render_report
from .scheduler import REFRESH_PRESETS, RefreshInterval, Scheduler, SchedulerState

__all__ = [
    'CancelToken',
    'CheckCategory',
    'CheckDefinition',
    'CheckRegistry',
    'CheckResult',
    'ConfigurationError',
    'DiagnosticPass',
    'DiagnosticsError',
    'ErrorLog',
    'ErrorLogEntry',
    'InvariantViolation',
    'Orchestrator',
    'PassCell',
    'ProbeCancelled',
    'ProbeError',
    'ProbeTimeout',
    'ProbeUnavailable',
    'REFRESH_PRESETS',
    'RefreshInterval',
    'Scheduler',
    'SinkUnavailable',
    'SchedulerState',
    'Status',
    'TransportFailure',
    'aggregate_status',
    'render_report',
]
