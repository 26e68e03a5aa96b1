"""Exception types for the diagnostics core.

Probe-level failures (timeouts, unavailable probes, transport failures)
are raised inside probe implementations and absorbed into a CheckResult
by the probe base class. They never escape a pass.
"""


class DiagnosticsError(Exception):
    """Base class for diagnostics errors."""


class ProbeError(DiagnosticsError):
    """Base class for failures raised inside a probe."""


class ProbeTimeout(ProbeError):
    """A probe exceeded its timeout."""


class ProbeUnavailable(ProbeError):
    """A probe cannot run at all (missing permission, tool or library)."""


class TransportFailure(ProbeError):
    """A network or API probe could not connect."""


class ProbeCancelled(ProbeError):
    """The pass a probe belongs to was cancelled."""


class ConfigurationError(DiagnosticsError):
    """An invalid settings value was rejected."""


class InvariantViolation(DiagnosticsError):
    """Internal orchestration invariant broken (programming error)."""


class SinkUnavailable(DiagnosticsError):
    """A report sink (e.g. the clipboard) could not accept output."""
