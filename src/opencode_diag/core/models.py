"""
Diagnostic Data Models

These data structures are shared by the orchestrator, error log,
report generator, CLI and any presentation layer:
- Immutable (frozen dataclasses), safe to hand across threads
- JSON serialization built-in for CLI/API output
- Status is totally ordered so aggregation is a plain max()
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple


# === Status Enums ===

_SEVERITY = {
    "ok": 0,
    "unknown": 1,
    "warning": 2,
    "critical": 3,
}


class Status(Enum):
    """Severity of a check result, ordered OK < UNKNOWN < WARNING < CRITICAL."""
    OK = "ok"               # Link healthy
    UNKNOWN = "unknown"     # Could not determine, or informational presence
    WARNING = "warning"     # Degraded but usable
    CRITICAL = "critical"   # Link broken

    @property
    def severity(self) -> int:
        return _SEVERITY[self.value]

    @property
    def glyph(self) -> str:
        """Short status marker used in text reports."""
        return _GLYPHS[self]

    @property
    def label(self) -> str:
        return self.name

    def is_ok(self) -> bool:
        return self is Status.OK

    def __lt__(self, other):
        if self.__class__ is other.__class__:
            return self.severity < other.severity
        return NotImplemented

    def __le__(self, other):
        if self.__class__ is other.__class__:
            return self.severity <= other.severity
        return NotImplemented

    def __gt__(self, other):
        if self.__class__ is other.__class__:
            return self.severity > other.severity
        return NotImplemented

    def __ge__(self, other):
        if self.__class__ is other.__class__:
            return self.severity >= other.severity
        return NotImplemented


_GLYPHS = {
    Status.OK: "[OK]",
    Status.UNKNOWN: "[??]",
    Status.WARNING: "[!!]",
    Status.CRITICAL: "[XX]",
}


class CheckCategory(Enum):
    """Categories for diagnostic checks, one per link of the chain."""
    SYSTEM = "system"             # CPU, RAM, disk, GPU
    NETWORK = "network"           # internet reachability, VPN
    API_PROVIDER = "api_provider"  # Claude, OpenAI, Google AI
    PROCESS = "process"           # opencode, terminals


def aggregate_status(statuses: Iterable[Status]) -> Status:
    """Return the most severe status; an empty set yields UNKNOWN."""
    statuses = list(statuses)
    if not statuses:
        return Status.UNKNOWN
    return max(statuses)


# === Registry Types ===

@dataclass(frozen=True)
class CheckDefinition:
    """
    Identity of a registered check.

    Attributes:
        id: Stable identifier (e.g. "claude_api")
        category: Which link of the chain this check covers
        display_name: Name shown in reports (e.g. "CLAUDE API")
        enabled: Whether the check runs in the next pass
    """
    id: str
    category: CheckCategory
    display_name: str
    enabled: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category": self.category.value,
            "display_name": self.display_name,
            "enabled": self.enabled,
        }


# === Core Result Types ===

@dataclass(frozen=True)
class CheckResult:
    """
    Result of a single probe invocation.

    Every probe invocation produces exactly one CheckResult per pass.

    Attributes:
        check_id: Id of the check that produced it
        display_name: Human-readable check name
        status: Severity of the result
        headline: Short verdict (e.g. "OVERLOADED", "AVAILABLE")
        detail: Free-form metrics, insertion order preserved
        timestamp: When the result was produced
        latency_ms: How long the probe took
        error: Why the probe could not produce a real measurement
        fix_hint: Actionable suggestion for non-OK results
    """
    check_id: str
    display_name: str
    status: Status
    headline: str
    detail: Mapping[str, str] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)
    latency_ms: float = 0.0
    error: Optional[str] = None
    fix_hint: Optional[str] = None

    def __post_init__(self):
        frozen = MappingProxyType({str(k): str(v) for k, v in self.detail.items()})
        object.__setattr__(self, "detail", frozen)

    def __hash__(self):
        return hash((
            self.check_id, self.display_name, self.status, self.headline,
            tuple(self.detail.items()), self.timestamp, self.latency_ms,
            self.error, self.fix_hint,
        ))

    def is_ok(self) -> bool:
        return self.status is Status.OK

    def to_dict(self) -> dict:
        """Serialize for JSON output."""
        return {
            "check_id": self.check_id,
            "display_name": self.display_name,
            "status": self.status.value,
            "headline": self.headline,
            "detail": dict(self.detail),
            "timestamp": self.timestamp.isoformat(),
            "latency_ms": round(self.latency_ms, 1),
            "error": self.error,
            "fix_hint": self.fix_hint,
        }


@dataclass(frozen=True)
class DiagnosticPass:
    """
    One sealed diagnostic run.

    results holds one CheckResult per check enabled when the pass started,
    in registry order. overall_status is the max severity across results.
    """
    pass_id: int
    started_at: datetime
    finished_at: datetime
    results: Tuple[CheckResult, ...]
    overall_status: Status

    @classmethod
    def seal(
        cls,
        pass_id: int,
        started_at: datetime,
        finished_at: datetime,
        results: Iterable[CheckResult],
    ) -> 'DiagnosticPass':
        """Build a pass, computing overall_status from the results."""
        results = tuple(results)
        return cls(
            pass_id=pass_id,
            started_at=started_at,
            finished_at=finished_at,
            results=results,
            overall_status=aggregate_status(r.status for r in results),
        )

    @property
    def check_ids(self) -> Tuple[str, ...]:
        return tuple(r.check_id for r in self.results)

    @property
    def is_healthy(self) -> bool:
        return self.overall_status is Status.OK

    @property
    def duration_ms(self) -> float:
        return (self.finished_at - self.started_at).total_seconds() * 1000

    def result_for(self, check_id: str) -> Optional[CheckResult]:
        for result in self.results:
            if result.check_id == check_id:
                return result
        return None

    def summary(self) -> Dict[str, int]:
        """Counts by status."""
        counts = {status.value: 0 for status in Status}
        for result in self.results:
            counts[result.status.value] += 1
        counts["total"] = len(self.results)
        return counts

    def to_dict(self) -> dict:
        return {
            "pass_id": self.pass_id,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
            "overall_status": self.overall_status.value,
            "summary": self.summary(),
            "results": [r.to_dict() for r in self.results],
        }


@dataclass(frozen=True)
class ErrorLogEntry:
    """
    A grouped run of consecutive non-OK results for one check.

    Attributes:
        check_id: Check the entry belongs to
        display_name: Name shown in reports
        status: Status of the most recent non-OK result
        last_message: Headline of the most recent non-OK result
        first_seen: Timestamp of the first result in the run
        last_seen: Timestamp of the most recent result in the run
        occurrence_count: Consecutive non-OK results since the last OK
        recent_times: Up to five most recent occurrence times, newest first
    """
    check_id: str
    display_name: str
    status: Status
    last_message: str
    first_seen: datetime
    last_seen: datetime
    occurrence_count: int = 1
    recent_times: Tuple[datetime, ...] = ()

    def format_times(self, fmt: str = "%H:%M") -> str:
        return ", ".join(t.strftime(fmt) for t in self.recent_times)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "check_id": self.check_id,
            "display_name": self.display_name,
            "status": self.status.value,
            "last_message": self.last_message,
            "first_seen": self.first_seen.isoformat(),
            "last_seen": self.last_seen.isoformat(),
            "occurrence_count": self.occurrence_count,
            "recent_times": [t.isoformat() for t in self.recent_times],
        }
