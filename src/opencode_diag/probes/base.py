"""
Probe base classes.

A probe is one link of the dependency chain. Concrete probes implement
probe() and return a CheckResult built with make_result(); execute()
wraps that call so that it:
- never blocks past the timeout (the body runs in a daemon worker thread
  which is abandoned if it overruns)
- absorbs every probe-level failure into a CheckResult
- stamps the measured latency on the result

Usage:
    probe = ApiProbe(CLAUDE)
    result = probe.execute(timeout=10.0, token=CancelToken())
"""

import dataclasses
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional

from ..core.cancel import CancelToken
from ..core.errors import (
    ProbeCancelled,
    ProbeTimeout,
    ProbeUnavailable,
    TransportFailure,
)
from ..core.models import CheckCategory, CheckResult, Status

logger = logging.getLogger(__name__)


class Probe(ABC):
    """Base class for all probes."""

    category: CheckCategory = CheckCategory.SYSTEM
    # Network and API probes report a timeout as a degraded link, not a tool fault
    timeout_status: Status = Status.UNKNOWN

    def __init__(self, check_id: str, display_name: str):
        self.check_id = check_id
        self.display_name = display_name

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.check_id!r})"

    @abstractmethod
    def probe(self, timeout: float, token: CancelToken) -> CheckResult:
        """Run the check. May raise ProbeError subclasses."""

    def make_result(
        self,
        status: Status,
        headline: str,
        detail: Optional[Mapping[str, Any]] = None,
        error: Optional[str] = None,
        fix_hint: Optional[str] = None,
    ) -> CheckResult:
        return CheckResult(
            check_id=self.check_id,
            display_name=self.display_name,
            status=status,
            headline=headline,
            detail=detail or {},
            error=error,
            fix_hint=fix_hint,
        )

    def execute(self, timeout: float, token: Optional[CancelToken] = None) -> CheckResult:
        """Run the probe, bounded by timeout. Never raises."""
        if token is None:
            token = CancelToken()

        outcome: Dict[str, Any] = {}

        def target():
            try:
                outcome["result"] = self.probe(timeout, token)
            except Exception as e:
                outcome["error"] = e

        start = time.monotonic()
        worker = threading.Thread(target=target, name=f"probe-{self.check_id}", daemon=True)
        worker.start()
        worker.join(timeout)
        latency_ms = (time.monotonic() - start) * 1000

        if worker.is_alive():
            logger.warning(f"Probe {self.check_id} exceeded {timeout:.1f}s, abandoning")
            return self._stamp(self.timeout_result(timeout), latency_ms)

        if "result" in outcome:
            return self._stamp(outcome["result"], latency_ms)

        return self._stamp(self.failure_result(outcome.get("error"), timeout), latency_ms)

    def timeout_result(self, timeout: float) -> CheckResult:
        return self.make_result(
            self.timeout_status,
            "TIMEOUT",
            error=f"timed out after {timeout:.1f}s",
            fix_hint=self.timeout_hint(),
        )

    def timeout_hint(self) -> Optional[str]:
        return None

    def failure_result(self, exc: Optional[BaseException], timeout: float) -> CheckResult:
        """Map an exception raised by probe() onto a result."""
        if isinstance(exc, ProbeTimeout):
            return self.timeout_result(timeout)
        if isinstance(exc, TransportFailure):
            return self.make_result(
                Status.CRITICAL,
                "DOWN",
                error=str(exc),
                fix_hint=self.transport_hint(),
            )
        if isinstance(exc, ProbeUnavailable):
            return self.make_result(Status.UNKNOWN, "UNAVAILABLE", error=str(exc))
        if isinstance(exc, ProbeCancelled):
            return self.make_result(Status.UNKNOWN, "CANCELLED", error="cancelled")

        logger.error(f"Probe {self.check_id} raised unexpectedly: {exc}", exc_info=exc)
        return self.make_result(Status.UNKNOWN, "ERROR", error=str(exc) or exc.__class__.__name__)

    def transport_hint(self) -> Optional[str]:
        return "Check your network connection."

    @staticmethod
    def _stamp(result: CheckResult, latency_ms: float) -> CheckResult:
        return dataclasses.replace(result, latency_ms=latency_ms)


class SystemProbe(Probe):
    """Local machine resources."""
    category = CheckCategory.SYSTEM
    timeout_status = Status.UNKNOWN


class NetworkProbe(Probe):
    """Network reachability and VPN state."""
    category = CheckCategory.NETWORK
    timeout_status = Status.CRITICAL

    def timeout_hint(self) -> Optional[str]:
        return "Network is not responding. Check your connection."


class ApiProviderProbe(Probe):
    """Third-party AI API availability."""
    category = CheckCategory.API_PROVIDER
    timeout_status = Status.CRITICAL

    def timeout_hint(self) -> Optional[str]:
        return f"{self.display_name} is not responding. Try again later."

    def transport_hint(self) -> Optional[str]:
        return f"Cannot reach {self.display_name}. Check your network or the provider status page."


class ProcessProbe(Probe):
    """Local client processes."""
    category = CheckCategory.PROCESS
    timeout_status = Status.UNKNOWN
