"""
Pass Orchestrator

Runs every enabled probe for one diagnostic pass concurrently and seals
the results into a DiagnosticPass.

Guarantees:
1. At most one pass is assembled at a time; starting a new pass cancels
   the one in flight, which is then discarded and never published
2. Each probe is bounded by the per-probe timeout; the whole pass is
   bounded by the run deadline, after which outstanding slots are filled
   with "timed out" results
3. Results come back in registry order regardless of completion order
4. Publication is serialized and is the only point where listeners and
   current_pass() observe new data

Usage:
    orchestrator = Orchestrator(registry, probe_timeout=10.0)
    orchestrator.add_listener(error_log.update)
    diagnostic_pass = orchestrator.run_pass()
"""

import logging
import threading
import time
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from .cancel import CancelToken
from .errors import InvariantViolation
from .models import CheckDefinition, CheckResult, DiagnosticPass, Status
from .registry import CheckRegistry

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT = 10.0      # seconds
DEFAULT_DEADLINE_FACTOR = 2.0     # run deadline = factor * probe timeout
DEFAULT_GRACE_PERIOD = 1.0        # seconds a cancelled pass waits for its probes

PassListener = Callable[[DiagnosticPass], None]


def pass_budget(probe_timeout: float, grace_period: float = DEFAULT_GRACE_PERIOD) -> float:
    """Longest a pass can hold the run slot: run deadline plus cancel grace."""
    return probe_timeout * DEFAULT_DEADLINE_FACTOR + grace_period


class PassCell:
    """Versioned single-writer cell holding the last sealed pass."""

    def __init__(self):
        self._lock = threading.Lock()
        self._version = 0
        self._pass: Optional[DiagnosticPass] = None

    def publish(self, diagnostic_pass: DiagnosticPass) -> int:
        with self._lock:
            if self._pass is not None and diagnostic_pass.pass_id <= self._pass.pass_id:
                raise InvariantViolation(
                    f"Pass #{diagnostic_pass.pass_id} published after #{self._pass.pass_id}"
                )
            self._pass = diagnostic_pass
            self._version += 1
            return self._version

    def get(self) -> Optional[DiagnosticPass]:
        with self._lock:
            return self._pass

    def snapshot(self) -> Tuple[int, Optional[DiagnosticPass]]:
        with self._lock:
            return self._version, self._pass

    @property
    def version(self) -> int:
        with self._lock:
            return self._version


class _Run:
    """State of the pass currently being assembled."""

    def __init__(
        self,
        pass_id: int,
        started_at: datetime,
        checks: List[Tuple[CheckDefinition, object]],
        probe_timeout: float,
        run_deadline: float,
    ):
        self.pass_id = pass_id
        self.started_at = started_at
        self.checks = checks
        self.probe_timeout = probe_timeout
        self.run_deadline = run_deadline
        self.token = CancelToken()


def timed_out_result(definition: CheckDefinition, waited: float) -> CheckResult:
    """Fill-in for a probe still outstanding at the run deadline."""
    return CheckResult(
        check_id=definition.id,
        display_name=definition.display_name,
        status=Status.UNKNOWN,
        headline="TIMEOUT",
        error="timed out",
        latency_ms=waited * 1000,
    )


class Orchestrator:
    """Runs diagnostic passes over a CheckRegistry."""

    def __init__(
        self,
        registry: CheckRegistry,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
        run_deadline: Optional[float] = None,
        grace_period: float = DEFAULT_GRACE_PERIOD,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._registry = registry
        self._probe_timeout = probe_timeout
        self._run_deadline = run_deadline
        self._grace_period = grace_period
        self._clock = clock

        # Run slot: guards _active, pass numbering and publication
        self._run_lock = threading.Lock()
        self._active: Optional[_Run] = None
        self._next_pass_id = 1

        self._cell = PassCell()
        self._listeners: List[PassListener] = []
        self._listeners_lock = threading.Lock()

    # === Configuration ===

    @property
    def probe_timeout(self) -> float:
        return self._probe_timeout

    @probe_timeout.setter
    def probe_timeout(self, value: float):
        self._probe_timeout = float(value)

    @property
    def run_deadline(self) -> float:
        if self._run_deadline is not None:
            return self._run_deadline
        return self._probe_timeout * DEFAULT_DEADLINE_FACTOR

    @run_deadline.setter
    def run_deadline(self, value: Optional[float]):
        self._run_deadline = value

    @property
    def pass_budget(self) -> float:
        return self.run_deadline + self._grace_period

    def add_listener(self, listener: PassListener) -> None:
        """Register a callback invoked with every published pass.

        Listeners run while publication is serialized and must not start
        a new pass themselves.
        """
        with self._listeners_lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: PassListener) -> None:
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    # === State ===

    @property
    def is_running(self) -> bool:
        with self._run_lock:
            return self._active is not None

    def current_pass(self) -> Optional[DiagnosticPass]:
        """Last sealed pass, or None before the first run."""
        return self._cell.get()

    @property
    def version(self) -> int:
        return self._cell.version

    def cancel(self) -> bool:
        """Cancel the pass in flight, if any."""
        with self._run_lock:
            run = self._active
            if run is None:
                return False
            self._active = None
        run.token.cancel()
        logger.info(f"Pass #{run.pass_id} cancelled")
        return True

    # === Execution ===

    def run_pass(self) -> Optional[DiagnosticPass]:
        """Run one pass. Returns None if it was preempted or cancelled."""
        run = self._begin()
        results = self._execute(run)
        if results is None:
            return None
        return self._publish(run, results)

    def _begin(self) -> _Run:
        with self._run_lock:
            previous = self._active
            run = _Run(
                pass_id=self._next_pass_id,
                started_at=self._clock(),
                checks=self._registry.snapshot(),
                probe_timeout=self._probe_timeout,
                run_deadline=self.run_deadline,
            )
            self._next_pass_id += 1
            self._active = run

        if previous is not None:
            logger.info(f"Pass #{run.pass_id} preempts pass #{previous.pass_id}")
            previous.token.cancel()

        logger.info(f"Pass #{run.pass_id} started with {len(run.checks)} check(s)")
        return run

    def _execute(self, run: _Run) -> Optional[List[CheckResult]]:
        count = len(run.checks)
        slots: List[Optional[CheckResult]] = [None] * count
        pending = [count]
        settled = threading.Condition()

        def wake():
            with settled:
                settled.notify_all()

        run.token.on_cancel(wake)

        def invoke(index: int, definition: CheckDefinition, probe) -> None:
            try:
                result = probe.execute(run.probe_timeout, run.token)
            except Exception as e:
                logger.error(f"Probe {definition.id} raised from execute(): {e}", exc_info=True)
                result = CheckResult(
                    check_id=definition.id,
                    display_name=definition.display_name,
                    status=Status.UNKNOWN,
                    headline="ERROR",
                    error=str(e) or e.__class__.__name__,
                )
            with settled:
                slots[index] = result
                pending[0] -= 1
                settled.notify_all()

        for index, (definition, probe) in enumerate(run.checks):
            worker = threading.Thread(
                target=invoke,
                args=(index, definition, probe),
                name=f"pass{run.pass_id}-{definition.id}",
                daemon=True,
            )
            worker.start()

        start = time.monotonic()
        deadline = start + run.run_deadline
        with settled:
            while pending[0] > 0 and not run.token.cancelled:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                settled.wait(remaining)

            if run.token.cancelled:
                grace_deadline = time.monotonic() + self._grace_period
                while pending[0] > 0:
                    remaining = grace_deadline - time.monotonic()
                    if remaining <= 0:
                        break
                    settled.wait(remaining)
                logger.info(
                    f"Pass #{run.pass_id} discarded ({pending[0]} probe(s) abandoned)"
                )
                return None

            collected = list(slots)

        waited = time.monotonic() - start
        results = []
        for (definition, _probe), result in zip(run.checks, collected):
            if result is None:
                logger.warning(f"Check {definition.id} still running at pass deadline")
                result = timed_out_result(definition, waited)
            results.append(result)
        return results

    def _publish(self, run: _Run, results: List[CheckResult]) -> Optional[DiagnosticPass]:
        with self._run_lock:
            if self._active is not run or run.token.cancelled:
                logger.info(f"Pass #{run.pass_id} preempted before publication")
                return None

            sealed = DiagnosticPass.seal(
                pass_id=run.pass_id,
                started_at=run.started_at,
                finished_at=self._clock(),
                results=results,
            )
            self._cell.publish(sealed)
            self._active = None

            with self._listeners_lock:
                listeners = list(self._listeners)
            for listener in listeners:
                try:
                    listener(sealed)
                except Exception as e:
                    logger.error(f"Pass listener error: {e}", exc_info=True)

        logger.info(
            f"Pass #{sealed.pass_id} published: {sealed.overall_status.label} "
            f"({sealed.duration_ms:.0f}ms)"
        )
        return sealed
