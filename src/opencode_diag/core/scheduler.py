"""
Pass Scheduler

Triggers the orchestrator on a fixed refresh interval and on manual
request. A trigger while a pass is running preempts it (the orchestrator
cancels and restarts) rather than queuing, so a user-initiated run never
waits behind a slow automatic one.

Changing the interval wakes the timer thread, which recomputes the next
tick from the last trigger; no restart is needed.

Usage:
    scheduler = Scheduler(orchestrator, interval=RefreshInterval.MINUTE_1)
    scheduler.start()
    scheduler.run_now()
    scheduler.set_interval(RefreshInterval.MINUTE_5)
    scheduler.stop()
"""

import logging
import threading
import time
from enum import Enum
from typing import Callable, List, Optional, Union

from .errors import ConfigurationError
from .orchestrator import Orchestrator

logger = logging.getLogger(__name__)


class RefreshInterval(Enum):
    """Auto-refresh presets, in seconds. OFF disables the timer."""
    OFF = 0
    SECONDS_30 = 30
    MINUTE_1 = 60
    MINUTE_2 = 120
    MINUTE_5 = 300

    @property
    def seconds(self) -> int:
        return self.value

    @property
    def enabled(self) -> bool:
        return self is not RefreshInterval.OFF

    @property
    def label(self) -> str:
        if self is RefreshInterval.OFF:
            return "off"
        if self.value >= 60:
            return f"{self.value // 60}m"
        return f"{self.value}s"

    @classmethod
    def parse(cls, value: Union[str, int, 'RefreshInterval']) -> 'RefreshInterval':
        """Accept a preset, its label ("30s", "1m", "off") or its seconds."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            text = value.strip().lower()
            for interval in cls:
                if interval.label == text:
                    return interval
            if text.isdigit():
                value = int(text)
        if isinstance(value, int) and not isinstance(value, bool):
            for interval in cls:
                if interval.value == value:
                    return interval
        raise ConfigurationError(
            f"Invalid refresh interval {value!r}; expected one of "
            f"{', '.join(i.label for i in cls)}"
        )


REFRESH_PRESETS: List[RefreshInterval] = [i for i in RefreshInterval if i.enabled]


def check_interval(interval: RefreshInterval, pass_budget: float) -> RefreshInterval:
    """
    Reject a timer that would fire before a pass can finish.

    Timer triggers preempt the pass in flight, so the interval must be
    longer than the pass budget.
    """
    if interval.enabled and interval.seconds <= pass_budget:
        raise ConfigurationError(
            f"Refresh interval {interval.label} is too short: a pass may take up to "
            f"{pass_budget:.0f}s with the current probe timeout"
        )
    return interval


def shortest_interval_for(pass_budget: float) -> RefreshInterval:
    """Shortest preset that lets a pass finish, or OFF if none does."""
    for preset in REFRESH_PRESETS:
        if preset.seconds > pass_budget:
            return preset
    return RefreshInterval.OFF


class SchedulerState(Enum):
    IDLE = "idle"
    RUNNING = "running"


class Scheduler:
    """Timer and manual trigger front-end for an Orchestrator."""

    def __init__(
        self,
        orchestrator: Orchestrator,
        interval: RefreshInterval = RefreshInterval.OFF,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._orchestrator = orchestrator
        self._interval = check_interval(RefreshInterval.parse(interval), orchestrator.pass_budget)
        self._clock = clock
        self._lock = threading.Lock()
        self._anchor: Optional[float] = None   # time of last trigger (or start)

        self._wake = threading.Event()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # === State ===

    @property
    def state(self) -> SchedulerState:
        if self._orchestrator.is_running:
            return SchedulerState.RUNNING
        return SchedulerState.IDLE

    @property
    def interval(self) -> RefreshInterval:
        with self._lock:
            return self._interval

    @property
    def is_started(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def set_interval(self, interval: Union[str, int, RefreshInterval]) -> RefreshInterval:
        """Change the refresh interval; takes effect on the next tick."""
        interval = RefreshInterval.parse(interval)
        check_interval(interval, self._orchestrator.pass_budget)
        with self._lock:
            old = self._interval
            self._interval = interval
        if old is not interval:
            logger.info(f"Refresh interval changed: {old.label} -> {interval.label}")
        self._wake.set()
        return interval

    def seconds_until_next(self, now: Optional[float] = None) -> Optional[float]:
        """Seconds until the next timer fire, or None when disabled."""
        with self._lock:
            interval = self._interval
            anchor = self._anchor
        if not interval.enabled:
            return None
        if anchor is None:
            return float(interval.seconds)
        if now is None:
            now = self._clock()
        return max(0.0, anchor + interval.seconds - now)

    # === Triggers ===

    def run_now(self) -> threading.Thread:
        """Start a pass in the background, preempting any pass in flight."""
        return self._trigger("manual")

    def tick(self, now: Optional[float] = None) -> bool:
        """Fire the timer if due. Returns True if a pass was started."""
        remaining = self.seconds_until_next(now)
        if remaining is None or remaining > 0:
            return False
        self._trigger("timer")
        return True

    def _trigger(self, reason: str) -> threading.Thread:
        with self._lock:
            self._anchor = self._clock()
        if self._orchestrator.is_running:
            logger.info(f"{reason.capitalize()} trigger preempts the running pass")

        thread = threading.Thread(
            target=self._run_pass,
            args=(reason,),
            name=f"diag-{reason}",
            daemon=True,
        )
        thread.start()
        self._wake.set()
        return thread

    def _run_pass(self, reason: str) -> None:
        try:
            self._orchestrator.run_pass()
        except Exception as e:
            logger.error(f"{reason.capitalize()} pass failed: {e}", exc_info=True)

    # === Background Timer ===

    def start(self) -> None:
        """Start the timer thread."""
        if self.is_started:
            return
        with self._lock:
            if self._anchor is None:
                self._anchor = self._clock()
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="diag-scheduler", daemon=True)
        self._thread.start()
        logger.info(f"Scheduler started (interval: {self.interval.label})")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the timer thread. A pass already running is left to finish."""
        self._stop.set()
        self._wake.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        self._thread = None
        logger.info("Scheduler stopped")

    def _loop(self) -> None:
        while not self._stop.is_set():
            self._wake.clear()
            remaining = self.seconds_until_next()
            if remaining is not None and remaining <= 0:
                self.tick()
                continue
            # None: timer disabled, sleep until the interval changes or stop()
            self._wake.wait(remaining)
