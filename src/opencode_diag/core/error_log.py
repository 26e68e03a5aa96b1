"""
Error Log

Groups consecutive non-OK results of the same check into one entry.
An entry opens on the first non-OK result, is updated (message,
last_seen, occurrence count) on every following non-OK result, and is
removed as soon as the check reports OK again. Only live entries are
kept, so memory is bounded by the number of checks.

Disabling a check does not touch its entry: it stays until the check
is re-enabled and reports OK.

Usage:
    error_log = ErrorLog()
    orchestrator.add_listener(error_log.update)
    for entry in error_log.entries():
        print(entry.display_name, entry.occurrence_count)
"""

import dataclasses
import logging
import threading
from typing import Dict, Iterable, List, Optional

from .models import CheckResult, DiagnosticPass, ErrorLogEntry

logger = logging.getLogger(__name__)

MAX_RECENT_TIMES = 5


def _message_for(result: CheckResult) -> str:
    if result.error:
        return f"{result.headline} ({result.error})"
    return result.headline


class ErrorLog:
    """Deduplicated log of currently failing checks."""

    def __init__(self):
        self._entries: Dict[str, ErrorLogEntry] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_passes(cls, passes: Iterable[DiagnosticPass]) -> 'ErrorLog':
        """Build a log by replaying passes in chronological order."""
        log = cls()
        for diagnostic_pass in passes:
            log.update(diagnostic_pass)
        return log

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def update(self, diagnostic_pass: DiagnosticPass) -> None:
        """Fold one published pass into the log."""
        with self._lock:
            for result in diagnostic_pass.results:
                self._apply(result)

    def _apply(self, result: CheckResult) -> None:
        existing = self._entries.get(result.check_id)

        if result.is_ok():
            if existing is not None:
                del self._entries[result.check_id]
                logger.info(
                    f"{result.display_name} recovered after "
                    f"{existing.occurrence_count} failed check(s)"
                )
            return

        if existing is None:
            self._entries[result.check_id] = ErrorLogEntry(
                check_id=result.check_id,
                display_name=result.display_name,
                status=result.status,
                last_message=_message_for(result),
                first_seen=result.timestamp,
                last_seen=result.timestamp,
                occurrence_count=1,
                recent_times=(result.timestamp,),
            )
            logger.debug(f"Error log opened for {result.check_id}: {result.headline}")
            return

        self._entries[result.check_id] = dataclasses.replace(
            existing,
            status=result.status,
            last_message=_message_for(result),
            last_seen=max(existing.last_seen, result.timestamp),
            occurrence_count=existing.occurrence_count + 1,
            recent_times=((result.timestamp,) + existing.recent_times)[:MAX_RECENT_TIMES],
        )

    # === Queries ===

    def entries(self) -> List[ErrorLogEntry]:
        """Live entries, most recently seen first."""
        with self._lock:
            entries = sorted(self._entries.values(), key=lambda e: e.check_id)
        # sort is stable, so equal last_seen keeps check-id order
        return sorted(entries, key=lambda e: e.last_seen, reverse=True)

    def get(self, check_id: str) -> Optional[ErrorLogEntry]:
        with self._lock:
            return self._entries.get(check_id)

    def forget(self, check_id: str) -> bool:
        with self._lock:
            return self._entries.pop(check_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
