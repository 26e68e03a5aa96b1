"""
Local process probes: the AI client itself and open terminals.
"""

import logging
from typing import Callable, Optional

from ..core.cancel import CancelToken
from ..core.models import CheckResult, Status
from ..sources.processes import ProcessInfo, TerminalCount, count_terminals, find_process
from .base import ProcessProbe

logger = logging.getLogger(__name__)

MEMORY_WARNING_MB = 2000
TERMINAL_WARNING_COUNT = 10


class ClientProcessProbe(ProcessProbe):
    """
    Whether the client process is running and how much memory it uses.

    Absence is fine (INACTIVE) unless the process is marked required.
    """

    def __init__(
        self,
        check_id: str = "opencode",
        display_name: str = "OPENCODE",
        process_name: str = "opencode",
        required: bool = False,
        find: Callable[[str], Optional[ProcessInfo]] = find_process,
        memory_warning_mb: int = MEMORY_WARNING_MB,
    ):
        super().__init__(check_id, display_name)
        self.process_name = process_name
        self.required = required
        self._find = find
        self._memory_warning_mb = memory_warning_mb

    def probe(self, timeout: float, token: CancelToken) -> CheckResult:
        info = self._find(self.process_name)
        token.raise_if_cancelled()

        if info is None:
            if self.required:
                return self.make_result(
                    Status.CRITICAL,
                    "NOT RUNNING",
                    {"PROCESS": self.process_name},
                    fix_hint=f"Start {self.process_name}.",
                )
            return self.make_result(Status.OK, "INACTIVE", {"PROCESS": self.process_name})

        detail = {"PID": str(info.pid), "MEMORY": f"{info.memory_mb}MB"}
        if info.count > 1:
            detail["INSTANCES"] = str(info.count)

        if info.memory_mb > self._memory_warning_mb:
            return self.make_result(
                Status.WARNING,
                "HIGH MEMORY",
                detail,
                fix_hint=f"{self.process_name} is using a lot of memory. Consider restarting it.",
            )
        return self.make_result(Status.OK, "RUNNING", detail)


class TerminalsProbe(ProcessProbe):
    """Number of open terminals and shells (many usually means many agents)."""

    def __init__(
        self,
        check_id: str = "terminals",
        display_name: str = "TERMINALS",
        count: Callable[[], TerminalCount] = count_terminals,
        warning_count: int = TERMINAL_WARNING_COUNT,
    ):
        super().__init__(check_id, display_name)
        self._count = count
        self._warning_count = warning_count

    def probe(self, timeout: float, token: CancelToken) -> CheckResult:
        terminals = self._count()
        token.raise_if_cancelled()

        if terminals.total == 0:
            return self.make_result(Status.OK, "INACTIVE")

        detail = {
            "OPEN": terminals.describe(),
            "MEMORY": f"{terminals.memory_mb}MB",
        }
        if terminals.total > self._warning_count:
            return self.make_result(
                Status.WARNING,
                "MANY OPEN",
                detail,
                fix_hint=f"{terminals.total} terminals open. Close the ones you no longer need.",
            )
        return self.make_result(Status.OK, "NOMINAL", detail)
