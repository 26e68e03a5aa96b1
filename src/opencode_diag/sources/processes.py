"""
Process enumeration via psutil.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

import psutil

from ..core.errors import ProbeUnavailable

logger = logging.getLogger(__name__)

# Terminal and shell process names, grouped by the short label reported
TERMINAL_GROUPS = {
    'cmd': ('cmd',),
    'ps': ('powershell', 'powershell_ise', 'pwsh'),
    'wt': ('windowsterminal', 'wt'),
    'sh': ('bash', 'zsh', 'fish', 'sh', 'dash'),
    'term': ('gnome-terminal-server', 'konsole', 'alacritty', 'kitty', 'xterm',
             'wezterm-gui', 'iterm2'),
}


@dataclass(frozen=True)
class ProcessInfo:
    """First matching process plus totals across all matches."""
    pid: int
    memory_mb: int
    count: int = 1


@dataclass(frozen=True)
class TerminalCount:
    counts: Dict[str, int]
    memory_mb: int = 0

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def describe(self) -> str:
        """e.g. "cmd:2 ps:1"."""
        return " ".join(f"{label}:{n}" for label, n in self.counts.items() if n)


def _iter_processes() -> Iterable:
    try:
        return list(psutil.process_iter(['pid', 'name', 'memory_info']))
    except (psutil.Error, OSError) as e:
        raise ProbeUnavailable(f"cannot list processes: {e}") from e


def _memory_bytes(proc) -> int:
    memory = proc.info.get('memory_info')
    return memory.rss if memory is not None else 0


def find_process(name: str) -> Optional[ProcessInfo]:
    """
    Find processes whose name contains name (case-insensitive).

    Returns None when none is running.

    Raises:
        ProbeUnavailable: the process table could not be read
    """
    needle = name.lower()
    matches = [
        proc for proc in _iter_processes()
        if needle in (proc.info.get('name') or '').lower()
    ]
    if not matches:
        return None

    total = sum(_memory_bytes(proc) for proc in matches)
    return ProcessInfo(
        pid=matches[0].info['pid'],
        memory_mb=total // (1024 * 1024),
        count=len(matches),
    )


def terminal_group(process_name: str) -> Optional[str]:
    name = process_name.lower()
    if name.endswith('.exe'):
        name = name[:-4]
    for label, names in TERMINAL_GROUPS.items():
        if name in names:
            return label
    return None


def count_terminals() -> TerminalCount:
    """
    Count running terminal and shell processes by group.

    Raises:
        ProbeUnavailable: the process table could not be read
    """
    counts = {label: 0 for label in TERMINAL_GROUPS}
    memory = 0
    for proc in _iter_processes():
        label = terminal_group(proc.info.get('name') or '')
        if label is None:
            continue
        counts[label] += 1
        memory += _memory_bytes(proc)
    return TerminalCount(counts=counts, memory_mb=memory // (1024 * 1024))
