"""
Local machine metrics via psutil.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import psutil

from ..core.errors import ProbeUnavailable

logger = logging.getLogger(__name__)

DISK_FULL_PCT = 95.0
DISK_LOW_PCT = 85.0


class DiskState(Enum):
    OK = "OK"
    LOW = "LOW"
    FULL = "FULL"


def disk_state_for(used_pct: float) -> DiskState:
    if used_pct >= DISK_FULL_PCT:
        return DiskState.FULL
    if used_pct >= DISK_LOW_PCT:
        return DiskState.LOW
    return DiskState.OK


@dataclass(frozen=True)
class SystemMetrics:
    cpu_pct: float
    ram_pct: float
    disk_state: DiskState
    disk_pct: float = 0.0
    ram_used_mb: int = 0
    ram_total_mb: int = 0


def _system_root() -> str:
    return Path.cwd().anchor or '/'


def read_system_metrics(sample_interval: float = 0.2) -> SystemMetrics:
    """
    Sample CPU, RAM and disk usage.

    Raises:
        ProbeUnavailable: psutil could not read the counters
    """
    try:
        cpu = psutil.cpu_percent(interval=sample_interval)
        memory = psutil.virtual_memory()
        disk = psutil.disk_usage(_system_root())
    except (psutil.Error, OSError) as e:
        raise ProbeUnavailable(f"cannot read system metrics: {e}") from e

    return SystemMetrics(
        cpu_pct=float(cpu),
        ram_pct=float(memory.percent),
        disk_state=disk_state_for(disk.percent),
        disk_pct=float(disk.percent),
        ram_used_mb=int(memory.used // (1024 * 1024)),
        ram_total_mb=int(memory.total // (1024 * 1024)),
    )
