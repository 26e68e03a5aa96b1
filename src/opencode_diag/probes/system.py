"""
Local machine probes: CPU/RAM/disk and GPU load.
"""

import logging
from typing import Callable, List

from ..core.cancel import CancelToken
from ..core.models import CheckResult, Status
from ..sources.gpu import GpuInfo, read_gpu_usage, shorten_gpu_name
from ..sources.metrics import DiskState, SystemMetrics, read_system_metrics
from .base import SystemProbe

logger = logging.getLogger(__name__)

CPU_CRITICAL_PCT = 90.0
CPU_WARNING_PCT = 70.0
RAM_CRITICAL_PCT = 95.0
RAM_WARNING_PCT = 85.0

GPU_CRITICAL_PCT = 95.0
GPU_WARNING_PCT = 80.0


class LocalResourcesProbe(SystemProbe):
    """CPU, memory and disk pressure on the local machine."""

    def __init__(
        self,
        check_id: str = "local_resources",
        display_name: str = "LOCAL RESOURCES",
        read_metrics: Callable[[], SystemMetrics] = read_system_metrics,
    ):
        super().__init__(check_id, display_name)
        self._read_metrics = read_metrics

    def probe(self, timeout: float, token: CancelToken) -> CheckResult:
        metrics = self._read_metrics()
        token.raise_if_cancelled()

        detail = {
            "CPU": f"{metrics.cpu_pct:.0f}%",
            "RAM": f"{metrics.ram_pct:.0f}%",
            "DISK": metrics.disk_state.value,
        }

        if metrics.disk_state is DiskState.FULL:
            return self.make_result(Status.CRITICAL, "DISK FULL", detail,
                                    fix_hint="Free up disk space on the system drive.")
        if metrics.cpu_pct > CPU_CRITICAL_PCT or metrics.ram_pct > RAM_CRITICAL_PCT:
            return self.make_result(Status.CRITICAL, "OVERLOADED", detail,
                                    fix_hint="Close heavy applications to free CPU and memory.")
        if metrics.disk_state is DiskState.LOW:
            return self.make_result(Status.WARNING, "DISK LOW", detail,
                                    fix_hint="Disk is nearly full. Free up space soon.")
        if metrics.cpu_pct > CPU_WARNING_PCT or metrics.ram_pct > RAM_WARNING_PCT:
            return self.make_result(Status.WARNING, "HIGH LOAD", detail,
                                    fix_hint="System is under load. Responses may be slow.")
        return self.make_result(Status.OK, "NOMINAL", detail)


class GpuProbe(SystemProbe):
    """GPU utilization. No GPU is not a problem."""

    def __init__(
        self,
        check_id: str = "gpu",
        display_name: str = "GPU",
        read_gpus: Callable[[], List[GpuInfo]] = read_gpu_usage,
    ):
        super().__init__(check_id, display_name)
        self._read_gpus = read_gpus

    def probe(self, timeout: float, token: CancelToken) -> CheckResult:
        gpus = self._read_gpus()
        token.raise_if_cancelled()

        if not gpus:
            return self.make_result(Status.OK, "INACTIVE", {"GPU": "none detected"})

        detail = {}
        for gpu in gpus:
            name = shorten_gpu_name(gpu.name)
            # Two identical cards would collide on the short name
            if name in detail:
                name = f"{name} #{len(detail) + 1}"
            detail[name] = f"{gpu.usage_pct:.0f}%" if gpu.usage_pct is not None else "n/a"

        usages = [g.usage_pct for g in gpus if g.usage_pct is not None]
        peak = max(usages) if usages else 0.0

        if peak > GPU_CRITICAL_PCT:
            return self.make_result(Status.CRITICAL, "SATURATED", detail,
                                    fix_hint="GPU is fully loaded. Close GPU-heavy applications.")
        if peak > GPU_WARNING_PCT:
            return self.make_result(Status.WARNING, "HIGH LOAD", detail)
        return self.make_result(Status.OK, "NOMINAL", detail)
