"""
GPU usage via nvidia-smi.

Machines without nvidia-smi (no NVIDIA driver, or integrated graphics
only) report no GPUs rather than an error.
"""

import logging
import re
import shutil
import subprocess
from dataclasses import dataclass
from typing import List, Optional

from ..core.errors import ProbeUnavailable

logger = logging.getLogger(__name__)

NVIDIA_SMI = 'nvidia-smi'
QUERY_ARGS = ['--query-gpu=name,utilization.gpu,memory.used', '--format=csv,noheader,nounits']
MAX_NAME_LENGTH = 20


@dataclass(frozen=True)
class GpuInfo:
    name: str
    usage_pct: Optional[float] = None
    memory_mb: Optional[int] = None


def _model_after(name: str, marker: str) -> Optional[str]:
    """Alphanumeric model designation following marker, e.g. "4090 Ti" after "RTX"."""
    match = re.search(re.escape(marker) + r'\s*([A-Za-z0-9 ]+)', name)
    if not match:
        return None
    model = match.group(1).strip()
    return model or None


def shorten_gpu_name(name: str) -> str:
    """Compact display name: "NVIDIA GeForce RTX 4090" -> "RTX 4090"."""
    name = name.strip()

    if 'Intel' in name:
        if 'UHD' in name:
            match = re.search(r'UHD\D*(\d+)', name)
            return f"Intel UHD {match.group(1)}" if match else "Intel UHD"
        if 'Iris' in name:
            return "Intel Iris"
        return "Intel GPU"

    if 'NVIDIA' in name or 'GeForce' in name:
        for series in ('RTX', 'GTX'):
            if series in name:
                model = _model_after(name, series)
                if model:
                    return f"{series} {model}"
        return name.replace('NVIDIA ', '').replace('GeForce ', '')

    if 'AMD' in name or 'Radeon' in name:
        if 'RX' in name:
            model = _model_after(name, 'RX')
            if model:
                return f"RX {model}"
        return name.replace('AMD ', '')

    if len(name) > MAX_NAME_LENGTH:
        return name[:MAX_NAME_LENGTH] + "..."
    return name


def _parse_number(text: str) -> Optional[float]:
    try:
        return float(text.strip())
    except ValueError:
        return None


def parse_nvidia_smi(output: str) -> List[GpuInfo]:
    """Parse `nvidia-smi --format=csv,noheader,nounits` lines."""
    gpus = []
    for line in output.splitlines():
        if not line.strip():
            continue
        fields = [f.strip() for f in line.split(',')]
        usage = _parse_number(fields[1]) if len(fields) > 1 else None
        memory = _parse_number(fields[2]) if len(fields) > 2 else None
        gpus.append(GpuInfo(
            name=fields[0],
            usage_pct=usage,
            memory_mb=int(memory) if memory is not None else None,
        ))
    return gpus


def read_gpu_usage(timeout: float = 5.0) -> List[GpuInfo]:
    """
    List GPUs with their current utilization.

    Raises:
        ProbeUnavailable: nvidia-smi is installed but failed
    """
    if shutil.which(NVIDIA_SMI) is None:
        logger.debug("nvidia-smi not found, reporting no GPUs")
        return []

    try:
        result = subprocess.run(
            [NVIDIA_SMI] + QUERY_ARGS,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise ProbeUnavailable(f"nvidia-smi timed out after {timeout:.0f}s") from e
    except (FileNotFoundError, OSError) as e:
        raise ProbeUnavailable(f"cannot run nvidia-smi: {e}") from e

    if result.returncode != 0:
        message = (result.stderr or result.stdout).strip().splitlines()
        raise ProbeUnavailable(message[0] if message else f"nvidia-smi exited {result.returncode}")

    return parse_nvidia_smi(result.stdout)
