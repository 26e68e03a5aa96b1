"""
Default collaborators: where probes get their raw measurements.

Each function here does one bounded read of the machine or network and
either returns plain data or raises a ProbeError. Probes accept these as
injectable callables so tests can swap in fakes.
"""

from .clipboard import CommandClipboard
from .gpu import GpuInfo, read_gpu_usage, shorten_gpu_name
from .http import HttpResponse, extract_error_message, http_probe
from .metrics import DiskState, SystemMetrics, read_system_metrics
from .network import PingResult, VpnState, detect_vpn, ping
from .processes import ProcessInfo, TerminalCount, count_terminals, find_process

__all__ = [
    'CommandClipboard',
    'DiskState',
    'GpuInfo',
    'HttpResponse',
    'PingResult',
    'ProcessInfo',
    'SystemMetrics',
    'TerminalCount',
    'VpnState',
    'count_terminals',
    'detect_vpn',
    'extract_error_message',
    'find_process',
    'http_probe',
    'ping',
    'read_gpu_usage',
    'read_system_metrics',
    'shorten_gpu_name',
]
