"""
Network reachability and VPN detection.

ping() uses a TCP connect to the HTTPS port rather than ICMP, so it
needs no privileges and follows the same path API traffic takes.
"""

import logging
import socket
import time
from dataclasses import dataclass, field
from typing import Optional, Tuple

import psutil

from ..core.errors import ProbeUnavailable

logger = logging.getLogger(__name__)

DEFAULT_PORT = 443
VPN_PREFIXES = ('tun', 'tap', 'wg', 'utun', 'ppp', 'ipsec')


@dataclass(frozen=True)
class PingResult:
    host: str
    reachable: bool
    latency_ms: Optional[float] = None
    error: Optional[str] = None


def ping(host: str, timeout: float = 3.0, port: int = DEFAULT_PORT) -> PingResult:
    """TCP connect to host:port. Never raises."""
    start = time.monotonic()
    try:
        with socket.create_connection((host, port), timeout=timeout):
            latency = (time.monotonic() - start) * 1000
        return PingResult(host=host, reachable=True, latency_ms=latency)
    except socket.timeout:
        return PingResult(host=host, reachable=False, error=f"timed out after {timeout:.0f}s")
    except (socket.error, OSError) as e:
        logger.debug(f"Ping {host}:{port} failed: {e}")
        return PingResult(host=host, reachable=False, error=str(e))


@dataclass(frozen=True)
class VpnState:
    active: bool
    interfaces: Tuple[str, ...] = field(default_factory=tuple)


def is_vpn_interface(name: str) -> bool:
    lowered = name.lower()
    return lowered.startswith(VPN_PREFIXES) or 'vpn' in lowered


def detect_vpn() -> VpnState:
    """
    Find VPN-looking network interfaces that are up.

    Raises:
        ProbeUnavailable: interface list could not be read
    """
    try:
        stats = psutil.net_if_stats()
    except (psutil.Error, OSError) as e:
        raise ProbeUnavailable(f"cannot list network interfaces: {e}") from e

    interfaces = tuple(sorted(
        name for name, stat in stats.items()
        if stat.isup and is_vpn_interface(name)
    ))
    return VpnState(active=bool(interfaces), interfaces=interfaces)
