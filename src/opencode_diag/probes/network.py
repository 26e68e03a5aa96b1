"""
Network probes: internet reachability and VPN interference.
"""

import logging
from typing import Callable, Optional, Sequence

from ..core.cancel import CancelToken
from ..core.models import CheckResult, Status
from ..sources.network import PingResult, VpnState, detect_vpn, ping
from .base import NetworkProbe

logger = logging.getLogger(__name__)

PRIMARY_HOST = "google.com"
FALLBACK_HOST = "1.1.1.1"
SLOW_LATENCY_MS = 2000.0
# Share of the probe timeout given to pings, leaving room for the rest of the probe
PING_BUDGET = 0.9

PingFn = Callable[[str, float], PingResult]


def _latency(result: PingResult) -> str:
    return f"{result.latency_ms:.0f}ms" if result.latency_ms is not None else "n/a"


class InternetProbe(NetworkProbe):
    """
    Reachability of the public internet.

    The primary host is tried first; if it fails a fallback (a bare IP,
    so DNS is not involved) tells a DNS or filtering problem apart from
    no connectivity at all.
    """

    def __init__(
        self,
        check_id: str = "internet",
        display_name: str = "INTERNET",
        hosts: Sequence[str] = (PRIMARY_HOST, FALLBACK_HOST),
        ping_fn: PingFn = ping,
        slow_ms: float = SLOW_LATENCY_MS,
    ):
        super().__init__(check_id, display_name)
        if not hosts:
            raise ValueError("InternetProbe needs at least one host")
        self._hosts = tuple(hosts)
        self._ping = ping_fn
        self._slow_ms = slow_ms

    def probe(self, timeout: float, token: CancelToken) -> CheckResult:
        # Split the budget so every host gets a try before the probe times out
        per_host = timeout * PING_BUDGET / len(self._hosts)
        primary, fallbacks = self._hosts[0], self._hosts[1:]

        first = self._ping(primary, per_host)
        token.raise_if_cancelled()
        if first.reachable:
            detail = {"HOST": primary, "LATENCY": _latency(first)}
            if first.latency_ms is not None and first.latency_ms > self._slow_ms:
                return self.make_result(Status.WARNING, "SLOW", detail,
                                        fix_hint="Connection is slow. Check your network.")
            return self.make_result(Status.OK, "ONLINE", detail)

        for host in fallbacks:
            result = self._ping(host, per_host)
            token.raise_if_cancelled()
            if result.reachable:
                return self.make_result(
                    Status.WARNING,
                    "DEGRADED",
                    {"HOST": host, "LATENCY": _latency(result), primary.upper(): "unreachable"},
                    error=first.error,
                    fix_hint="Internet works but DNS or some hosts fail. Check DNS settings.",
                )

        return self.make_result(
            Status.CRITICAL,
            "OFFLINE",
            {"HOST": primary},
            error=first.error,
            fix_hint="No internet connection. Check your network.",
        )


class VpnProbe(NetworkProbe):
    """
    VPN presence, and whether an active VPN is blocking traffic.

    A VPN alone is informational (UNKNOWN); it only becomes CRITICAL
    when it is up and the reachability host cannot be reached.
    """

    def __init__(
        self,
        check_id: str = "vpn",
        display_name: str = "VPN",
        detect: Callable[[], VpnState] = detect_vpn,
        ping_fn: Optional[PingFn] = ping,
        reachability_host: str = PRIMARY_HOST,
    ):
        super().__init__(check_id, display_name)
        self._detect = detect
        self._ping = ping_fn
        self._host = reachability_host

    def probe(self, timeout: float, token: CancelToken) -> CheckResult:
        state = self._detect()
        token.raise_if_cancelled()

        if not state.active:
            return self.make_result(Status.OK, "INACTIVE")

        detail = {"INTERFACES": ", ".join(state.interfaces) or "unknown"}
        if self._ping is not None:
            result = self._ping(self._host, timeout * PING_BUDGET)
            token.raise_if_cancelled()
            if not result.reachable:
                detail["HOST"] = self._host
                return self.make_result(
                    Status.CRITICAL,
                    "BLOCKING",
                    detail,
                    error=result.error,
                    fix_hint="VPN is up but traffic is not getting through. "
                             "Disconnect the VPN or check its split-tunnel settings.",
                )

        return self.make_result(Status.UNKNOWN, "ACTIVE", detail,
                                fix_hint="A VPN is active. If APIs fail, try without it.")
