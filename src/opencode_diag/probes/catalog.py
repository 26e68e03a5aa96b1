"""
Built-in check catalog.

Registration order here is the order checks appear in every pass and
report: machine, network, providers, then local processes.
"""

import logging
from typing import List, Optional

from ..core.registry import CheckRegistry
from ..settings import DiagnosticSettings
from .api import CLAUDE, GOOGLE, OPENAI, ApiProbe
from .base import Probe
from .network import InternetProbe, VpnProbe
from .process import ClientProcessProbe, TerminalsProbe
from .system import GpuProbe, LocalResourcesProbe

logger = logging.getLogger(__name__)


def default_probes(require_client: bool = False) -> List[Probe]:
    return [
        LocalResourcesProbe(),
        GpuProbe(),
        InternetProbe(),
        VpnProbe(),
        ApiProbe(CLAUDE),
        ApiProbe(OPENAI),
        ApiProbe(GOOGLE),
        ClientProcessProbe(required=require_client),
        TerminalsProbe(),
    ]


def build_default_registry(settings: Optional[DiagnosticSettings] = None,
                           probes: Optional[List[Probe]] = None) -> CheckRegistry:
    """
    Registry with every built-in check, enabled per settings.

    Args:
        settings: DiagnosticSettings; defaults apply when None
        probes: Override the probe list (tests)
    """
    settings = settings or DiagnosticSettings()
    if probes is None:
        probes = default_probes(require_client=settings.require_client)

    registry = CheckRegistry()
    for probe in probes:
        registry.register(probe, enabled=False)

    known = set(p.check_id for p in probes)
    enabled = [c for c in settings.enabled_checks if c in known]
    skipped = sorted(set(settings.enabled_checks) - known)
    if skipped:
        logger.warning(f"Ignoring unknown check id(s) in settings: {', '.join(skipped)}")
    registry.apply(enabled)
    return registry
