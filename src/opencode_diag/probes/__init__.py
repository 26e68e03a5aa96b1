"""
Probes: one class per link of the dependency chain.

Each probe subclass owns its status mapping; the category base classes
in base.py decide what a timeout means for that link.
"""

from .api import ApiProbe, ProviderEndpoint, classify_status_code
from .base import ApiProviderProbe, NetworkProbe, Probe, ProcessProbe, SystemProbe
from .catalog import build_default_registry, default_probes
from .network import InternetProbe, VpnProbe
from .process import ClientProcessProbe, TerminalsProbe
from .system import GpuProbe, LocalResourcesProbe

__all__ = [
    'ApiProbe',
    'ApiProviderProbe',
    'ClientProcessProbe',
    'GpuProbe',
    'InternetProbe',
    'LocalResourcesProbe',
    'NetworkProbe',
    'Probe',
    'ProcessProbe',
    'ProviderEndpoint',
    'SystemProbe',
    'TerminalsProbe',
    'VpnProbe',
    'build_default_registry',
    'classify_status_code',
    'default_probes',
]
