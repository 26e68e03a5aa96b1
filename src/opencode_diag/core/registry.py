"""
Check Registry

Holds every known check in registration order along with its enable
flag. The orchestrator takes a snapshot at pass start; later changes
only affect the next pass.

Usage:
    registry = CheckRegistry()
    registry.register(LocalResourcesProbe(), enabled=True)
    registry.set_enabled("gpu", False)
    for definition in registry.list_enabled():
        ...
"""

import dataclasses
import logging
import threading
from collections import OrderedDict
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Tuple

from .errors import ConfigurationError
from .models import CheckDefinition

if TYPE_CHECKING:
    from ..probes.base import Probe

logger = logging.getLogger(__name__)


class CheckRegistry:
    """Thread-safe, ordered mapping of CheckId to definition and probe."""

    def __init__(self):
        self._definitions: "OrderedDict[str, CheckDefinition]" = OrderedDict()
        self._probes: Dict[str, 'Probe'] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._definitions)

    def __contains__(self, check_id: str) -> bool:
        with self._lock:
            return check_id in self._definitions

    def register(self, probe: 'Probe', enabled: bool = True) -> CheckDefinition:
        """Register a probe under its check id."""
        definition = CheckDefinition(
            id=probe.check_id,
            category=probe.category,
            display_name=probe.display_name,
            enabled=enabled,
        )
        with self._lock:
            if definition.id in self._definitions:
                raise ConfigurationError(f"Duplicate check id: {definition.id}")
            self._definitions[definition.id] = definition
            self._probes[definition.id] = probe
        logger.debug(f"Registered check {definition.id} ({definition.category.value})")
        return definition

    # === Queries ===

    def definitions(self) -> List[CheckDefinition]:
        """All definitions in registration order."""
        with self._lock:
            return list(self._definitions.values())

    def list_enabled(self) -> List[CheckDefinition]:
        """Enabled definitions in registration order."""
        with self._lock:
            return [d for d in self._definitions.values() if d.enabled]

    def enabled_ids(self) -> List[str]:
        return [d.id for d in self.list_enabled()]

    def snapshot(self) -> List[Tuple[CheckDefinition, 'Probe']]:
        """Enabled (definition, probe) pairs, copied atomically."""
        with self._lock:
            return [
                (d, self._probes[d.id])
                for d in self._definitions.values()
                if d.enabled
            ]

    def get(self, check_id: str) -> Optional[CheckDefinition]:
        with self._lock:
            return self._definitions.get(check_id)

    def probe_for(self, check_id: str) -> 'Probe':
        with self._lock:
            if check_id not in self._probes:
                raise ConfigurationError(f"Unknown check id: {check_id}")
            return self._probes[check_id]

    # === Configuration ===

    def set_enabled(self, check_id: str, enabled: bool) -> CheckDefinition:
        """Enable or disable a check for subsequent passes. Idempotent."""
        with self._lock:
            current = self._definitions.get(check_id)
            if current is None:
                raise ConfigurationError(f"Unknown check id: {check_id}")
            if current.enabled == enabled:
                return current
            updated = dataclasses.replace(current, enabled=bool(enabled))
            self._definitions[check_id] = updated
        logger.info(f"Check {check_id} {'enabled' if enabled else 'disabled'}")
        return updated

    def apply(self, enabled_ids: Iterable[str]) -> None:
        """Enable exactly the given ids, disabling all others.

        The whole update is rejected if any id is unknown, leaving the
        previous configuration in place.
        """
        wanted = set(enabled_ids)
        with self._lock:
            unknown = sorted(wanted - set(self._definitions))
            if unknown:
                raise ConfigurationError(f"Unknown check id(s): {', '.join(unknown)}")
            for check_id, definition in self._definitions.items():
                enabled = check_id in wanted
                if definition.enabled != enabled:
                    self._definitions[check_id] = dataclasses.replace(definition, enabled=enabled)
