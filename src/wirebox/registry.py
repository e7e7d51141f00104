from __future__ import annotations

import logging
from typing import Any

from wirebox.definitions import ServiceEntry

logger = logging.getLogger(__name__)

MISSING: Any = object()
"""Returned by ``Registry.find_shared_instance`` when nothing is cached."""


class Registry:
    """Store service entries indexed by normalized id, plus the shared-instance cache.

    Ids are unique: adding an entry for an existing id replaces the previous
    entry and drops any instance cached for it. Callers pass ids already
    normalized.
    """

    def __init__(self) -> None:
        self._entries: dict[str, ServiceEntry] = {}
        self._shared_instances: dict[str, Any] = {}

    def add(self, entry: ServiceEntry) -> None:
        """Add or replace an entry.

        Args:
            entry: Entry to store under ``entry.id``.

        """
        if entry.id in self._entries:
            logger.debug("Overwriting service '%s'", entry.id)
            self._shared_instances.pop(entry.id, None)
        self._entries[entry.id] = entry

    def find(self, service_id: str) -> ServiceEntry | None:
        """Get an entry by id, if it exists."""
        return self._entries.get(service_id)

    def has(self, service_id: str) -> bool:
        return service_id in self._entries

    def remove(self, service_id: str) -> None:
        """Delete an entry and its cached shared instance. Unknown ids are ignored."""
        self._entries.pop(service_id, None)
        self._shared_instances.pop(service_id, None)

    def find_shared_instance(self, service_id: str) -> Any:
        return self._shared_instances.get(service_id, MISSING)

    def cache_shared_instance(self, service_id: str, instance: Any) -> None:
        self._shared_instances[service_id] = instance

    def clear_shared_instances(self) -> None:
        self._shared_instances.clear()
