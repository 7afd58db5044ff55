from __future__ import annotations

import logging
import re
import threading

from ..db.store import CutoffStore
from ..models.records import EntityKind

"""Find-or-create resolution of institution and program names.

Names are trimmed and whitespace-collapsed, then matched exactly. The
lookup-then-create sequence runs under one lock, and resolved ids are cached
for the rest of the run, so concurrent column workers never create the same
entity twice. The store's own unique name constraint covers separate
processes.
"""

__all__ = [
    "EntityResolutionError",
    "EntityResolver",
    "normalize_name",
]

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


class EntityResolutionError(Exception):
    """Raised when a name normalizes to nothing."""


def normalize_name(raw: str) -> str:
    return _WHITESPACE.sub(" ", raw).strip()


class EntityResolver:
    def __init__(self, store: CutoffStore) -> None:
        self.store = store
        self._lock = threading.Lock()
        self._cache: dict[tuple[EntityKind, str], int] = {}
        self.created: dict[EntityKind, int] = {k: 0 for k in EntityKind}

    def resolve(self, kind: EntityKind, raw_name: str) -> int:
        """Return the entity id for raw_name, creating the entity on first sight.

        Raises:
            EntityResolutionError: the name is empty after normalization
            StoreError: the store lookup or insert failed
        """
        name = normalize_name(raw_name or "")
        if not name:
            raise EntityResolutionError(f"empty {kind.value} name: {raw_name!r}")
        key = (kind, name)
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                return cached
            entity_id, created = self.store.find_or_create_entity(kind, name)
            self._cache[key] = entity_id
            if created:
                self.created[kind] += 1
                logger.debug(f"new {kind.value} id={entity_id}: {name}")
            return entity_id
