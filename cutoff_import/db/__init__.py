"""Persistent store implementations."""

from .store import CutoffStore, MemoryStore, StoreError, StoreUnavailableError

__all__ = [
    "CutoffStore",
    "MemoryStore",
    "StoreError",
    "StoreUnavailableError",
]
