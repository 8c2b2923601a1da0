"""Per-resource caches of extracted desired state, keyed by manifest hash."""

from __future__ import annotations

import hashlib
import threading
from typing import Any, Protocol


class ManagedObject(Protocol):
    uid: str
    manifest: bytes


def manifest_hash(manifest: bytes) -> str:
    """Hex SHA-256 of a raw manifest."""
    return hashlib.sha256(manifest).hexdigest()


class DesiredStateCache:
    """Holds one extracted state, valid while the manifest hash matches."""

    def __init__(self, extracted: dict[str, Any] | None = None, digest: str = "") -> None:
        self._lock = threading.RLock()
        self.extracted = extracted
        self.digest = digest

    def get_state_for(self, obj: ManagedObject) -> dict[str, Any] | None:
        """The cached state for obj's manifest, or None when absent or stale."""
        digest = manifest_hash(obj.manifest)
        with self._lock:
            if self.extracted is not None and self.digest == digest:
                return self.extracted
            return None

    def set_state_for(self, obj: ManagedObject, state: dict[str, Any]) -> None:
        digest = manifest_hash(obj.manifest)
        with self._lock:
            self.extracted = state
            self.digest = digest


class DesiredStateCacheManager:
    """Maps managed-resource UIDs to their state caches."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.store: dict[str, Any] = {}

    def load_or_new_for_managed(self, mg: ManagedObject):
        with self._lock:
            return self.store.setdefault(mg.uid, DesiredStateCache())

    def remove(self, mg: ManagedObject) -> None:
        with self._lock:
            self.store.pop(mg.uid, None)