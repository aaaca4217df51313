"""Snapshot store protocol definition."""

from typing import Protocol
from typing import runtime_checkable

from namerec.schemacache.core.types import SchemaBackend
from namerec.schemacache.metadata.cache import SchemaCache


@runtime_checkable
class SnapshotStore(Protocol):
    """
    Protocol for places schema cache snapshots are persisted to.

    Allows structural subtyping - any class implementing these methods
    can be used as a snapshot store without explicit inheritance.
    """

    def save(self, key: str, cache: SchemaCache) -> None:
        """
        Persist a snapshot of the cache.

        Args:
            key: Snapshot key (e.g. database or namespace name)
            cache: Cache to persist (must have a backend bound)
        """
        ...

    def load(
        self,
        key: str,
        backend: SchemaBackend | None = None,
        *,
        check_version: bool = True,
    ) -> SchemaCache | None:
        """
        Load a snapshot.

        Args:
            key: Snapshot key
            backend: Backend to bind to the restored cache
            check_version: Ignore snapshots taken at another schema version
                (requires backend)

        Returns:
            Restored cache, or None if missing or stale
        """
        ...

    def delete(self, key: str) -> None:
        """
        Remove a snapshot (no error if missing).

        Args:
            key: Snapshot key
        """
        ...
