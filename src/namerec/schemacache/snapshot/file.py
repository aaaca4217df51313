"""File system snapshot store."""

from dataclasses import dataclass
from pathlib import Path

from namerec.schemacache.core.types import SchemaBackend
from namerec.schemacache.metadata.cache import SchemaCache
from namerec.schemacache.snapshot.codec import SnapshotFormat
from namerec.schemacache.snapshot.codec import discard_if_stale
from namerec.schemacache.snapshot.codec import dump_to
from namerec.schemacache.snapshot.codec import load_from


@dataclass
class FileSnapshotStore:
    """
    Snapshot store keeping one file per key in a directory.

    Suitable for:
    - Shipping a schema cache with a deployment (e.g. built in CI)
    - Single host setups

    Files are named '<key>.<format>[.gz]'.
    """

    directory: Path
    fmt: SnapshotFormat = 'json'
    compress: bool = False

    def __post_init__(self) -> None:
        """Validate initialization parameters."""
        self.directory = Path(self.directory)
        if self.fmt not in ('json', 'pickle'):
            msg = f'Unknown snapshot format: {self.fmt}'
            raise ValueError(msg)

    def path_for(self, key: str) -> Path:
        """Get snapshot file path for key."""
        name = f'{key}.{self.fmt}'
        if self.compress:
            name += '.gz'
        return self.directory / name

    def save(self, key: str, cache: SchemaCache) -> None:
        """Write snapshot file, creating the directory if needed."""
        self.directory.mkdir(parents=True, exist_ok=True)
        dump_to(cache, self.path_for(key))

    def load(
        self,
        key: str,
        backend: SchemaBackend | None = None,
        *,
        check_version: bool = True,
    ) -> SchemaCache | None:
        """Read snapshot file (None if missing or stale)."""
        path = self.path_for(key)
        if not path.exists():
            return None
        cache = load_from(path, backend)
        if not check_version:
            return cache
        return discard_if_stale(cache, backend, str(path))

    def delete(self, key: str) -> None:
        """Remove snapshot file."""
        self.path_for(key).unlink(missing_ok=True)
