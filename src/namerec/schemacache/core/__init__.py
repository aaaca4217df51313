"""Core schema cache components."""

from namerec.schemacache.core.dedup import Deduplicable
from namerec.schemacache.core.dedup import deep_deduplicate
from namerec.schemacache.core.exceptions import BackendNotBoundError
from namerec.schemacache.core.exceptions import CorruptSnapshotError
from namerec.schemacache.core.exceptions import SchemaCacheError
from namerec.schemacache.core.types import Column
from namerec.schemacache.core.types import DatabaseVersion
from namerec.schemacache.core.types import Index
from namerec.schemacache.core.types import PrimaryKey
from namerec.schemacache.core.types import SchemaBackend
from namerec.schemacache.core.types import SchemaVersion

__all__ = [
    'Column',
    'DatabaseVersion',
    'Index',
    'PrimaryKey',
    'SchemaBackend',
    'SchemaVersion',
    'Deduplicable',
    'deep_deduplicate',
    'SchemaCacheError',
    'BackendNotBoundError',
    'CorruptSnapshotError',
]
