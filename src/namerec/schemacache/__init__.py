"""
Schema cache

Lazy, deduplicated cache of database structural metadata (existence,
columns, primary keys, indexes) with versioned snapshots.
"""

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
from namerec.schemacache.metadata import SchemaCache
from namerec.schemacache.metadata import SQLAlchemyBackend
from namerec.schemacache.snapshot import FileSnapshotStore
from namerec.schemacache.snapshot import SnapshotRecord
from namerec.schemacache.snapshot import SnapshotStore
from namerec.schemacache.snapshot import dump
from namerec.schemacache.snapshot import dump_to
from namerec.schemacache.snapshot import dumps
from namerec.schemacache.snapshot import load_from
from namerec.schemacache.snapshot import loads
from namerec.schemacache.snapshot import restore

__version__ = '1.0'

__all__ = [
    # Core types
    'Column',
    'DatabaseVersion',
    'Index',
    'PrimaryKey',
    'SchemaBackend',
    'SchemaVersion',
    # Exceptions
    'SchemaCacheError',
    'BackendNotBoundError',
    'CorruptSnapshotError',
    # Deduplication
    'Deduplicable',
    'deep_deduplicate',
    # Cache
    'SchemaCache',
    'SQLAlchemyBackend',
    # Snapshots
    'SnapshotRecord',
    'SnapshotStore',
    'FileSnapshotStore',
    'dump',
    'dump_to',
    'dumps',
    'load_from',
    'loads',
    'restore',
]
