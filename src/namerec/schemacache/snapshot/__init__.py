"""Schema cache snapshots package."""

from namerec.schemacache.snapshot.codec import decode
from namerec.schemacache.snapshot.codec import dump
from namerec.schemacache.snapshot.codec import dump_to
from namerec.schemacache.snapshot.codec import dumps
from namerec.schemacache.snapshot.codec import from_document
from namerec.schemacache.snapshot.codec import is_current
from namerec.schemacache.snapshot.codec import load_from
from namerec.schemacache.snapshot.codec import loads
from namerec.schemacache.snapshot.codec import read_record
from namerec.schemacache.snapshot.codec import restore
from namerec.schemacache.snapshot.codec import to_document
from namerec.schemacache.snapshot.file import FileSnapshotStore
from namerec.schemacache.snapshot.protocol import SnapshotStore
from namerec.schemacache.snapshot.record import SNAPSHOT_FIELDS
from namerec.schemacache.snapshot.record import SnapshotRecord

# Redis store is imported lazily to avoid dependency issues
# Use: from namerec.schemacache.snapshot.redis import RedisSnapshotStore

__all__ = [
    'SNAPSHOT_FIELDS',
    'SnapshotRecord',
    'SnapshotStore',
    'FileSnapshotStore',
    'decode',
    'dump',
    'dump_to',
    'dumps',
    'from_document',
    'is_current',
    'load_from',
    'loads',
    'read_record',
    'restore',
    'to_document',
]
