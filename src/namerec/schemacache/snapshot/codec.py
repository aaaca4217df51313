"""Snapshot encoding and decoding for SchemaCache."""

import gzip
import json
import logging
import os
import pickle
from pathlib import Path
from typing import Any
from typing import Literal

from namerec.schemacache.core.exceptions import CorruptSnapshotError
from namerec.schemacache.core.types import Column
from namerec.schemacache.core.types import DatabaseVersion
from namerec.schemacache.core.types import Index
from namerec.schemacache.core.types import SchemaBackend
from namerec.schemacache.metadata.cache import SchemaCache
from namerec.schemacache.snapshot.record import RESERVED_FIELD
from namerec.schemacache.snapshot.record import SnapshotRecord
from namerec.schemacache.snapshot.record import coerce_record
from namerec.schemacache.snapshot.record import derive_and_deduplicate

logger = logging.getLogger(__name__)

SnapshotFormat = Literal['pickle', 'json']

_SUFFIX_FORMATS: dict[str, SnapshotFormat] = {
    '.json': 'json',
    '.pickle': 'pickle',
    '.pkl': 'pickle',
    '.dump': 'pickle',
}

_UNPICKLING_ERRORS = (
    pickle.UnpicklingError,
    EOFError,
    AttributeError,
    ImportError,
    IndexError,
    TypeError,
    ValueError,
)


def dump(cache: SchemaCache) -> SnapshotRecord:
    """
    Capture the whole cache as a positional record.

    The schema version is always read fresh from the backend (and recorded
    on the cache); the database version is computed if not cached yet.

    Args:
        cache: Cache to snapshot (must have a backend bound)

    Returns:
        Snapshot record with an empty columns_hash placeholder

    Raises:
        BackendNotBoundError: If the cache has no backend
    """
    backend = cache._require_backend('dump schema cache')
    version = backend.current_schema_version()
    cache._set_version(version)
    return SnapshotRecord(
        version=version,
        columns=dict(cache._columns),
        columns_hash={},
        primary_keys=dict(cache._primary_keys),
        data_sources=dict(cache._data_sources),
        indexes=dict(cache._indexes),
        database_version=cache.database_version(),
    )


def restore(record: Any, backend: SchemaBackend | None = None) -> SchemaCache:
    """
    Build a cache from a positional record.

    The columns hash is derived from the restored columns and every table is
    deduplicated. Nothing is returned unless the whole record is valid.

    Args:
        record: SnapshotRecord or any seven-item sequence in the same order
        backend: Optional backend to bind for later misses

    Returns:
        Restored cache

    Raises:
        CorruptSnapshotError: If the record is malformed
    """
    validated = coerce_record(record)
    tables = derive_and_deduplicate(validated)
    cache = SchemaCache(backend)
    cache._install(tables, validated.version, validated.database_version)
    logger.debug(f'Restored schema cache with {cache.size()} entries (version {validated.version!r})')
    return cache


def is_current(cache: SchemaCache, backend: SchemaBackend) -> bool:
    """
    Check whether a cache was taken at the backend's current schema version.

    Args:
        cache: Restored cache
        backend: Live backend

    Returns:
        True if versions match
    """
    return cache.version == backend.current_schema_version()


def discard_if_stale(cache: SchemaCache, backend: SchemaBackend | None, source: str) -> SchemaCache | None:
    """
    Drop a restored cache taken at another schema version.

    Args:
        cache: Restored cache
        backend: Live backend (None skips the check)
        source: Where the snapshot came from, for the log message

    Returns:
        The cache, or None if it is stale
    """
    if backend is None:
        return cache
    current = backend.current_schema_version()
    if cache.version != current:
        logger.warning(
            f'Ignoring schema cache from {source}: snapshot version {cache.version!r} '
            f'does not match current version {current!r}'
        )
        return None
    return cache


def to_document(record: SnapshotRecord) -> dict[str, Any]:
    """
    Convert a record to the field-named, JSON-compatible form.

    Args:
        record: Snapshot record

    Returns:
        Dictionary with every snapshot field
    """
    return {
        'version': record.version,
        'columns': {name: [_encode(column) for column in columns] for name, columns in record.columns.items()},
        RESERVED_FIELD: {},
        'primary_keys': {name: _encode(pk) for name, pk in record.primary_keys.items()},
        'data_sources': dict(record.data_sources),
        'indexes': {name: [_encode(index) for index in indexes] for name, indexes in record.indexes.items()},
        'database_version': _encode(record.database_version),
    }


def from_document(document: Any) -> SnapshotRecord:
    """
    Convert the field-named form back to a positional record.

    Unknown fields are ignored. Missing fields default to None (versions)
    or an empty table. The reserved columns_hash field is discarded.

    Args:
        document: Dictionary produced by to_document

    Returns:
        Validated snapshot record

    Raises:
        CorruptSnapshotError: If the document or one of its fields is malformed
    """
    if not isinstance(document, dict):
        msg = f'Snapshot document must be a mapping, got {type(document).__name__}'
        raise CorruptSnapshotError(msg)

    tables: dict[str, Any] = {}
    for field_name in ('columns', 'primary_keys', 'data_sources', 'indexes'):
        table = document.get(field_name)
        if table is None:
            table = {}
        if not isinstance(table, dict):
            msg = f'Expected a mapping, got {type(table).__name__}'
            raise CorruptSnapshotError(msg, field_name)
        tables[field_name] = table

    try:
        columns = {
            name: tuple(Column.from_dict(column) for column in columns)
            for name, columns in tables['columns'].items()
        }
    except (KeyError, TypeError, ValueError) as e:
        msg = f'Invalid column entry: {e}'
        raise CorruptSnapshotError(msg, 'columns') from e

    try:
        indexes = {
            name: tuple(Index.from_dict(index) for index in indexes)
            for name, indexes in tables['indexes'].items()
        }
    except (KeyError, TypeError, ValueError) as e:
        msg = f'Invalid index entry: {e}'
        raise CorruptSnapshotError(msg, 'indexes') from e

    database_version = document.get('database_version')
    if database_version is not None:
        try:
            database_version = DatabaseVersion.from_dict(database_version)
        except (KeyError, TypeError, ValueError) as e:
            msg = f'Invalid database version: {e}'
            raise CorruptSnapshotError(msg, 'database_version') from e

    return coerce_record(
        (
            document.get('version'),
            columns,
            {},
            {name: tuple(pk) if isinstance(pk, list) else pk for name, pk in tables['primary_keys'].items()},
            tables['data_sources'],
            indexes,
            database_version,
        )
    )


def dumps(cache: SchemaCache, fmt: SnapshotFormat = 'pickle') -> bytes:
    """
    Serialize a cache to bytes.

    Args:
        cache: Cache to serialize
        fmt: 'pickle' for the positional record, 'json' for the document form

    Returns:
        Encoded snapshot
    """
    record = dump(cache)
    if fmt == 'pickle':
        return pickle.dumps(list(record), protocol=pickle.HIGHEST_PROTOCOL)
    if fmt == 'json':
        return json.dumps(to_document(record), ensure_ascii=False).encode()
    msg = f'Unknown snapshot format: {fmt}'
    raise ValueError(msg)


def decode(data: bytes, fmt: SnapshotFormat = 'pickle') -> SnapshotRecord:
    """
    Decode bytes into a validated record without building a cache.

    Pickle snapshots execute code on load: only read snapshots you wrote.

    Args:
        data: Encoded snapshot
        fmt: Format used by dumps()

    Returns:
        Validated snapshot record

    Raises:
        CorruptSnapshotError: If the data cannot be decoded
    """
    if fmt == 'pickle':
        try:
            record = pickle.loads(data)  # noqa: S301
        except _UNPICKLING_ERRORS as e:
            msg = f'Cannot unpickle snapshot: {e}'
            raise CorruptSnapshotError(msg) from e
        return coerce_record(record)

    if fmt == 'json':
        try:
            document = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            msg = f'Cannot decode JSON snapshot: {e}'
            raise CorruptSnapshotError(msg) from e
        return from_document(document)

    msg = f'Unknown snapshot format: {fmt}'
    raise ValueError(msg)


def loads(data: bytes, fmt: SnapshotFormat = 'pickle', backend: SchemaBackend | None = None) -> SchemaCache:
    """
    Deserialize a cache from bytes.

    Args:
        data: Encoded snapshot
        fmt: Format used by dumps()
        backend: Optional backend to bind

    Returns:
        Restored cache

    Raises:
        CorruptSnapshotError: If the data cannot be decoded
    """
    return restore(decode(data, fmt), backend)


def format_for_path(path: str | Path) -> tuple[SnapshotFormat, bool]:
    """
    Guess snapshot format and compression from a file name.

    Args:
        path: Snapshot file path (e.g. 'schema_cache.json.gz')

    Returns:
        Tuple of (format, gzip-compressed)

    Raises:
        ValueError: If the suffix is not recognized
    """
    suffixes = [suffix.lower() for suffix in Path(path).suffixes]
    compressed = bool(suffixes) and suffixes[-1] == '.gz'
    if compressed:
        suffixes = suffixes[:-1]
    if suffixes and suffixes[-1] in _SUFFIX_FORMATS:
        return _SUFFIX_FORMATS[suffixes[-1]], compressed
    msg = f'Cannot infer snapshot format from "{path}", expected one of {sorted(_SUFFIX_FORMATS)}'
    raise ValueError(msg)


def dump_to(cache: SchemaCache, path: str | Path) -> None:
    """
    Write a cache snapshot to a file.

    The file is replaced atomically. Format and compression follow the
    file name (see format_for_path).

    Args:
        cache: Cache to write
        path: Target file
    """
    path = Path(path)
    fmt, compressed = format_for_path(path)
    data = dumps(cache, fmt)
    if compressed:
        data = gzip.compress(data)

    tmp_path = path.with_name(f'.{path.name}.tmp')
    tmp_path.write_bytes(data)
    os.replace(tmp_path, path)
    logger.info(f'Schema cache written to {path} ({cache.size()} entries)')


def read_record(path: str | Path) -> SnapshotRecord:
    """
    Read a snapshot file into a validated record.

    Args:
        path: Snapshot file written by dump_to()

    Returns:
        Validated snapshot record

    Raises:
        CorruptSnapshotError: If the file cannot be decoded
    """
    path = Path(path)
    fmt, compressed = format_for_path(path)
    data = path.read_bytes()
    if compressed:
        try:
            data = gzip.decompress(data)
        except (OSError, EOFError) as e:
            msg = f'Cannot decompress snapshot {path}: {e}'
            raise CorruptSnapshotError(msg) from e
    return decode(data, fmt)


def load_from(path: str | Path, backend: SchemaBackend | None = None) -> SchemaCache:
    """
    Read a cache snapshot from a file.

    Args:
        path: Snapshot file written by dump_to()
        backend: Optional backend to bind

    Returns:
        Restored cache

    Raises:
        CorruptSnapshotError: If the file cannot be decoded
    """
    return restore(read_record(path), backend)


def _encode(value: Any) -> Any:
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    if isinstance(value, tuple):
        return list(value)
    return value
