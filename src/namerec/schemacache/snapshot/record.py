"""Positional snapshot record and the derive-and-deduplicate step."""

from collections.abc import Sequence
from typing import Any
from typing import NamedTuple

from namerec.schemacache.core.dedup import deep_deduplicate
from namerec.schemacache.core.exceptions import CorruptSnapshotError
from namerec.schemacache.core.types import Column
from namerec.schemacache.core.types import DatabaseVersion
from namerec.schemacache.core.types import Index
from namerec.schemacache.core.types import PrimaryKey
from namerec.schemacache.core.types import SchemaVersion


class SnapshotRecord(NamedTuple):
    """
    Snapshot of a SchemaCache in its stable positional layout.

    columns_hash is a reserved slot kept for older readers; it is always
    written empty and re-derived from columns on load.
    """

    version: SchemaVersion
    columns: dict[str, tuple[Column, ...]]
    columns_hash: dict[str, dict[str, Column]]
    primary_keys: dict[str, PrimaryKey]
    data_sources: dict[str, bool]
    indexes: dict[str, tuple[Index, ...]]
    database_version: DatabaseVersion | None


SNAPSHOT_FIELDS = SnapshotRecord._fields
RESERVED_FIELD = 'columns_hash'


class CacheTables(NamedTuple):
    """Tables ready to be installed on a SchemaCache."""

    columns: dict[str, tuple[Column, ...]]
    columns_hash: dict[str, dict[str, Column]]
    primary_keys: dict[str, PrimaryKey]
    data_sources: dict[str, bool]
    indexes: dict[str, tuple[Index, ...]]


def coerce_record(value: Any) -> SnapshotRecord:
    """
    Validate a positional record.

    Args:
        value: Any sequence of seven items in SNAPSHOT_FIELDS order

    Returns:
        Validated SnapshotRecord (data_sources/indexes default to {})

    Raises:
        CorruptSnapshotError: On wrong arity, wrong table types, unnamed
            columns or non-boolean existence flags
    """
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        msg = f'Snapshot record must be a sequence, got {type(value).__name__}'
        raise CorruptSnapshotError(msg)
    if len(value) != len(SNAPSHOT_FIELDS):
        msg = f'Snapshot record must have {len(SNAPSHOT_FIELDS)} fields, got {len(value)}'
        raise CorruptSnapshotError(msg)

    version, columns, _columns_hash, primary_keys, data_sources, indexes, database_version = value

    if data_sources is None:
        data_sources = {}
    if indexes is None:
        indexes = {}

    for field_name, table in (
        ('columns', columns),
        ('primary_keys', primary_keys),
        ('data_sources', data_sources),
        ('indexes', indexes),
    ):
        if not isinstance(table, dict):
            msg = f'Expected a mapping, got {type(table).__name__}'
            raise CorruptSnapshotError(msg, field_name)

    for field_name, table in (('columns', columns), ('indexes', indexes)):
        for name, entries in table.items():
            if not isinstance(entries, (list, tuple)):
                msg = f'Expected a list for "{name}", got {type(entries).__name__}'
                raise CorruptSnapshotError(msg, field_name)

    for name, column_list in columns.items():
        for column in column_list:
            if not isinstance(getattr(column, 'name', None), str):
                msg = f'Column without a string name in "{name}"'
                raise CorruptSnapshotError(msg, 'columns')

    for name, exists in data_sources.items():
        if not isinstance(exists, bool):
            msg = f'Expected a boolean for "{name}", got {type(exists).__name__}'
            raise CorruptSnapshotError(msg, 'data_sources')

    return SnapshotRecord(
        version=version,
        columns=columns,
        columns_hash={},
        primary_keys=primary_keys,
        data_sources=data_sources,
        indexes=indexes,
        database_version=database_version,
    )


def index_by_name(columns: tuple[Column, ...]) -> dict[str, Column]:
    """Key a column list by column name, preserving column order."""
    return {column.name: column for column in columns}


def derive_and_deduplicate(record: SnapshotRecord) -> CacheTables:
    """
    Build the cache tables from a validated record.

    Args:
        record: Validated snapshot record

    Returns:
        Deduplicated tables with columns_hash derived from columns
    """
    columns = deep_deduplicate({name: tuple(cols) for name, cols in record.columns.items()})
    return CacheTables(
        columns=columns,
        columns_hash={name: index_by_name(cols) for name, cols in columns.items()},
        primary_keys=deep_deduplicate(record.primary_keys),
        data_sources=deep_deduplicate(record.data_sources),
        indexes=deep_deduplicate({name: tuple(idx) for name, idx in record.indexes.items()}),
    )
