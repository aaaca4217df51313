"""Lazy per-data-source cache of structural metadata."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Any

from namerec.schemacache.core.dedup import deep_deduplicate
from namerec.schemacache.core.exceptions import BackendNotBoundError
from namerec.schemacache.core.types import Column
from namerec.schemacache.core.types import DatabaseVersion
from namerec.schemacache.core.types import Index
from namerec.schemacache.core.types import PrimaryKey
from namerec.schemacache.core.types import SchemaBackend
from namerec.schemacache.core.types import SchemaVersion

if TYPE_CHECKING:
    from namerec.schemacache.snapshot.record import CacheTables

logger = logging.getLogger(__name__)

_MISSING = object()


class SchemaCache:
    """
    Cache for data source existence, columns, primary keys and indexes.

    Every table is keyed by data source name and populated lazily from the
    backend on the first miss. Keys and values go through deep_deduplicate
    before being stored, so equal names, columns and indexes share one
    instance across all tables.

    Backend errors propagate unmodified and failed lookups are never
    cached. No locking is done: concurrent misses for the same name may
    query the backend more than once, and the last write wins.

    Attributes:
        backend: Backend answering introspection queries (None after restore
            until rebound)
        _columns: Column tuples per data source
        _columns_hash: Columns keyed by column name per data source
        _primary_keys: Primary key per data source
        _data_sources: Existence flag per data source
        _indexes: Index tuples per data source
    """

    def __init__(self, backend: SchemaBackend | None = None) -> None:
        """
        Initialize empty cache.

        Args:
            backend: Backend to query on cache misses
        """
        self.backend = backend
        self._columns: dict[str, tuple[Column, ...]] = {}
        self._columns_hash: dict[str, dict[str, Column]] = {}
        self._primary_keys: dict[str, PrimaryKey] = {}
        self._data_sources: dict[str, bool] = {}
        self._indexes: dict[str, tuple[Index, ...]] = {}
        self._version: SchemaVersion = None
        self._database_version: DatabaseVersion | None = None
        self._data_sources_prepared = False

    @property
    def version(self) -> SchemaVersion:
        """Schema version recorded by the last dump or restore."""
        return self._version

    def primary_keys(self, table_name: str) -> PrimaryKey:
        """
        Get primary key of a data source.

        Args:
            table_name: Data source name

        Returns:
            Primary key, or None if the data source does not exist
        """
        primary_key = self._primary_keys.get(table_name, _MISSING)
        if primary_key is not _MISSING:
            return primary_key

        if not self.data_source_exists(table_name):
            return None

        logger.debug(f'Primary key cache miss for "{table_name}"')
        backend = self._require_backend('load primary key', table_name)
        primary_key = deep_deduplicate(backend.primary_key(table_name))
        self._primary_keys[deep_deduplicate(table_name)] = primary_key
        return primary_key

    def data_source_exists(self, name: str) -> bool:
        """
        Cached lookup for table or view existence.

        The first lookup seeds the existence table with every data source
        the backend knows about (once per cache lifetime). Names still
        unknown afterwards are checked one by one and the answer (True or
        False) is cached.

        Args:
            name: Data source name

        Returns:
            True if the data source exists
        """
        exists = self._data_sources.get(name)
        if exists is not None:
            return exists

        if not self._data_sources_prepared:
            self._prepare_data_sources()
            exists = self._data_sources.get(name)
            if exists is not None:
                return exists

        logger.debug(f'Existence cache miss for "{name}"')
        exists = bool(self._require_backend('check existence', name).data_source_exists(name))
        self._data_sources[deep_deduplicate(name)] = exists
        return exists

    def data_sources(self, name: str) -> bool | None:
        """
        Peek at the cached existence flag without querying the backend.

        Args:
            name: Data source name

        Returns:
            Cached flag, or None if not cached
        """
        return self._data_sources.get(name)

    def data_source_names(self) -> list[str]:
        """
        Get names of every data source known to exist.

        Lists the backend only if the existence table was never seeded, so
        later data_source_exists() calls for these names are cache hits.

        Returns:
            Names cached as existing, in listing order
        """
        if not self._data_sources_prepared:
            self._prepare_data_sources()
        return [name for name, exists in self._data_sources.items() if exists]

    def add(self, table_name: str) -> None:
        """
        Eagerly cache everything known about a data source.

        Does nothing if the data source does not exist.

        Args:
            table_name: Data source name
        """
        if self.data_source_exists(table_name):
            self.primary_keys(table_name)
            self.columns(table_name)
            self.columns_hash(table_name)
            self.indexes(table_name)

    def columns(self, table_name: str) -> tuple[Column, ...]:
        """
        Get columns of a data source.

        Existence is not checked: for an unknown name the backend error
        propagates.

        Args:
            table_name: Data source name

        Returns:
            Column descriptors in declaration order
        """
        columns = self._columns.get(table_name)
        if columns is not None:
            return columns

        logger.debug(f'Columns cache miss for "{table_name}"')
        backend = self._require_backend('load columns', table_name)
        columns = deep_deduplicate(tuple(backend.columns(table_name)))
        self._columns[deep_deduplicate(table_name)] = columns
        return columns

    def columns_hash(self, table_name: str) -> dict[str, Column]:
        """
        Get columns of a data source keyed by column name.

        Derived from columns(), never loaded separately.

        Args:
            table_name: Data source name

        Returns:
            Mapping of column name to column descriptor
        """
        columns_hash = self._columns_hash.get(table_name)
        if columns_hash is not None:
            return columns_hash

        columns_hash = {column.name: column for column in self.columns(table_name)}
        self._columns_hash[deep_deduplicate(table_name)] = columns_hash
        return columns_hash

    def has_columns_hash(self, table_name: str) -> bool:
        """
        Check if the columns hash is already cached for a data source.

        Args:
            table_name: Data source name

        Returns:
            True if cached, False otherwise
        """
        return table_name in self._columns_hash

    def indexes(self, table_name: str) -> tuple[Index, ...]:
        """
        Get indexes of a data source.

        Args:
            table_name: Data source name

        Returns:
            Index descriptors
        """
        indexes = self._indexes.get(table_name)
        if indexes is not None:
            return indexes

        logger.debug(f'Indexes cache miss for "{table_name}"')
        backend = self._require_backend('load indexes', table_name)
        indexes = deep_deduplicate(tuple(backend.indexes(table_name)))
        self._indexes[deep_deduplicate(table_name)] = indexes
        return indexes

    def database_version(self) -> DatabaseVersion:
        """
        Get the database engine version, queried once per cache lifetime.

        Returns:
            Database version descriptor
        """
        if self._database_version is None:
            self._database_version = deep_deduplicate(
                self._require_backend('load database version').database_version()
            )
        return self._database_version

    def clear(self) -> None:
        """Clear all cached data, including schema and database versions."""
        logger.debug('Clearing schema cache')
        self._columns.clear()
        self._columns_hash.clear()
        self._primary_keys.clear()
        self._data_sources.clear()
        self._indexes.clear()
        self._version = None
        self._database_version = None
        self._data_sources_prepared = False

    def clear_data_source_cache(self, name: str) -> None:
        """
        Clear all cached data for one data source.

        Args:
            name: Data source name
        """
        logger.debug(f'Clearing schema cache for "{name}"')
        self._columns.pop(name, None)
        self._columns_hash.pop(name, None)
        self._primary_keys.pop(name, None)
        self._data_sources.pop(name, None)
        self._indexes.pop(name, None)

    def size(self) -> int:
        """
        Count cached entries (diagnostics only).

        Returns:
            Entries in the columns, columns hash, primary key and existence tables
        """
        return sum(
            len(table)
            for table in (self._columns, self._columns_hash, self._primary_keys, self._data_sources)
        )

    def __len__(self) -> int:
        return self.size()

    def duplicate(self) -> 'SchemaCache':
        """
        Copy the cache.

        The copy shares the backend but none of the tables: populating or
        clearing one never affects the other. Cached values themselves are
        immutable and stay shared.

        Returns:
            Independent cache
        """
        other = SchemaCache(self.backend)
        other._columns = dict(self._columns)
        other._columns_hash = {name: dict(columns) for name, columns in self._columns_hash.items()}
        other._primary_keys = dict(self._primary_keys)
        other._data_sources = dict(self._data_sources)
        other._indexes = dict(self._indexes)
        other._version = self._version
        other._database_version = self._database_version
        other._data_sources_prepared = self._data_sources_prepared
        return other

    def __copy__(self) -> 'SchemaCache':
        return self.duplicate()

    def __deepcopy__(self, memo: dict[int, Any]) -> 'SchemaCache':
        # Cached values are immutable, copying the tables is enough
        return self.duplicate()

    def __getstate__(self) -> list[Any]:
        """Pickle as the positional snapshot record (the backend is not pickled)."""
        # Import here to avoid circular dependency
        from namerec.schemacache.snapshot.codec import dump

        return list(dump(self))

    def __setstate__(self, state: list[Any]) -> None:
        """Restore from a positional snapshot record, all-or-nothing."""
        from namerec.schemacache.snapshot.record import coerce_record
        from namerec.schemacache.snapshot.record import derive_and_deduplicate

        record = coerce_record(state)
        tables = derive_and_deduplicate(record)
        self.backend = None
        self._install(tables, record.version, record.database_version)

    def __repr__(self) -> str:
        return f'<SchemaCache size={self.size()} version={self._version!r}>'

    def _install(
        self,
        tables: CacheTables,
        version: SchemaVersion,
        database_version: DatabaseVersion | None,
    ) -> None:
        """
        Replace every table at once (internal use only).

        Args:
            tables: CacheTables produced by derive_and_deduplicate
            version: Schema version of the snapshot
            database_version: Database version of the snapshot
        """
        self._columns = tables.columns
        self._columns_hash = tables.columns_hash
        self._primary_keys = tables.primary_keys
        self._data_sources = tables.data_sources
        self._indexes = tables.indexes
        self._version = version
        self._database_version = deep_deduplicate(database_version)
        self._data_sources_prepared = bool(self._data_sources)

    def _set_version(self, version: SchemaVersion) -> None:
        """Record the schema version a snapshot was taken at (internal use only)."""
        self._version = version

    def _require_backend(self, operation: str, name: str | None = None) -> SchemaBackend:
        if self.backend is None:
            raise BackendNotBoundError(operation, name)
        return self.backend

    def _prepare_data_sources(self) -> None:
        names = self._require_backend('list data sources').data_sources()
        logger.debug(f'Seeding existence cache with {len(names)} data sources')
        for name in names:
            self._data_sources[deep_deduplicate(name)] = True
        self._data_sources_prepared = True
