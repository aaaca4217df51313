"""Type definitions for the schema cache."""

from dataclasses import dataclass
from typing import Any
from typing import Protocol
from typing import runtime_checkable

from namerec.schemacache.core.dedup import Deduplicable

# Single column name, composite key, or no primary key at all
PrimaryKey = str | tuple[str, ...] | None

# Latest applied migration (Alembic revision, integer timestamp, ...)
SchemaVersion = str | int | None


@dataclass(frozen=True)
class Column(Deduplicable):
    """Column of a data source as reported by the backend."""

    name: str
    sql_type: str
    nullable: bool = True
    default: str | None = None
    autoincrement: bool | str = 'auto'
    comment: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Dictionary representation
        """
        return {
            'name': self.name,
            'sql_type': self.sql_type,
            'nullable': self.nullable,
            'default': self.default,
            'autoincrement': self.autoincrement,
            'comment': self.comment,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'Column':
        """Deserialize from dictionary."""
        return cls(
            name=data['name'],
            sql_type=data['sql_type'],
            nullable=data.get('nullable', True),
            default=data.get('default'),
            autoincrement=data.get('autoincrement', 'auto'),
            comment=data.get('comment'),
        )


@dataclass(frozen=True)
class Index(Deduplicable):
    """Index defined on a data source."""

    name: str | None
    table: str
    columns: tuple[str | None, ...]
    unique: bool = False

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Dictionary representation
        """
        return {
            'name': self.name,
            'table': self.table,
            'columns': list(self.columns),
            'unique': self.unique,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'Index':
        """Deserialize from dictionary."""
        return cls(
            name=data.get('name'),
            table=data['table'],
            columns=tuple(data.get('columns', ())),
            unique=data.get('unique', False),
        )


@dataclass(frozen=True)
class DatabaseVersion(Deduplicable):
    """Version of the database engine behind the backend."""

    dialect: str
    server_version: tuple[int | str, ...] = ()

    def __str__(self) -> str:
        """Format as 'dialect 1.2.3'."""
        if not self.server_version:
            return self.dialect
        return f'{self.dialect} {".".join(str(part) for part in self.server_version)}'

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Dictionary representation
        """
        return {
            'dialect': self.dialect,
            'server_version': list(self.server_version),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'DatabaseVersion':
        """Deserialize from dictionary."""
        return cls(
            dialect=data['dialect'],
            server_version=tuple(data.get('server_version', ())),
        )


@runtime_checkable
class SchemaBackend(Protocol):
    """
    Protocol for backends answering structural-introspection queries.

    Any object implementing these methods can back a SchemaCache without
    explicit inheritance. Implementations must not cache: every call is
    expected to reach the live database. Errors are raised as-is and the
    cache propagates them unmodified.
    """

    def data_source_exists(self, name: str) -> bool:
        """
        Check whether a table or view exists.

        Args:
            name: Data source name

        Returns:
            True if the data source exists
        """
        ...

    def data_sources(self) -> list[str]:
        """
        List all known data source names (tables and views).

        Returns:
            Data source names
        """
        ...

    def primary_key(self, name: str) -> PrimaryKey:
        """
        Get primary key of a data source.

        Args:
            name: Data source name

        Returns:
            Column name, tuple of column names, or None
        """
        ...

    def columns(self, name: str) -> list[Column]:
        """
        Get columns of a data source, in declaration order.

        Args:
            name: Data source name

        Returns:
            Column descriptors
        """
        ...

    def indexes(self, name: str) -> list[Index]:
        """
        Get indexes of a data source.

        Args:
            name: Data source name

        Returns:
            Index descriptors
        """
        ...

    def current_schema_version(self) -> SchemaVersion:
        """
        Get the latest applied migration.

        Returns:
            Schema version, or None if migrations are not tracked
        """
        ...

    def database_version(self) -> DatabaseVersion:
        """
        Get the database engine version.

        Returns:
            Database version descriptor
        """
        ...
