"""Schema backend over SQLAlchemy reflection."""

import logging

from sqlalchemy import Engine
from sqlalchemy import column
from sqlalchemy import inspect
from sqlalchemy import select
from sqlalchemy import table
from sqlalchemy.engine import Inspector
from sqlalchemy.exc import CompileError
from sqlalchemy.types import TypeEngine

from namerec.schemacache.core.types import Column
from namerec.schemacache.core.types import DatabaseVersion
from namerec.schemacache.core.types import Index
from namerec.schemacache.core.types import PrimaryKey
from namerec.schemacache.core.types import SchemaVersion

logger = logging.getLogger(__name__)


class SQLAlchemyBackend:
    """
    Answers introspection queries using SQLAlchemy's Inspector.

    Every call builds a fresh Inspector, so nothing is cached here: caching
    is the job of SchemaCache. SQLAlchemy errors (NoSuchTableError,
    OperationalError, ...) are raised as-is.

    The schema version is read from the Alembic version table when it
    exists.

    Attributes:
        _engine: SQLAlchemy Engine (sync)
        _schema: Optional schema name for reflection
        _version_table: Migration version table name
    """

    def __init__(
        self,
        engine: Engine,
        schema: str | None = None,
        version_table: str = 'alembic_version',
    ) -> None:
        """
        Initialize backend.

        Args:
            engine: SQLAlchemy Engine
            schema: Optional schema name (e.g., 'public' for PostgreSQL)
            version_table: Table holding the applied migration revision
        """
        self._engine = engine
        self._schema = schema
        self._version_table = version_table

    @property
    def engine(self) -> Engine:
        """Get engine."""
        return self._engine

    @property
    def schema(self) -> str | None:
        """Get configured schema name."""
        return self._schema

    def data_source_exists(self, name: str) -> bool:
        """Check whether a table or view exists."""
        inspector = self._inspector()
        if inspector.has_table(name, schema=self._schema):
            return True
        return name in inspector.get_view_names(schema=self._schema)

    def data_sources(self) -> list[str]:
        """List table and view names."""
        inspector = self._inspector()
        return [
            *inspector.get_table_names(schema=self._schema),
            *inspector.get_view_names(schema=self._schema),
        ]

    def primary_key(self, name: str) -> PrimaryKey:
        """
        Get primary key from the primary key constraint.

        Returns:
            None without a primary key, the column name for a single column
            key, a tuple of column names for a composite key
        """
        constraint = self._inspector().get_pk_constraint(name, schema=self._schema)
        pk_columns = constraint.get('constrained_columns') or []
        if not pk_columns:
            return None
        if len(pk_columns) == 1:
            return pk_columns[0]
        return tuple(pk_columns)

    def columns(self, name: str) -> list[Column]:
        """Get columns in declaration order."""
        return [
            Column(
                name=info['name'],
                sql_type=self._render_type(info['type']),
                nullable=bool(info.get('nullable', True)),
                default=None if info.get('default') is None else str(info['default']),
                autoincrement=info.get('autoincrement', 'auto'),
                comment=info.get('comment'),
            )
            for info in self._inspector().get_columns(name, schema=self._schema)
        ]

    def indexes(self, name: str) -> list[Index]:
        """Get indexes."""
        return [
            Index(
                name=info['name'],
                table=name,
                columns=tuple(info['column_names']),
                unique=bool(info['unique']),
            )
            for info in self._inspector().get_indexes(name, schema=self._schema)
        ]

    def current_schema_version(self) -> SchemaVersion:
        """
        Get the applied Alembic revision.

        Returns:
            Revision id, comma-joined revision ids when several heads are
            applied, or None if migrations are not tracked
        """
        if not self._inspector().has_table(self._version_table, schema=self._schema):
            return None

        version_table = table(self._version_table, column('version_num'), schema=self._schema)
        with self._engine.connect() as conn:
            revisions = conn.execute(select(version_table.c.version_num)).scalars().all()

        if not revisions:
            return None
        return ','.join(sorted(revisions))

    def database_version(self) -> DatabaseVersion:
        """Get dialect name and server version."""
        # server_version_info is filled in on first connect
        with self._engine.connect():
            pass
        dialect = self._engine.dialect
        return DatabaseVersion(
            dialect=dialect.name,
            server_version=tuple(dialect.server_version_info or ()),
        )

    def _inspector(self) -> Inspector:
        return inspect(self._engine)

    def _render_type(self, type_: TypeEngine) -> str:
        try:
            return str(type_.compile(dialect=self._engine.dialect))
        except CompileError:
            logger.debug(f'Cannot compile type {type_!r}, using its class name')
            return type(type_).__name__
