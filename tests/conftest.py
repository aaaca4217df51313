"""Pytest configuration and fixtures."""

from collections import Counter
from typing import Any

import pytest
from sqlalchemy import Column as SAColumn
from sqlalchemy import ForeignKey
from sqlalchemy import Index as SAIndex
from sqlalchemy import Integer
from sqlalchemy import MetaData
from sqlalchemy import String
from sqlalchemy import Table
from sqlalchemy import create_engine
from sqlalchemy import text

from namerec.schemacache import Column
from namerec.schemacache import DatabaseVersion
from namerec.schemacache import Index
from namerec.schemacache import SchemaCache


def fresh(value: str) -> str:
    """Build an equal but distinct (not interned) string."""
    return ''.join(list(value))


class NoSuchDataSource(LookupError):
    """Raised by FakeBackend for unknown names."""


class FakeBackend:
    """
    In-memory schema backend counting every call.

    Returns freshly built values on each call so deduplication is observable.
    """

    def __init__(
        self,
        tables: dict[str, dict[str, Any]],
        schema_version: str | None = '20240101000000',
        database_version: tuple[int, ...] = (16, 2),
    ) -> None:
        self.tables = tables
        self.schema_version = schema_version
        self.server_version = database_version
        self.calls: Counter[str] = Counter()
        self.fail_with: dict[str, Exception] = {}

    def _call(self, operation: str) -> None:
        self.calls[operation] += 1
        if operation in self.fail_with:
            raise self.fail_with[operation]

    def _table(self, name: str) -> dict[str, Any]:
        if name not in self.tables:
            raise NoSuchDataSource(name)
        return self.tables[name]

    def data_source_exists(self, name: str) -> bool:
        self._call('data_source_exists')
        return name in self.tables

    def data_sources(self) -> list[str]:
        self._call('data_sources')
        return [fresh(name) for name in self.tables]

    def primary_key(self, name: str) -> Any:
        self._call('primary_key')
        primary_key = self._table(name)['primary_key']
        if isinstance(primary_key, tuple):
            return tuple(fresh(part) for part in primary_key)
        return None if primary_key is None else fresh(primary_key)

    def columns(self, name: str) -> list[Column]:
        self._call('columns')
        return [
            Column(name=fresh(col_name), sql_type=fresh(sql_type), nullable=nullable)
            for col_name, sql_type, nullable in self._table(name)['columns']
        ]

    def indexes(self, name: str) -> list[Index]:
        self._call('indexes')
        return [
            Index(name=fresh(ix_name), table=fresh(name), columns=tuple(fresh(c) for c in cols), unique=unique)
            for ix_name, cols, unique in self._table(name)['indexes']
        ]

    def current_schema_version(self) -> str | None:
        self._call('current_schema_version')
        return self.schema_version

    def database_version(self) -> DatabaseVersion:
        self._call('database_version')
        return DatabaseVersion(dialect=fresh('postgresql'), server_version=self.server_version)


def make_tables() -> dict[str, dict[str, Any]]:
    """Schema with users, posts and a composite-key memberships table."""
    return {
        'users': {
            'primary_key': 'id',
            'columns': [
                ('id', 'INTEGER', False),
                ('name', 'VARCHAR(100)', False),
                ('email', 'VARCHAR(100)', True),
            ],
            'indexes': [('ix_users_email', ('email',), True)],
        },
        'posts': {
            'primary_key': 'id',
            'columns': [
                ('id', 'INTEGER', False),
                ('user_id', 'INTEGER', False),
                ('title', 'VARCHAR(100)', True),
            ],
            'indexes': [('ix_posts_user_id', ('user_id',), False)],
        },
        'memberships': {
            'primary_key': ('user_id', 'group_id'),
            'columns': [
                ('user_id', 'INTEGER', False),
                ('group_id', 'INTEGER', False),
            ],
            'indexes': [],
        },
    }


@pytest.fixture
def backend() -> FakeBackend:
    """Create fake backend with users, posts and memberships."""
    return FakeBackend(make_tables())


@pytest.fixture
def cache(backend: FakeBackend) -> SchemaCache:
    """Create empty cache bound to the fake backend."""
    return SchemaCache(backend)


def create_test_schema(engine) -> None:  # noqa: ANN001
    """Create users/posts/memberships tables and an active_users view."""
    metadata = MetaData()

    users = Table(
        'users',
        metadata,
        SAColumn('id', Integer, primary_key=True),
        SAColumn('name', String(100), nullable=False),
        SAColumn('email', String(100)),
    )
    SAIndex('ix_users_email', users.c.email, unique=True)

    posts = Table(
        'posts',
        metadata,
        SAColumn('id', Integer, primary_key=True),
        SAColumn('user_id', Integer, ForeignKey('users.id'), nullable=False),
        SAColumn('title', String(200)),
    )
    SAIndex('ix_posts_user_id', posts.c.user_id)

    Table(
        'memberships',
        metadata,
        SAColumn('user_id', Integer, primary_key=True),
        SAColumn('group_id', Integer, primary_key=True),
    )

    metadata.create_all(engine)
    with engine.begin() as conn:
        conn.execute(text('CREATE VIEW active_users AS SELECT id, name FROM users'))


@pytest.fixture
def sqlite_engine():  # noqa: ANN201
    """Create in-memory SQLite engine with the test schema."""
    engine = create_engine('sqlite://')
    create_test_schema(engine)

    yield engine

    engine.dispose()
