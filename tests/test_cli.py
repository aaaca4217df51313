"""Tests for the schema-cache console script."""

import json
import logging

import pytest
from conftest import create_test_schema
from sqlalchemy import create_engine
from sqlalchemy import text
from typer.testing import CliRunner

from namerec.schemacache.scripts.schema_cache import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_logging():
    """Keep root logger configuration from leaking between tests."""
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level

    yield

    root_logger.handlers = handlers
    root_logger.setLevel(level)


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """Run without SCHEMACACHE_* variables or a .env file."""
    for name in ('DATABASE_URL', 'DB_SCHEMA', 'SNAPSHOT_PATH', 'REDIS_URL', 'LOG_LEVEL', 'VERSION_TABLE'):
        monkeypatch.delenv(f'SCHEMACACHE_{name}', raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def database_url(isolated_env) -> str:
    """Create SQLite database file with the test schema at revision abc123."""
    url = f'sqlite:///{isolated_env / "app.db"}'
    engine = create_engine(url)
    create_test_schema(engine)
    set_revision(engine, 'abc123', create=True)
    engine.dispose()
    return url


def set_revision(engine, revision: str, *, create: bool = False) -> None:  # noqa: ANN001
    """Store the applied migration revision."""
    with engine.begin() as conn:
        if create:
            conn.execute(text('CREATE TABLE alembic_version (version_num VARCHAR(32) NOT NULL)'))
        conn.execute(text('DELETE FROM alembic_version'))
        conn.execute(text('INSERT INTO alembic_version (version_num) VALUES (:revision)'), {'revision': revision})


class TestDump:
    """Test the dump command."""

    def test_dump_all(self, database_url, isolated_env):
        """Dump should write every table and view."""
        snapshot = isolated_env / 'cache.json'

        result = runner.invoke(app, ['dump', '-u', database_url, '-s', str(snapshot)])

        assert result.exit_code == 0, result.output
        document = json.loads(snapshot.read_text())
        assert document['version'] == 'abc123'
        assert set(document['columns']) >= {'users', 'posts', 'memberships', 'active_users'}

    def test_dump_selected_tables(self, database_url, isolated_env):
        """Only named tables should be populated; missing ones skipped."""
        snapshot = isolated_env / 'cache.json'

        result = runner.invoke(
            app,
            ['dump', '-u', database_url, '-s', str(snapshot), '-t', 'users', '-t', 'ghost', '--log-level', 'WARNING'],
        )

        assert result.exit_code == 0, result.output
        document = json.loads(snapshot.read_text())
        assert list(document['columns']) == ['users']
        assert document['primary_keys'] == {'users': 'id'}

    def test_database_url_from_environment(self, database_url, isolated_env, monkeypatch):
        """Database URL should fall back to SCHEMACACHE_DATABASE_URL."""
        monkeypatch.setenv('SCHEMACACHE_DATABASE_URL', database_url)

        result = runner.invoke(app, ['dump', '-t', 'users'])

        assert result.exit_code == 0, result.output
        assert (isolated_env / 'schema_cache.json').exists()

    def test_missing_database_url(self, isolated_env):
        """Dump without a database URL should fail."""
        result = runner.invoke(app, ['dump'])

        assert result.exit_code == 1

    def test_unreachable_database(self, isolated_env):
        """Connection errors should be reported, not raised."""
        url = f'sqlite:///{isolated_env / "missing" / "dir" / "app.db"}'

        result = runner.invoke(app, ['dump', '-u', url, '-s', str(isolated_env / 'cache.json')])

        assert result.exit_code == 1
        assert result.exception is None or isinstance(result.exception, SystemExit)
        assert 'Error:' in result.output
        assert not (isolated_env / 'cache.json').exists()

    def test_unwritable_snapshot(self, database_url, isolated_env):
        """File errors while writing the snapshot should be reported."""
        snapshot = isolated_env / 'missing' / 'cache.json'

        result = runner.invoke(app, ['dump', '-u', database_url, '-s', str(snapshot), '-t', 'users'])

        assert result.exit_code == 1
        assert 'Error:' in result.output

    def test_redis_key_needs_redis_url(self, database_url):
        """--redis-key without a Redis URL should fail."""
        result = runner.invoke(app, ['dump', '-u', database_url, '--redis-key', 'main'])

        assert result.exit_code == 1


class TestShow:
    """Test the show command."""

    def test_summary(self, database_url, isolated_env):
        """Show should print versions and per data source counts."""
        snapshot = isolated_env / 'cache.pickle.gz'
        runner.invoke(app, ['dump', '-u', database_url, '-s', str(snapshot), '-t', 'users', '-t', 'memberships'])

        result = runner.invoke(app, ['show', '-s', str(snapshot), '--no-pretty', '--log-level', 'WARNING'])

        assert result.exit_code == 0, result.output
        summary = json.loads(result.stdout)
        assert summary['version'] == 'abc123'
        assert summary['database_version'].startswith('sqlite ')
        assert summary['data_sources']['users'] == {
            'exists': True,
            'primary_key': 'id',
            'columns': 3,
            'indexes': 1,
        }
        assert summary['data_sources']['memberships']['primary_key'] == ['user_id', 'group_id']
        assert summary['data_sources']['posts'] == {
            'exists': True,
            'primary_key': None,
            'columns': 0,
            'indexes': 0,
        }

    def test_missing_file(self, isolated_env):
        """Show should fail for a missing snapshot."""
        result = runner.invoke(app, ['show', '-s', str(isolated_env / 'none.json')])

        assert result.exit_code == 1

    def test_corrupt_file(self, isolated_env):
        """Show should fail for an unreadable snapshot."""
        snapshot = isolated_env / 'cache.json'
        snapshot.write_text('{not json')

        result = runner.invoke(app, ['show', '-s', str(snapshot)])

        assert result.exit_code == 1


class TestCheck:
    """Test the check command."""

    def test_current_then_stale(self, database_url, isolated_env):
        """Check should pass until the schema revision changes."""
        snapshot = isolated_env / 'cache.json'
        runner.invoke(app, ['dump', '-u', database_url, '-s', str(snapshot), '-t', 'users'])

        result = runner.invoke(app, ['check', '-u', database_url, '-s', str(snapshot)])
        assert result.exit_code == 0, result.output

        engine = create_engine(database_url)
        set_revision(engine, 'def456')
        engine.dispose()

        result = runner.invoke(app, ['check', '-u', database_url, '-s', str(snapshot)])
        assert result.exit_code == 1

    def test_unreachable_database(self, database_url, isolated_env):
        """Connection errors should be reported, not raised."""
        snapshot = isolated_env / 'cache.json'
        runner.invoke(app, ['dump', '-u', database_url, '-s', str(snapshot), '-t', 'users'])
        url = f'sqlite:///{isolated_env / "missing" / "dir" / "app.db"}'

        result = runner.invoke(app, ['check', '-u', url, '-s', str(snapshot)])

        assert result.exit_code == 1
        assert 'Error:' in result.output
