#!/usr/bin/env python3
"""Console script to build, inspect and check schema cache snapshots."""

import json
from pathlib import Path
from typing import Annotated
from typing import Any

import structlog
import typer
from sqlalchemy import create_engine

from namerec.schemacache.core.exceptions import SchemaCacheError
from namerec.schemacache.logging_config import configure_logging
from namerec.schemacache.metadata.cache import SchemaCache
from namerec.schemacache.metadata.reflector import SQLAlchemyBackend
from namerec.schemacache.settings import Settings
from namerec.schemacache.settings import get_settings
from namerec.schemacache.snapshot.codec import dump_to
from namerec.schemacache.snapshot.codec import read_record
from namerec.schemacache.snapshot.record import SnapshotRecord

app = typer.Typer(help='Build, inspect and check schema cache snapshots.')
logger = structlog.get_logger()

DatabaseUrlOption = Annotated[
    str | None,
    typer.Option('--database-url', '-u', help='SQLAlchemy database URL (default: SCHEMACACHE_DATABASE_URL)'),
]
SnapshotOption = Annotated[
    Path | None,
    typer.Option('--snapshot', '-s', help='Snapshot file, .json or .pickle plus optional .gz'),
]
SchemaOption = Annotated[
    str | None,
    typer.Option('--schema', help='Database schema to reflect (default: SCHEMACACHE_DB_SCHEMA)'),
]
LogLevelOption = Annotated[
    str | None,
    typer.Option('--log-level', help='Logging level (default: SCHEMACACHE_LOG_LEVEL)'),
]


@app.command()
def dump(
    database_url: DatabaseUrlOption = None,
    snapshot: SnapshotOption = None,
    db_schema: SchemaOption = None,
    tables: Annotated[
        list[str] | None,
        typer.Option('--table', '-t', help='Only cache these data sources (repeatable)'),
    ] = None,
    redis_key: Annotated[
        str | None,
        typer.Option('--redis-key', help='Also store the snapshot in Redis under this key'),
    ] = None,
    log_level: LogLevelOption = None,
) -> None:
    """
    Reflect a database and write its schema cache snapshot.

    Examples:

        # Every table and view
        uv run schema-cache dump -u sqlite:///app.db -s schema_cache.json

        # Selected tables, compressed pickle
        uv run schema-cache dump -u postgresql://localhost/app -t users -t posts -s cache.pickle.gz
    """
    settings = _load_settings(
        database_url=database_url,
        snapshot_path=snapshot,
        db_schema=db_schema,
        log_level=log_level,
    )
    if not settings.database_url:
        typer.echo('Error: No database URL (use --database-url or SCHEMACACHE_DATABASE_URL)', err=True)
        raise typer.Exit(1)
    if redis_key and not settings.redis_url:
        typer.echo('Error: --redis-key needs SCHEMACACHE_REDIS_URL', err=True)
        raise typer.Exit(1)

    engine = None
    try:
        engine = create_engine(settings.database_url)
        backend = SQLAlchemyBackend(engine, schema=settings.db_schema, version_table=settings.version_table)
        cache = SchemaCache(backend)
        added = []
        for name in tables or cache.data_source_names():
            if not cache.data_source_exists(name):
                logger.warning('Data source not found, skipping', data_source=name)
                continue
            cache.add(name)
            added.append(name)

        dump_to(cache, settings.snapshot_path)
        logger.info(
            'Schema cache dumped',
            path=str(settings.snapshot_path),
            data_sources=len(added),
            entries=cache.size(),
            version=cache.version,
        )

        if redis_key:
            from namerec.schemacache.snapshot.redis import RedisSnapshotStore

            RedisSnapshotStore(settings.redis_url).save(redis_key, cache)
            logger.info('Schema cache stored in Redis', key=redis_key)
    except Exception as e:
        typer.echo(f'Error: {e}', err=True)
        raise typer.Exit(1)
    finally:
        if engine is not None:
            engine.dispose()


@app.command()
def show(
    snapshot: SnapshotOption = None,
    pretty: Annotated[
        bool,
        typer.Option('--pretty/--no-pretty', help='Pretty print output'),
    ] = True,
    log_level: LogLevelOption = None,
) -> None:
    """Print a JSON summary of a snapshot file."""
    settings = _load_settings(snapshot_path=snapshot, log_level=log_level)
    try:
        record = read_record(settings.snapshot_path)
    except (OSError, SchemaCacheError, ValueError) as e:
        typer.echo(f'Error: {e}', err=True)
        raise typer.Exit(1)

    summary = summarize(record)
    typer.echo(json.dumps(summary, indent=2 if pretty else None, ensure_ascii=False))


@app.command()
def check(
    database_url: DatabaseUrlOption = None,
    snapshot: SnapshotOption = None,
    db_schema: SchemaOption = None,
    log_level: LogLevelOption = None,
) -> None:
    """Exit with 0 if the snapshot matches the database schema version, 1 otherwise."""
    settings = _load_settings(
        database_url=database_url,
        snapshot_path=snapshot,
        db_schema=db_schema,
        log_level=log_level,
    )
    if not settings.database_url:
        typer.echo('Error: No database URL (use --database-url or SCHEMACACHE_DATABASE_URL)', err=True)
        raise typer.Exit(1)

    try:
        record = read_record(settings.snapshot_path)
    except (OSError, SchemaCacheError, ValueError) as e:
        typer.echo(f'Error: {e}', err=True)
        raise typer.Exit(1)

    engine = None
    try:
        engine = create_engine(settings.database_url)
        backend = SQLAlchemyBackend(engine, schema=settings.db_schema, version_table=settings.version_table)
        current = backend.current_schema_version()
    except Exception as e:
        typer.echo(f'Error: {e}', err=True)
        raise typer.Exit(1)
    finally:
        if engine is not None:
            engine.dispose()

    if record.version != current:
        logger.warning('Schema cache is stale', snapshot_version=record.version, current_version=current)
        raise typer.Exit(1)
    logger.info('Schema cache is current', version=current)


def summarize(record: SnapshotRecord) -> dict[str, Any]:
    """
    Build a JSON-compatible summary of a snapshot record.

    Args:
        record: Snapshot record

    Returns:
        Version info plus per data source column/index counts
    """
    names = sorted(set(record.data_sources) | set(record.columns) | set(record.primary_keys) | set(record.indexes))
    data_sources = {}
    for name in names:
        primary_key = record.primary_keys.get(name)
        data_sources[name] = {
            'exists': record.data_sources.get(name),
            'primary_key': list(primary_key) if isinstance(primary_key, tuple) else primary_key,
            'columns': len(record.columns.get(name, [])),
            'indexes': len(record.indexes.get(name, [])),
        }
    return {
        'version': record.version,
        'database_version': None if record.database_version is None else str(record.database_version),
        'data_sources': data_sources,
    }


def _load_settings(**overrides: Any) -> Settings:
    settings = get_settings(**overrides)
    configure_logging(settings.log_level)
    return settings


def main() -> None:
    """Entry point for the script."""
    app()


if __name__ == '__main__':
    main()
