"""Schema cache configuration."""

from pathlib import Path

from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict

DEFAULT_SNAPSHOT_PATH = Path('schema_cache.json')


class Settings(BaseSettings):
    """Settings loaded from SCHEMACACHE_* environment variables or .env."""

    model_config = SettingsConfigDict(
        env_prefix='SCHEMACACHE_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    database_url: str | None = None
    db_schema: str | None = None
    version_table: str = 'alembic_version'
    snapshot_path: Path = DEFAULT_SNAPSHOT_PATH
    redis_url: str | None = None
    log_level: str = 'INFO'


def get_settings(**overrides: object) -> Settings:
    """
    Load settings, letting explicit values win over the environment.

    Args:
        **overrides: Field values (None values are ignored)

    Returns:
        Settings instance
    """
    return Settings(**{key: value for key, value in overrides.items() if value is not None})
