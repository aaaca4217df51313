"""Metadata caching for the schema cache."""

from namerec.schemacache.metadata.cache import SchemaCache
from namerec.schemacache.metadata.reflector import SQLAlchemyBackend

__all__ = [
    'SQLAlchemyBackend',
    'SchemaCache',
]
