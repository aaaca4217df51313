"""Redis snapshot store for distributed deployments."""

from typing import Any

from namerec.schemacache.core.types import SchemaBackend
from namerec.schemacache.metadata.cache import SchemaCache
from namerec.schemacache.snapshot.codec import SnapshotFormat
from namerec.schemacache.snapshot.codec import discard_if_stale
from namerec.schemacache.snapshot.codec import dumps
from namerec.schemacache.snapshot.codec import loads


class RedisSnapshotStore:
    """
    Redis snapshot store (multi-process, multi-container).

    Suitable for:
    - Multi-process servers (uvicorn workers) sharing one schema cache
    - Distributed systems (k8s pods) warming up without introspection queries

    Requires:
    - redis package (install with: pip install redis)
    - Running Redis instance
    """

    def __init__(
        self,
        redis_url: str = 'redis://localhost:6379/0',
        prefix: str = 'schemacache:',
        ttl: int | None = None,
        fmt: SnapshotFormat = 'json',
        client: Any = None,
    ) -> None:
        """
        Initialize Redis store.

        Args:
            redis_url: Redis connection URL
            prefix: Key prefix for namespacing
            ttl: Optional TTL in seconds (None = keep until overwritten)
            fmt: Snapshot encoding
            client: Ready Redis client (overrides redis_url)

        Raises:
            ImportError: If redis package not installed and no client given
        """
        if client is None:
            try:
                import redis
            except ImportError as e:
                msg = 'redis package required for RedisSnapshotStore. Install with: pip install redis'
                raise ImportError(msg) from e
            client = redis.from_url(redis_url)

        self._redis = client
        self._prefix = prefix
        self._ttl = ttl
        self._fmt = fmt

    def save(self, key: str, cache: SchemaCache) -> None:
        """Store snapshot in Redis."""
        data = dumps(cache, self._fmt)
        if self._ttl:
            self._redis.setex(f'{self._prefix}{key}', self._ttl, data)
        else:
            self._redis.set(f'{self._prefix}{key}', data)

    def load(
        self,
        key: str,
        backend: SchemaBackend | None = None,
        *,
        check_version: bool = True,
    ) -> SchemaCache | None:
        """Load snapshot from Redis (None if missing or stale)."""
        full_key = f'{self._prefix}{key}'
        data = self._redis.get(full_key)
        if data is None:
            return None
        if isinstance(data, str):
            data = data.encode()
        cache = loads(data, self._fmt, backend)
        if not check_version:
            return cache
        return discard_if_stale(cache, backend, f'redis key "{full_key}"')

    def delete(self, key: str) -> None:
        """Remove snapshot from Redis."""
        self._redis.delete(f'{self._prefix}{key}')
