"""Schema cache exception hierarchy."""


class SchemaCacheError(Exception):
    """Base exception for schema cache errors."""

    def __init__(self, message: str, data_source: str | None = None) -> None:
        """
        Initialize schema cache exception.

        Args:
            message: Error message
            data_source: Optional data source name context
        """
        self.data_source = data_source
        super().__init__(message)


class BackendNotBoundError(SchemaCacheError):
    """Cache needs the backend but none is bound (e.g. right after restore)."""

    def __init__(self, operation: str, data_source: str | None = None) -> None:
        """
        Initialize backend-not-bound error.

        Args:
            operation: Operation that required the backend
            data_source: Optional data source name context
        """
        self.operation = operation
        msg = f'No schema backend bound to the cache, cannot {operation}'
        if data_source is not None:
            msg += f' for "{data_source}"'
        super().__init__(msg, data_source)


class CorruptSnapshotError(SchemaCacheError, ValueError):
    """Snapshot record is malformed, truncated or undecodable."""

    def __init__(self, message: str, field_name: str | None = None) -> None:
        """
        Initialize corrupt snapshot error.

        Args:
            message: Error message
            field_name: Optional snapshot field at fault
        """
        self.field_name = field_name
        if field_name:
            message = f'{message} (field "{field_name}")'
        super().__init__(message)
