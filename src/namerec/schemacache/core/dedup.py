"""Deep deduplication of immutable cached values."""

import dataclasses
import sys
from typing import Any
from typing import ClassVar


class Deduplicable:
    """
    Mixin for immutable values that can be shared process-wide.

    Every subclass gets its own registry mapping a value to its canonical
    instance. Subclasses must be hashable and must never be mutated after
    construction (frozen dataclasses are the intended use).
    """

    _registry: ClassVar[dict[Any, Any]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._registry = {}

    def deduplicated(self) -> 'Deduplicable':
        """
        Return an equal value whose own fields are deduplicated.

        Frozen dataclasses deduplicate every init field; other subclasses
        should override this when they hold strings or containers.
        """
        if dataclasses.is_dataclass(self):
            changes = {
                f.name: deep_deduplicate(getattr(self, f.name))
                for f in dataclasses.fields(self)
                if f.init
            }
            return dataclasses.replace(self, **changes)
        return self

    def deduplicate(self) -> 'Deduplicable':
        """Return the canonical instance equal to this value."""
        registry = type(self)._registry
        try:
            canonical = registry.get(self)
        except TypeError:
            # Unhashable, cannot be shared
            return self
        if canonical is None:
            value = self.deduplicated()
            canonical = registry.setdefault(value, value)
        return canonical


def deep_deduplicate(value: Any) -> Any:
    """
    Recursively replace structurally-equal immutable values with one instance.

    Containers are rebuilt (never mutated in place), strings are interned
    and Deduplicable values are looked up in their class registry. Anything
    else is returned unchanged. Equality and ordering are preserved and
    the operation is idempotent.

    Args:
        value: Value to deduplicate

    Returns:
        Deduplicated value

    Examples:
        >>> a = deep_deduplicate({'users': ['id', 'name']})
        >>> b = deep_deduplicate({'posts': ['id']})
        >>> a['users'][0] is b['posts'][0]
        True
    """
    if isinstance(value, dict):
        return {deep_deduplicate(k): deep_deduplicate(v) for k, v in value.items()}
    if isinstance(value, list):
        return [deep_deduplicate(item) for item in value]
    if type(value) is tuple:
        return tuple(deep_deduplicate(item) for item in value)
    if type(value) is str:
        return sys.intern(value)
    if isinstance(value, Deduplicable):
        return value.deduplicate()
    return value
