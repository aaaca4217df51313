"""Tests for deep deduplication."""

from dataclasses import dataclass

from conftest import fresh

from namerec.schemacache import Column
from namerec.schemacache import Deduplicable
from namerec.schemacache import Index
from namerec.schemacache import deep_deduplicate


@dataclass(frozen=True)
class Tagged(Deduplicable):
    """Deduplicable value that is not hashable."""

    tags: list


class TestStrings:
    """Test string canonicalization."""

    def test_equal_strings_share_instance(self):
        """Equal strings should become one instance."""
        a = fresh('created_at')
        b = fresh('created_at')
        assert a is not b

        assert deep_deduplicate(a) is deep_deduplicate(b)

    def test_dict_keys_and_values(self):
        """Keys and values of mappings should both be canonicalized."""
        first = deep_deduplicate({fresh('users'): [fresh('id')]})
        second = deep_deduplicate({fresh('users'): [fresh('id')]})

        (key1,) = first
        (key2,) = second
        assert key1 is key2
        assert first[key1][0] is second[key2][0]


class TestContainers:
    """Test container handling."""

    def test_does_not_mutate_input(self):
        """Input containers should be rebuilt, not changed."""
        item = fresh('title')
        original = [item, {fresh('k'): item}]

        result = deep_deduplicate(original)

        assert result == original
        assert result is not original
        assert original[0] is item

    def test_preserves_order_and_types(self):
        """Ordering and container types should be unchanged."""
        value = {'b': (1, 2), 'a': [3, 'x'], 'c': None}

        result = deep_deduplicate(value)

        assert list(result) == ['b', 'a', 'c']
        assert result['b'] == (1, 2)
        assert isinstance(result['b'], tuple)
        assert isinstance(result['a'], list)

    def test_idempotent(self):
        """Deduplicating twice should return identical parts."""
        once = deep_deduplicate({fresh('users'): [Column(name=fresh('id'), sql_type='INTEGER')]})
        twice = deep_deduplicate(once)

        assert twice == once
        assert twice['users'][0] is once['users'][0]

    def test_other_values_unchanged(self):
        """Non-deduplicable values should be returned as-is."""
        marker = object()
        assert deep_deduplicate(marker) is marker
        assert deep_deduplicate(42) == 42
        assert deep_deduplicate(None) is None


class TestDeduplicable:
    """Test Deduplicable registry."""

    def test_equal_columns_share_instance(self):
        """Equal columns built separately should become one instance."""
        a = Column(name=fresh('email'), sql_type=fresh('VARCHAR(100)'), nullable=True)
        b = Column(name=fresh('email'), sql_type=fresh('VARCHAR(100)'), nullable=True)
        assert a is not b

        assert deep_deduplicate(a) is deep_deduplicate(b)

    def test_fields_are_deduplicated(self):
        """Fields of the canonical instance should be canonical too."""
        column = deep_deduplicate(Column(name=fresh('user_id'), sql_type='INTEGER'))
        index = deep_deduplicate(Index(name='ix_posts_user_id', table='posts', columns=(fresh('user_id'),)))

        assert column.name is index.columns[0]

    def test_registries_are_per_class(self):
        """Columns and indexes should not share a registry."""
        assert Column._registry is not Index._registry

    def test_unhashable_returned_unchanged(self):
        """Unhashable values cannot be shared and should be returned as-is."""
        value = Tagged(tags=['a'])
        assert deep_deduplicate(value) is value
