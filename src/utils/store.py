"""
Store abstraction over a keyed document collection.

A store serves one collection (see `schema.py`) and supports keyed reads,
full-replace writes, ordered field-level updates, deletes and index queries.
`InMemoryStore` is the process-local backend used by tests and local runs;
`dynamodb.DynamoDBStore` is the deployed backend.
"""

import copy
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from .errors import AppError, ErrorCode
from .schema import CollectionSchema

Item = Dict[str, Any]
Key = Dict[str, Any]


# ================================================================
# Update directives
# ================================================================


@dataclass(frozen=True)
class Set:
    """Set a top-level attribute."""

    field: str
    value: Any


@dataclass(frozen=True)
class SetIfAbsent:
    """Initialize a top-level attribute to `default` only when it does not exist."""

    field: str
    default: Any


@dataclass(frozen=True)
class SetNestedKey:
    """Set one key of a map attribute. The map must exist when applied."""

    map_field: str
    nested_key: str
    value: Any


@dataclass(frozen=True)
class RemoveNestedKey:
    """Remove one key of a map attribute. A missing map or key is a no-op."""

    map_field: str
    nested_key: str


Directive = Union[Set, SetIfAbsent, SetNestedKey, RemoveNestedKey]


def apply_directives(item: Item, directives: List[Directive]) -> Item:
    """
    Apply directives in order to a copy of `item`.

    Raises:
        AppError: VALIDATION_ERROR if a nested directive targets a non-map attribute
    """
    result = copy.deepcopy(item)
    for directive in directives:
        if isinstance(directive, Set):
            result[directive.field] = copy.deepcopy(directive.value)
        elif isinstance(directive, SetIfAbsent):
            if directive.field not in result:
                result[directive.field] = copy.deepcopy(directive.default)
        elif isinstance(directive, SetNestedKey):
            target = result.get(directive.map_field)
            if not isinstance(target, dict):
                raise AppError(
                    ErrorCode.VALIDATION_ERROR,
                    f"Attribute '{directive.map_field}' is not a map",
                )
            target[directive.nested_key] = copy.deepcopy(directive.value)
        elif isinstance(directive, RemoveNestedKey):
            target = result.get(directive.map_field)
            if isinstance(target, dict):
                target.pop(directive.nested_key, None)
        else:
            raise TypeError(f"Unknown update directive: {directive!r}")
    return result


# ================================================================
# Query options
# ================================================================


@dataclass(frozen=True)
class AttributeNotExists:
    """Filter predicate keeping items that lack `field`."""

    field: str

    def matches(self, item: Item) -> bool:
        return self.field not in item


@dataclass(frozen=True)
class QueryOptions:
    """
    Options for an index query.

    Attributes:
        index_name: Secondary index to query, or None for the primary key
        sort_value: Optional equality condition on the index sort key
        scan_forward: Ascending sort-key order when True, descending when False
        limit: Maximum number of items examined by the index scan (None = all)
        filter: Predicate applied to the examined items
    """

    index_name: Optional[str] = None
    sort_value: Optional[Any] = None
    scan_forward: bool = True
    limit: Optional[int] = None
    filter: Optional[AttributeNotExists] = None


# ================================================================
# Store contract
# ================================================================


class Store(ABC):
    """Keyed access to one collection."""

    def __init__(self, schema: CollectionSchema) -> None:
        self.schema = schema

    def _require_key(self, key: Key) -> None:
        missing = [name for name in self.schema.key_attributes if key.get(name) in (None, "")]
        if missing:
            raise AppError(
                ErrorCode.VALIDATION_ERROR,
                f"Key for '{self.schema.name}' is missing {', '.join(missing)}",
            )

    @abstractmethod
    def get(self, key: Key) -> Item:
        """Return the item at `key` or raise NOT_FOUND."""

    @abstractmethod
    def put(self, key: Key, attributes: Dict[str, Any], if_absent: bool = False) -> Item:
        """Replace the item at `key`; with `if_absent`, fail with CONDITION_FAILED if it exists."""

    @abstractmethod
    def update(self, key: Key, directives: List[Directive]) -> Item:
        """Apply directives atomically to an existing item and return the new item."""

    @abstractmethod
    def delete(self, key: Key) -> Item:
        """Remove the item at `key` and return it, or raise NOT_FOUND."""

    @abstractmethod
    def query(self, partition_value: Any, options: Optional[QueryOptions] = None) -> List[Item]:
        """Return items sharing an index partition, ordered by the index sort key."""


class InMemoryStore(Store):
    """
    Process-local store with DynamoDB-compatible semantics.

    Writes are serialized by a lock, so each put/update/delete is atomic with
    respect to other calls on the same store. Items whose TTL attribute has
    elapsed are purged lazily on access.
    """

    def __init__(self, schema: CollectionSchema, clock: Any = time.time) -> None:
        super().__init__(schema)
        self._items: Dict[Tuple[Any, ...], Item] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def _key_tuple(self, key: Key) -> Tuple[Any, ...]:
        self._require_key(key)
        return tuple(key[name] for name in self.schema.key_attributes)

    def _expired(self, item: Item) -> bool:
        ttl_attribute = self.schema.ttl_attribute
        if not ttl_attribute or ttl_attribute not in item:
            return False
        return float(item[ttl_attribute]) <= self._clock()

    def _live(self, key_tuple: Tuple[Any, ...]) -> Optional[Item]:
        item = self._items.get(key_tuple)
        if item is not None and self._expired(item):
            del self._items[key_tuple]
            return None
        return item

    def _not_found(self, key: Key) -> AppError:
        return AppError(
            ErrorCode.NOT_FOUND,
            f"No item in '{self.schema.name}' for key {key}",
            {"key": dict(key)},
        )

    def get(self, key: Key) -> Item:
        with self._lock:
            item = self._live(self._key_tuple(key))
            if item is None:
                raise self._not_found(key)
            return copy.deepcopy(item)

    def put(self, key: Key, attributes: Dict[str, Any], if_absent: bool = False) -> Item:
        key_tuple = self._key_tuple(key)
        item = {**copy.deepcopy(attributes), **key}
        with self._lock:
            if if_absent and self._live(key_tuple) is not None:
                raise AppError(
                    ErrorCode.CONDITION_FAILED,
                    f"Item already exists in '{self.schema.name}' for key {key}",
                )
            self._items[key_tuple] = item
            return copy.deepcopy(item)

    def update(self, key: Key, directives: List[Directive]) -> Item:
        key_tuple = self._key_tuple(key)
        with self._lock:
            existing = self._live(key_tuple)
            if existing is None:
                raise self._not_found(key)
            updated = apply_directives(existing, directives)
            self._items[key_tuple] = updated
            return copy.deepcopy(updated)

    def delete(self, key: Key) -> Item:
        key_tuple = self._key_tuple(key)
        with self._lock:
            existing = self._live(key_tuple)
            if existing is None:
                raise self._not_found(key)
            del self._items[key_tuple]
            return existing

    def query(self, partition_value: Any, options: Optional[QueryOptions] = None) -> List[Item]:
        options = options or QueryOptions()
        index = self.schema.get_index(options.index_name)

        with self._lock:
            candidates = [
                item
                for key_tuple, item in list(self._items.items())
                if self._live(key_tuple) is not None
                and item.get(index.partition_key) == partition_value
                # Sparse index: items without the sort attribute are not indexed
                and (index.sort_key is None or index.sort_key in item)
                and (options.sort_value is None or item.get(index.sort_key) == options.sort_value)
            ]

        if index.sort_key:
            candidates.sort(key=lambda item: item[index.sort_key], reverse=not options.scan_forward)

        # Limit caps what the index scan examines; the filter runs afterwards
        if options.limit is not None:
            candidates = candidates[: options.limit]
        if options.filter is not None:
            candidates = [item for item in candidates if options.filter.matches(item)]

        return copy.deepcopy(candidates)
