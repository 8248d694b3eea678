"""
Conditional update builder for partial-update mutations.

Builds an ordered directive list for `Store.update`: mandatory directives
first, in the order they were added, then one `Set` per optional field the
caller actually supplied. Optional fields that are absent contribute nothing,
so existing attributes are never overwritten or nulled through absence.

Example:
    builder = UpdateBuilder()
    builder.set("shelf", "read").set("updatedAt", now)
    builder.set_present(input_data, ["rating", "pagesRead"])
    store.update(key, builder.build())
"""

from typing import Any, Dict, Iterable, List

from .store import Directive, RemoveNestedKey, Set, SetIfAbsent, SetNestedKey


class UpdateBuilder:
    """Accumulates mandatory and optional update directives."""

    def __init__(self) -> None:
        self._mandatory: List[Directive] = []
        self._optional: List[Directive] = []

    def set(self, field: str, value: Any) -> "UpdateBuilder":
        """Add a mandatory top-level set."""
        self._mandatory.append(Set(field, value))
        return self

    def set_if_absent(self, field: str, default: Any) -> "UpdateBuilder":
        """Add a mandatory initialize-if-missing directive."""
        self._mandatory.append(SetIfAbsent(field, default))
        return self

    def set_nested(self, map_field: str, nested_key: str, value: Any) -> "UpdateBuilder":
        """Add a mandatory set of one key inside a map attribute."""
        self._mandatory.append(SetNestedKey(map_field, nested_key, value))
        return self

    def remove_nested(self, map_field: str, nested_key: str) -> "UpdateBuilder":
        """Add a mandatory removal of one key inside a map attribute."""
        self._mandatory.append(RemoveNestedKey(map_field, nested_key))
        return self

    def set_if_present(self, field: str, value: Any) -> "UpdateBuilder":
        """Add an optional set, only when `value` was supplied (is not None)."""
        if value is not None:
            self._optional.append(Set(field, value))
        return self

    def set_present(self, input_data: Dict[str, Any], fields: Iterable[str]) -> "UpdateBuilder":
        """Add optional sets for each of `fields` present in `input_data`, in `fields` order."""
        for field in fields:
            self.set_if_present(field, input_data.get(field))
        return self

    @property
    def optional_count(self) -> int:
        return len(self._optional)

    def build(self) -> List[Directive]:
        """Mandatory directives followed by optional ones."""
        return [*self._mandatory, *self._optional]


def present_fields(input_data: Dict[str, Any], fields: Iterable[str]) -> Dict[str, Any]:
    """Subset of `input_data` limited to `fields` that were supplied, for full-item writes."""
    return {field: input_data[field] for field in fields if input_data.get(field) is not None}
