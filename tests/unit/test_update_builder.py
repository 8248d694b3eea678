"""Tests for the conditional update builder."""

from itertools import combinations

import pytest

from src.utils.store import RemoveNestedKey, Set, SetIfAbsent, SetNestedKey
from src.utils.update_builder import UpdateBuilder, present_fields

OPTIONAL = ("customShelfIds", "rating", "startedAt", "finishedAt", "pagesRead")

VALUES = {
    "customShelfIds": ["shelf-1"],
    "rating": 4,
    "startedAt": "2025-01-01",
    "finishedAt": "2025-02-01",
    "pagesRead": 120,
}


class TestUpdateBuilder:
    """Tests for UpdateBuilder."""

    def test_mandatory_only_when_no_optional_fields(self) -> None:
        """No optional input still yields a complete update of the mandatory fields."""
        builder = UpdateBuilder().set("shelf", "read").set("updatedAt", "T1")
        builder.set_present({}, OPTIONAL)

        assert builder.build() == [Set("shelf", "read"), Set("updatedAt", "T1")]
        assert builder.optional_count == 0

    @pytest.mark.parametrize("size", range(len(OPTIONAL) + 1))
    def test_directives_are_mandatory_plus_supplied_subset(self, size: int) -> None:
        """Supplying subset S yields exactly mandatory ∪ S."""
        for subset in combinations(OPTIONAL, size):
            input_data = {field: VALUES[field] for field in subset}
            builder = UpdateBuilder().set("shelf", "read").set("updatedAt", "T1")
            builder.set_present(input_data, OPTIONAL)

            directives = builder.build()
            assert directives[:2] == [Set("shelf", "read"), Set("updatedAt", "T1")]
            assert {d.field for d in directives[2:]} == set(subset)
            assert len(directives) == 2 + len(subset)

    def test_optional_directives_follow_declared_order(self) -> None:
        """Optional sets follow the field list order, not the input order."""
        input_data = {"pagesRead": 10, "rating": 3}
        builder = UpdateBuilder().set("updatedAt", "T1").set_present(input_data, OPTIONAL)

        assert builder.build() == [Set("updatedAt", "T1"), Set("rating", 3), Set("pagesRead", 10)]

    def test_optional_added_before_mandatory_still_ordered_after(self) -> None:
        """Mandatory directives always precede optional ones."""
        builder = UpdateBuilder().set_if_present("bio", "hi").set("updatedAt", "T1")

        assert builder.build() == [Set("updatedAt", "T1"), Set("bio", "hi")]

    def test_none_is_absent_but_falsy_values_are_present(self) -> None:
        """Only None means absent; zero and empty list are real values."""
        builder = UpdateBuilder().set_present({"pagesRead": 0, "customShelfIds": [], "rating": None}, OPTIONAL)

        assert builder.build() == [Set("customShelfIds", []), Set("pagesRead", 0)]

    def test_nested_map_directives(self) -> None:
        """Nested map helpers produce the matching directive types."""
        builder = (
            UpdateBuilder()
            .set_if_absent("bookRatings", {})
            .set_nested("bookRatings", "book-1", 5)
            .remove_nested("bookRatings", "book-2")
        )

        assert builder.build() == [
            SetIfAbsent("bookRatings", {}),
            SetNestedKey("bookRatings", "book-1", 5),
            RemoveNestedKey("bookRatings", "book-2"),
        ]


class TestPresentFields:
    """Tests for present_fields."""

    def test_keeps_only_supplied_fields(self) -> None:
        """Absent and None fields are dropped."""
        result = present_fields({"rating": 4, "pagesRead": None, "other": 1}, OPTIONAL)

        assert result == {"rating": 4}
