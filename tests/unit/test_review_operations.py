"""Unit tests for review resolvers."""

from typing import Any, Dict

import pytest

from src.handlers import review_operations as ops
from src.utils.auth import IdentityContext
from src.utils.errors import AppError, ErrorCode
from src.utils.store import Store
from tests.unit.fixtures import FakeClock, make_isbn


@pytest.fixture
def reviews(backend_stores: Dict[str, Store]) -> Store:
    return backend_stores["reviews"]


def _review(store: Store, identity: IdentityContext, book_id: str, content: str, rating: int = 4) -> Any:
    return ops.create_review(
        store, identity, {"input": {"bookId": book_id, "rating": rating, "content": content}}
    )


class TestCreateReview:
    """Tests for create_review."""

    def test_creates_review(self, reviews: Store, identity: IdentityContext, clock: FakeClock) -> None:
        """The review records author, rating, content and createdAt."""
        review = _review(reviews, identity, make_isbn(1), "Loved it", rating=5)

        assert review["bookId"] == make_isbn(1)
        assert review["reviewId"]
        assert review["userId"] == identity.caller_id
        assert review["rating"] == 5
        assert review["content"] == "Loved it"
        assert review["createdAt"] == clock().isoformat()
        assert "updatedAt" not in review

    def test_reviews_in_same_instant_get_distinct_ids(
        self, reviews: Store, identity: IdentityContext, clock: FakeClock
    ) -> None:
        """Ids stay unique when the clock does not move."""
        first = _review(reviews, identity, make_isbn(1), "one")
        second = _review(reviews, identity, make_isbn(1), "two")

        assert first["reviewId"] != second["reviewId"]
        assert len(ops.get_book_reviews(reviews, identity, {"bookId": make_isbn(1)})) == 2

    @pytest.mark.parametrize("rating", [None, 0, 6])
    def test_rating_required_and_bounded(self, reviews: Store, identity: IdentityContext, rating: Any) -> None:
        """Reviews need a rating from 1 to 5."""
        with pytest.raises(AppError) as exc_info:
            ops.create_review(
                reviews, identity, {"input": {"bookId": make_isbn(1), "rating": rating, "content": "x"}}
            )

        assert exc_info.value.error_code == ErrorCode.VALIDATION_ERROR


class TestReviewQueries:
    """Tests for get_book_reviews and get_user_reviews."""

    def test_newest_first(self, reviews: Store, identity: IdentityContext, clock: FakeClock) -> None:
        """Book reviews are listed in reverse creation order."""
        for content in ("first", "second", "third"):
            _review(reviews, identity, make_isbn(1), content)
            clock.advance(seconds=1)

        items = ops.get_book_reviews(reviews, identity, {"bookId": make_isbn(1)})

        assert [item["content"] for item in items] == ["third", "second", "first"]

    def test_limit_caps_results(self, reviews: Store, identity: IdentityContext, clock: FakeClock) -> None:
        """At most `limit` reviews are returned, newest first."""
        for n in range(5):
            _review(reviews, identity, make_isbn(1), f"r{n}")
            clock.advance(seconds=1)

        items = ops.get_book_reviews(reviews, identity, {"bookId": make_isbn(1), "limit": 2})

        assert [item["content"] for item in items] == ["r4", "r3"]

    def test_only_requested_book(self, reviews: Store, identity: IdentityContext) -> None:
        """Reviews of other books are excluded."""
        _review(reviews, identity, make_isbn(1), "a")
        _review(reviews, identity, make_isbn(2), "b")

        items = ops.get_book_reviews(reviews, identity, {"bookId": make_isbn(2)})

        assert [item["content"] for item in items] == ["b"]

    @pytest.mark.parametrize("limit", [0, 101, "10"])
    def test_invalid_limit(self, reviews: Store, identity: IdentityContext, limit: Any) -> None:
        """Limit must be an integer from 1 to 100."""
        with pytest.raises(AppError) as exc_info:
            ops.get_book_reviews(reviews, identity, {"bookId": make_isbn(1), "limit": limit})

        assert exc_info.value.error_code == ErrorCode.VALIDATION_ERROR

    def test_user_reviews_newest_first(
        self, reviews: Store, identity: IdentityContext, another_user_id: str, clock: FakeClock
    ) -> None:
        """getUserReviews lists one author's reviews across books."""
        _review(reviews, identity, make_isbn(1), "old")
        clock.advance(minutes=1)
        _review(reviews, IdentityContext(caller_id=another_user_id), make_isbn(1), "theirs")
        clock.advance(minutes=1)
        _review(reviews, identity, make_isbn(2), "new")

        items = ops.get_user_reviews(reviews, identity, {"userId": identity.caller_id})

        assert [item["content"] for item in items] == ["new", "old"]
