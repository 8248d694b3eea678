"""Lambda resolvers for Review operations."""

from typing import Any, Dict, List, cast

# Handle both Lambda (absolute) and unit test (relative) imports
try:  # pragma: no cover
    from utils.auth import IdentityContext  # type: ignore[import-not-found]
    from utils.ids import iso_timestamp, new_time_ordered_id, utc_now  # type: ignore[import-not-found]
    from utils.logging import get_logger  # type: ignore[import-not-found]
    from utils.responses import ReviewItem  # type: ignore[import-not-found]
    from utils.store import QueryOptions, Store  # type: ignore[import-not-found]
    from utils.validation import (  # type: ignore[import-not-found]
        require_id,
        require_input,
        require_string,
        validate_limit,
        validate_rating,
    )
except ImportError:  # pragma: no cover
    from ..utils.auth import IdentityContext
    from ..utils.ids import iso_timestamp, new_time_ordered_id, utc_now
    from ..utils.logging import get_logger
    from ..utils.responses import ReviewItem
    from ..utils.store import QueryOptions, Store
    from ..utils.validation import require_id, require_input, require_string, validate_limit, validate_rating

logger = get_logger(__name__)


def get_book_reviews(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> List[ReviewItem]:
    """
    List a book's reviews, newest first.

    Review ids sort by creation instant, so a descending scan of the
    (bookId, reviewId) key is reverse-chronological.
    """
    book_id = require_id(arguments, "bookId")
    limit = validate_limit(arguments.get("limit"))
    items = store.query(book_id, QueryOptions(scan_forward=False, limit=limit))
    return cast(List[ReviewItem], items)


def get_user_reviews(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> List[ReviewItem]:
    """List a user's reviews, newest first, via the byUser index."""
    user_id = require_id(arguments, "userId")
    limit = validate_limit(arguments.get("limit"))
    items = store.query(user_id, QueryOptions(index_name="byUser", scan_forward=False, limit=limit))
    return cast(List[ReviewItem], items)


def create_review(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> ReviewItem:
    """
    Create a review of a book by the caller.

    Args:
        store: reviews collection
        identity: caller identity
        arguments: {"input": {"bookId": ..., "rating": 1-5, "content": ...}}

    Returns:
        The stored Review item with its minted reviewId
    """
    input_data = require_input(arguments)
    book_id = require_id(input_data, "bookId")
    rating = validate_rating(input_data.get("rating"))
    content = require_string(input_data, "content")

    now = utc_now()
    review_id = new_time_ordered_id(now)

    item = store.put(
        {"bookId": book_id, "reviewId": review_id},
        {
            "userId": identity.subject,
            "rating": rating,
            "content": content,
            "createdAt": iso_timestamp(now),
        },
        if_absent=True,
    )
    logger.info("Created review", user_id=identity.subject, book_id=book_id, review_id=review_id)
    return cast(ReviewItem, item)
