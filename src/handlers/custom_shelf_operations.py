"""
Lambda resolvers for CustomShelf operations.

Custom shelves are user-named collections keyed on (userId, shelfId). Each
shelf carries a sparse `bookRatings` map of bookId -> rating that is edited
one key at a time.

Deleting a shelf does not touch UserBook.customShelfIds; readers must
tolerate ids of shelves that no longer exist.
"""

from typing import Any, Dict, List, cast

# Handle both Lambda (absolute) and unit test (relative) imports
try:  # pragma: no cover
    from utils.auth import IdentityContext  # type: ignore[import-not-found]
    from utils.ids import iso_timestamp, new_id  # type: ignore[import-not-found]
    from utils.logging import get_logger  # type: ignore[import-not-found]
    from utils.responses import CustomShelfItem  # type: ignore[import-not-found]
    from utils.store import QueryOptions, Store  # type: ignore[import-not-found]
    from utils.update_builder import UpdateBuilder, present_fields  # type: ignore[import-not-found]
    from utils.validation import (  # type: ignore[import-not-found]
        optional_string,
        require_id,
        require_input,
        require_string,
        validate_limit,
        validate_rating,
    )
except ImportError:  # pragma: no cover
    from ..utils.auth import IdentityContext
    from ..utils.ids import iso_timestamp, new_id
    from ..utils.logging import get_logger
    from ..utils.responses import CustomShelfItem
    from ..utils.store import QueryOptions, Store
    from ..utils.update_builder import UpdateBuilder, present_fields
    from ..utils.validation import (
        optional_string,
        require_id,
        require_input,
        require_string,
        validate_limit,
        validate_rating,
    )

logger = get_logger(__name__)

BOOK_RATINGS = "bookRatings"


def my_custom_shelves(
    store: Store, identity: IdentityContext, arguments: Dict[str, Any]
) -> List[CustomShelfItem]:
    """List the caller's custom shelves."""
    limit = validate_limit(arguments.get("limit"))
    return cast(List[CustomShelfItem], store.query(identity.subject, QueryOptions(limit=limit)))


def create_custom_shelf(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> CustomShelfItem:
    """
    Create a custom shelf with a freshly minted shelfId.

    `description` is stored only when supplied; `bookRatings` starts absent.
    """
    input_data = require_input(arguments)
    name = require_string(input_data, "name")
    optional_string(input_data, "description")

    shelf_id = new_id()
    now = iso_timestamp()

    item = store.put(
        {"userId": identity.subject, "shelfId": shelf_id},
        {
            "name": name,
            **present_fields(input_data, ["description"]),
            "createdAt": now,
            "updatedAt": now,
        },
        if_absent=True,
    )
    logger.info("Created custom shelf", user_id=identity.subject, shelf_id=shelf_id)
    return cast(CustomShelfItem, item)


def update_custom_shelf(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> CustomShelfItem:
    """Rename a custom shelf and, when supplied, change its description."""
    input_data = require_input(arguments)
    shelf_id = require_id(input_data, "shelfId")
    name = require_string(input_data, "name")
    optional_string(input_data, "description")

    builder = UpdateBuilder().set("name", name).set("updatedAt", iso_timestamp())
    builder.set_present(input_data, ["description"])

    item = store.update({"userId": identity.subject, "shelfId": shelf_id}, builder.build())
    logger.info("Updated custom shelf", user_id=identity.subject, shelf_id=shelf_id)
    return cast(CustomShelfItem, item)


def delete_custom_shelf(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> CustomShelfItem:
    """Delete a custom shelf and return it."""
    shelf_id = require_id(arguments, "shelfId")
    item = store.delete({"userId": identity.subject, "shelfId": shelf_id})
    logger.info("Deleted custom shelf", user_id=identity.subject, shelf_id=shelf_id)
    return cast(CustomShelfItem, item)


def update_shelf_book_rating(
    store: Store, identity: IdentityContext, arguments: Dict[str, Any]
) -> CustomShelfItem:
    """
    Set or clear one book's rating on a custom shelf.

    A supplied rating initializes `bookRatings` if missing and sets
    bookRatings[bookId]. An omitted rating removes bookRatings[bookId]; it
    never means "leave unchanged".
    """
    shelf_id = require_id(arguments, "shelfId")
    book_id = require_id(arguments, "bookId")
    rating = validate_rating(arguments.get("rating"), required=False)

    builder = UpdateBuilder()
    if rating is not None:
        builder.set_if_absent(BOOK_RATINGS, {}).set_nested(BOOK_RATINGS, book_id, rating)
    else:
        builder.remove_nested(BOOK_RATINGS, book_id)
    builder.set("updatedAt", iso_timestamp())

    item = store.update({"userId": identity.subject, "shelfId": shelf_id}, builder.build())
    logger.info(
        "Updated shelf book rating",
        user_id=identity.subject,
        shelf_id=shelf_id,
        book_id=book_id,
        cleared=rating is None,
    )
    return cast(CustomShelfItem, item)
