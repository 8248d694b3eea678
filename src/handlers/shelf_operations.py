"""
Lambda resolvers for shelf entries (UserBook items).

A shelf entry is keyed on (userId, bookId), so a user holds at most one entry
per book. Adding a book replaces the whole entry; updating it writes only the
fields the caller supplied.
"""

from typing import Any, Dict, List, cast

# Handle both Lambda (absolute) and unit test (relative) imports
try:  # pragma: no cover
    from utils.auth import IdentityContext  # type: ignore[import-not-found]
    from utils.ids import iso_timestamp  # type: ignore[import-not-found]
    from utils.logging import get_logger  # type: ignore[import-not-found]
    from utils.responses import UserBookItem  # type: ignore[import-not-found]
    from utils.store import QueryOptions, Store  # type: ignore[import-not-found]
    from utils.update_builder import UpdateBuilder, present_fields  # type: ignore[import-not-found]
    from utils.validation import (  # type: ignore[import-not-found]
        optional_string,
        require_id,
        require_input,
        require_string,
        validate_limit,
        validate_pages_read,
        validate_rating,
        validate_string_list,
    )
except ImportError:  # pragma: no cover
    from ..utils.auth import IdentityContext
    from ..utils.ids import iso_timestamp
    from ..utils.logging import get_logger
    from ..utils.responses import UserBookItem
    from ..utils.store import QueryOptions, Store
    from ..utils.update_builder import UpdateBuilder, present_fields
    from ..utils.validation import (
        optional_string,
        require_id,
        require_input,
        require_string,
        validate_limit,
        validate_pages_read,
        validate_rating,
        validate_string_list,
    )

logger = get_logger(__name__)

# Optional shelf-entry fields, in the order they are written
OPTIONAL_FIELDS = ("customShelfIds", "rating", "startedAt", "finishedAt", "pagesRead")


def _shelf_input(arguments: Dict[str, Any]) -> Dict[str, Any]:
    """Validate an add/update input and return it with bookId and shelf normalized."""
    input_data = dict(require_input(arguments))
    input_data["bookId"] = require_id(input_data, "bookId")
    input_data["shelf"] = require_string(input_data, "shelf")
    validate_rating(input_data.get("rating"), required=False)
    validate_pages_read(input_data.get("pagesRead"))
    validate_string_list(input_data.get("customShelfIds"), "customShelfIds")
    optional_string(input_data, "startedAt")
    optional_string(input_data, "finishedAt")
    return input_data


def get_user_books(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> List[UserBookItem]:
    """List another user's shelf entries."""
    user_id = require_id(arguments, "userId")
    limit = validate_limit(arguments.get("limit"))
    return cast(List[UserBookItem], store.query(user_id, QueryOptions(limit=limit)))


def my_books(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> List[UserBookItem]:
    """List the caller's shelf entries."""
    limit = validate_limit(arguments.get("limit"))
    return cast(List[UserBookItem], store.query(identity.subject, QueryOptions(limit=limit)))


def my_books_by_shelf(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> List[UserBookItem]:
    """List the caller's entries on one shelf via the byShelf index."""
    shelf = require_string(arguments, "shelf")
    limit = validate_limit(arguments.get("limit"))
    items = store.query(identity.subject, QueryOptions(index_name="byShelf", sort_value=shelf, limit=limit))
    return cast(List[UserBookItem], items)


def add_book_to_shelf(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> UserBookItem:
    """
    Put a book on one of the caller's shelves.

    This is a full replace of the (userId, bookId) entry: adding the same book
    again overwrites the previous entry, including dropping optional fields
    that are not supplied this time.
    """
    input_data = _shelf_input(arguments)
    now = iso_timestamp()
    key = {"userId": identity.subject, "bookId": input_data["bookId"]}

    item = store.put(
        key,
        {
            "shelf": input_data["shelf"],
            "addedAt": now,
            **present_fields(input_data, OPTIONAL_FIELDS),
            "updatedAt": now,
        },
    )
    logger.info("Added book to shelf", user_id=identity.subject, book_id=key["bookId"], shelf=item["shelf"])
    return cast(UserBookItem, item)


def update_book_shelf(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> UserBookItem:
    """
    Move an existing entry to a shelf and update any supplied optional fields.

    Raises:
        AppError: NOT_FOUND if the caller has no entry for this book
    """
    input_data = _shelf_input(arguments)
    key = {"userId": identity.subject, "bookId": input_data["bookId"]}

    builder = UpdateBuilder().set("shelf", input_data["shelf"]).set("updatedAt", iso_timestamp())
    builder.set_present(input_data, OPTIONAL_FIELDS)

    item = store.update(key, builder.build())
    logger.info(
        "Updated shelf entry",
        user_id=identity.subject,
        book_id=key["bookId"],
        optional_fields=builder.optional_count,
    )
    return cast(UserBookItem, item)


def remove_book_from_shelf(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> UserBookItem:
    """Delete the caller's entry for a book and return it."""
    book_id = require_id(arguments, "bookId")
    item = store.delete({"userId": identity.subject, "bookId": book_id})
    logger.info("Removed book from shelf", user_id=identity.subject, book_id=book_id)
    return cast(UserBookItem, item)
