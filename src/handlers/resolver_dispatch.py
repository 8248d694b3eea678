"""
Resolver dispatch for the GraphQL API.

Every query and mutation is bound to exactly one mapper operation against
exactly one collection. AppSync invokes `lambda_handler` as a direct Lambda
resolver with `info.parentTypeName` and `info.fieldName` naming the field.
"""

from typing import Any, Callable, Dict, NamedTuple, Optional, Tuple

# Handle both Lambda (absolute) and unit test (relative) imports
try:  # pragma: no cover
    from utils.appsync_types import get_arguments, get_field  # type: ignore[import-not-found]
    from utils.auth import IdentityContext, require_identity  # type: ignore[import-not-found]
    from utils.dynamodb import stores  # type: ignore[import-not-found]
    from utils.errors import AppError, ErrorCode  # type: ignore[import-not-found]
    from utils.logging import get_correlation_id, get_logger  # type: ignore[import-not-found]
    from utils.responses import to_graphql  # type: ignore[import-not-found]
    from utils.store import Store  # type: ignore[import-not-found]
except ImportError:  # pragma: no cover
    from ..utils.appsync_types import get_arguments, get_field
    from ..utils.auth import IdentityContext, require_identity
    from ..utils.dynamodb import stores
    from ..utils.errors import AppError, ErrorCode
    from ..utils.logging import get_correlation_id, get_logger
    from ..utils.responses import to_graphql
    from ..utils.store import Store

try:  # pragma: no cover
    from handlers import (  # type: ignore[import-not-found]
        activity_operations,
        book_cache_operations,
        custom_shelf_operations,
        friend_operations,
        loan_operations,
        review_operations,
        shelf_operations,
        user_operations,
    )
except ImportError:  # pragma: no cover
    from . import (
        activity_operations,
        book_cache_operations,
        custom_shelf_operations,
        friend_operations,
        loan_operations,
        review_operations,
        shelf_operations,
        user_operations,
    )

Operation = Callable[[Store, IdentityContext, Dict[str, Any]], Any]


class Resolver(NamedTuple):
    """Binding of one GraphQL field to a collection and mapper operation."""

    collection: str
    operation: Operation
    caller_scoped: bool


RESOLVERS: Dict[Tuple[str, str], Resolver] = {
    # === USER ===
    ("Query", "getUser"): Resolver("users", user_operations.get_user, False),
    ("Query", "getUserByEmail"): Resolver("users", user_operations.get_user_by_email, False),
    ("Query", "me"): Resolver("users", user_operations.me, True),
    ("Mutation", "createUser"): Resolver("users", user_operations.create_user, True),
    ("Mutation", "updateMe"): Resolver("users", user_operations.update_me, True),
    # === BOOK CACHE ===
    ("Query", "getCachedBook"): Resolver("books", book_cache_operations.get_cached_book, False),
    ("Mutation", "cacheBook"): Resolver("books", book_cache_operations.cache_book, False),
    # === SHELVES ===
    ("Query", "getUserBooks"): Resolver("user_books", shelf_operations.get_user_books, False),
    ("Query", "myBooks"): Resolver("user_books", shelf_operations.my_books, True),
    ("Query", "myBooksByShelf"): Resolver("user_books", shelf_operations.my_books_by_shelf, True),
    ("Mutation", "addBookToShelf"): Resolver("user_books", shelf_operations.add_book_to_shelf, True),
    ("Mutation", "updateBookShelf"): Resolver("user_books", shelf_operations.update_book_shelf, True),
    ("Mutation", "removeBookFromShelf"): Resolver("user_books", shelf_operations.remove_book_from_shelf, True),
    # === REVIEWS ===
    ("Query", "getBookReviews"): Resolver("reviews", review_operations.get_book_reviews, False),
    ("Query", "getUserReviews"): Resolver("reviews", review_operations.get_user_reviews, False),
    ("Mutation", "createReview"): Resolver("reviews", review_operations.create_review, True),
    # === FRIENDS ===
    ("Query", "getFriends"): Resolver("friends", friend_operations.get_friends, True),
    ("Mutation", "addFriend"): Resolver("friends", friend_operations.add_friend, True),
    # === ACTIVITY & STATS ===
    ("Query", "getActivityFeed"): Resolver("activity", activity_operations.get_activity_feed, True),
    ("Query", "getReadingStats"): Resolver("reading_stats", activity_operations.get_reading_stats, True),
    # === CUSTOM SHELVES ===
    ("Query", "myCustomShelves"): Resolver("custom_shelves", custom_shelf_operations.my_custom_shelves, True),
    ("Mutation", "createCustomShelf"): Resolver(
        "custom_shelves", custom_shelf_operations.create_custom_shelf, True
    ),
    ("Mutation", "updateCustomShelf"): Resolver(
        "custom_shelves", custom_shelf_operations.update_custom_shelf, True
    ),
    ("Mutation", "deleteCustomShelf"): Resolver(
        "custom_shelves", custom_shelf_operations.delete_custom_shelf, True
    ),
    ("Mutation", "updateShelfBookRating"): Resolver(
        "custom_shelves", custom_shelf_operations.update_shelf_book_rating, True
    ),
    # === LOANS ===
    ("Query", "myLoans"): Resolver("book_loans", loan_operations.my_loans, True),
    ("Query", "activeLoans"): Resolver("book_loans", loan_operations.active_loans, True),
    ("Query", "myLoansForBook"): Resolver("book_loans", loan_operations.my_loans_for_book, True),
    ("Mutation", "lendBook"): Resolver("book_loans", loan_operations.lend_book, True),
    ("Mutation", "returnBook"): Resolver("book_loans", loan_operations.return_book, True),
    ("Mutation", "updateLoan"): Resolver("book_loans", loan_operations.update_loan, True),
    ("Mutation", "deleteLoan"): Resolver("book_loans", loan_operations.delete_loan, True),
}


def get_resolver(type_name: str, field_name: str) -> Resolver:
    """
    Look up the binding for a GraphQL field.

    Raises:
        AppError: NOT_IMPLEMENTED if the field has no binding
    """
    resolver = RESOLVERS.get((type_name, field_name))
    if resolver is None:
        raise AppError(
            ErrorCode.NOT_IMPLEMENTED,
            f"No resolver for {type_name}.{field_name}",
            {"typeName": type_name, "fieldName": field_name},
        )
    return resolver


def resolve(
    type_name: str,
    field_name: str,
    arguments: Dict[str, Any],
    identity: IdentityContext,
    store: Optional[Store] = None,
) -> Any:
    """
    Run the mapper operation bound to a field.

    Caller-scoped operations are rejected before the mapper runs when the
    identity is missing.

    Args:
        type_name: "Query" or "Mutation"
        field_name: GraphQL field name
        arguments: Field arguments
        identity: Caller identity
        store: Store to use instead of the collection's configured store

    Returns:
        The mapper's result, unchanged
    """
    resolver = get_resolver(type_name, field_name)
    if resolver.caller_scoped:
        require_identity(identity)
    return resolver.operation(store or stores.get(resolver.collection), identity, arguments)


def lambda_handler(event: Dict[str, Any], context: Any) -> Any:
    """
    AppSync direct Lambda resolver entry point.

    Args:
        event: AppSync event with info, identity and arguments
        context: Lambda context (unused)

    Returns:
        The resolved item or list of items

    Raises:
        AppError: Tagged with the failure kind; unexpected failures become INTERNAL_ERROR
    """
    logger = get_logger(__name__, get_correlation_id(event))
    type_name, field_name = get_field(event)
    identity = IdentityContext.from_event(event)

    logger.info("Resolving field", type_name=type_name, field_name=field_name, caller_id=identity.caller_id)

    try:
        result = resolve(type_name, field_name, get_arguments(event), identity)
    except AppError as e:
        logger.warning(
            "Resolver failed",
            type_name=type_name,
            field_name=field_name,
            error_code=e.error_code,
            error=e.message,
        )
        raise
    except Exception as e:
        logger.error("Unexpected resolver failure", type_name=type_name, field_name=field_name, error=str(e))
        raise AppError(ErrorCode.INTERNAL_ERROR, "An unexpected error occurred. Please try again.") from e

    return to_graphql(result)
