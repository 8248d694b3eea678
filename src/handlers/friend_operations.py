"""Lambda resolvers for Friend edges."""

from typing import Any, Dict, List

# Handle both Lambda (absolute) and unit test (relative) imports
try:  # pragma: no cover
    from utils.auth import IdentityContext  # type: ignore[import-not-found]
    from utils.ids import iso_timestamp  # type: ignore[import-not-found]
    from utils.logging import get_logger  # type: ignore[import-not-found]
    from utils.store import Item, QueryOptions, Store  # type: ignore[import-not-found]
    from utils.validation import require_id, validate_limit  # type: ignore[import-not-found]
except ImportError:  # pragma: no cover
    from ..utils.auth import IdentityContext
    from ..utils.ids import iso_timestamp
    from ..utils.logging import get_logger
    from ..utils.store import Item, QueryOptions, Store
    from ..utils.validation import require_id, validate_limit

logger = get_logger(__name__)

# New friend edges always start pending
STATUS_PENDING = "PENDING"


def get_friends(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> List[Item]:
    """List the caller's friend edges."""
    limit = validate_limit(arguments.get("limit"))
    return store.query(identity.subject, QueryOptions(limit=limit))


def add_friend(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> Item:
    """
    Record a friend edge from the caller to friendId with status PENDING.

    Re-adding the same friend replaces the edge.
    """
    friend_id = require_id(arguments, "friendId")
    item = store.put(
        {"userId": identity.subject, "friendId": friend_id},
        {"status": STATUS_PENDING, "createdAt": iso_timestamp()},
    )
    logger.info("Added friend", user_id=identity.subject, friend_id=friend_id)
    return item
