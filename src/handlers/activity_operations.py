"""Lambda resolvers for the activity feed and reading stats (read-only)."""

from typing import Any, Dict, List

# Handle both Lambda (absolute) and unit test (relative) imports
try:  # pragma: no cover
    from utils.auth import IdentityContext  # type: ignore[import-not-found]
    from utils.store import Item, QueryOptions, Store  # type: ignore[import-not-found]
    from utils.validation import validate_limit  # type: ignore[import-not-found]
except ImportError:  # pragma: no cover
    from ..utils.auth import IdentityContext
    from ..utils.store import Item, QueryOptions, Store
    from ..utils.validation import validate_limit


def get_activity_feed(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> List[Item]:
    """
    List the caller's activity events, newest first.

    Events carry a TTL, so older entries may already have been removed.
    """
    limit = validate_limit(arguments.get("limit"))
    return store.query(identity.subject, QueryOptions(scan_forward=False, limit=limit))


def get_reading_stats(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> List[Item]:
    """List the caller's aggregated stats, one item per period."""
    limit = validate_limit(arguments.get("limit"))
    return store.query(identity.subject, QueryOptions(limit=limit))
