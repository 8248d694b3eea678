"""
Lambda resolvers for the external book metadata cache.

Entries are keyed by ISBN and expire through the table's `ttl` attribute.
DynamoDB removes expired items in the background, possibly long after they
expire, so reads treat an elapsed `ttl` as a miss.
"""

import os
from typing import Any, Dict

# Handle both Lambda (absolute) and unit test (relative) imports
try:  # pragma: no cover
    from utils.auth import IdentityContext  # type: ignore[import-not-found]
    from utils.errors import AppError, ErrorCode  # type: ignore[import-not-found]
    from utils.ids import iso_timestamp, ttl_epoch, utc_now  # type: ignore[import-not-found]
    from utils.logging import get_logger  # type: ignore[import-not-found]
    from utils.store import Item, Store  # type: ignore[import-not-found]
    from utils.update_builder import present_fields  # type: ignore[import-not-found]
    from utils.validation import require_id, require_input  # type: ignore[import-not-found]
except ImportError:  # pragma: no cover
    from ..utils.auth import IdentityContext
    from ..utils.errors import AppError, ErrorCode
    from ..utils.ids import iso_timestamp, ttl_epoch, utc_now
    from ..utils.logging import get_logger
    from ..utils.store import Item, Store
    from ..utils.update_builder import present_fields
    from ..utils.validation import require_id, require_input

logger = get_logger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 7 * 24 * 60 * 60

# Cached metadata fields copied from the caching request
METADATA_FIELDS = (
    "title",
    "authors",
    "publisher",
    "publishedDate",
    "pageCount",
    "description",
    "coverUrl",
)


def get_cache_ttl_seconds() -> int:
    """Cache lifetime from BOOK_CACHE_TTL_SECONDS."""
    return int(os.getenv("BOOK_CACHE_TTL_SECONDS", str(DEFAULT_CACHE_TTL_SECONDS)))


def get_cached_book(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> Item:
    """
    Get cached metadata for an ISBN.

    Raises:
        AppError: NOT_FOUND if never cached or the entry has expired
    """
    isbn = require_id(arguments, "isbn")
    item = store.get({"isbn": isbn})
    expires_at = item.get("ttl")
    if expires_at is not None and int(expires_at) <= int(utc_now().timestamp()):
        raise AppError(ErrorCode.NOT_FOUND, f"Cached entry for {isbn} has expired", {"key": {"isbn": isbn}})
    return item


def cache_book(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> Item:
    """Replace the cache entry for an ISBN and restart its expiry."""
    input_data = require_input(arguments)
    isbn = require_id(input_data, "isbn")
    now = utc_now()

    item = store.put(
        {"isbn": isbn},
        {
            **present_fields(input_data, METADATA_FIELDS),
            "cachedAt": iso_timestamp(now),
            "ttl": ttl_epoch(now, get_cache_ttl_seconds()),
        },
    )
    logger.info("Cached book metadata", isbn=isbn)
    return item
