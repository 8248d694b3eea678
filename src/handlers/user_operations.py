"""Lambda resolvers for User operations."""

from typing import Any, Dict, cast

# Handle both Lambda (absolute) and unit test (relative) imports
try:  # pragma: no cover
    from utils.auth import IdentityContext  # type: ignore[import-not-found]
    from utils.errors import AppError, ErrorCode  # type: ignore[import-not-found]
    from utils.ids import iso_timestamp  # type: ignore[import-not-found]
    from utils.logging import get_logger  # type: ignore[import-not-found]
    from utils.responses import UserItem  # type: ignore[import-not-found]
    from utils.store import QueryOptions, Store  # type: ignore[import-not-found]
    from utils.update_builder import UpdateBuilder  # type: ignore[import-not-found]
    from utils.validation import optional_string, require_id, require_input, require_string  # type: ignore[import-not-found]
except ImportError:  # pragma: no cover
    from ..utils.auth import IdentityContext
    from ..utils.errors import AppError, ErrorCode
    from ..utils.ids import iso_timestamp
    from ..utils.logging import get_logger
    from ..utils.responses import UserItem
    from ..utils.store import QueryOptions, Store
    from ..utils.update_builder import UpdateBuilder
    from ..utils.validation import optional_string, require_id, require_input, require_string

logger = get_logger(__name__)

# Profile fields a user may change after sign-up
PROFILE_FIELDS = ("displayName", "bio", "avatarUrl")


def get_user(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> UserItem:
    """Get any user's public profile by userId."""
    user_id = require_id(arguments, "userId")
    return cast(UserItem, store.get({"userId": user_id}))


def me(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> UserItem:
    """Get the caller's own profile."""
    return cast(UserItem, store.get({"userId": identity.subject}))


def get_user_by_email(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> UserItem:
    """
    Look up a user through the byEmail index.

    Raises:
        AppError: NOT_FOUND if no user has this email
    """
    email = require_string(arguments, "email")
    items = store.query(email, QueryOptions(index_name="byEmail", limit=1))
    if not items:
        raise AppError(ErrorCode.NOT_FOUND, "No user with this email")
    return cast(UserItem, items[0])


def create_user(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> UserItem:
    """
    Create (or replace) the caller's User item.

    The item is keyed on the caller's subject; any client-supplied userId is
    ignored.

    Args:
        store: users collection
        identity: caller identity
        arguments: {"input": {"email": ..., "displayName": ...}}

    Returns:
        The stored User item
    """
    input_data = require_input(arguments)
    email = require_string(input_data, "email")
    display_name = require_string(input_data, "displayName")
    user_id = identity.subject
    now = iso_timestamp()

    item = store.put(
        {"userId": user_id},
        {
            "email": email,
            "displayName": display_name,
            "createdAt": now,
            "updatedAt": now,
        },
    )
    logger.info("Created user", user_id=user_id)
    return cast(UserItem, item)


def update_me(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> UserItem:
    """
    Partially update the caller's profile.

    Only supplied fields among displayName, bio and avatarUrl are written;
    updatedAt is always advanced.
    """
    input_data = require_input(arguments)
    for field in PROFILE_FIELDS:
        optional_string(input_data, field)

    builder = UpdateBuilder().set("updatedAt", iso_timestamp())
    builder.set_present(input_data, PROFILE_FIELDS)

    item = store.update({"userId": identity.subject}, builder.build())
    logger.info("Updated user profile", user_id=identity.subject, fields=builder.optional_count)
    return cast(UserItem, item)
