"""
GraphQL response shapes for Lambda resolvers.

Resolver results are the stored items passed back verbatim; the only
conversion is from store-native numbers (boto3 returns Decimal) to plain
JSON numbers.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, TypedDict


class UserItem(TypedDict, total=False):
    """GraphQL User type."""

    userId: str
    email: str
    displayName: str
    bio: Optional[str]
    avatarUrl: Optional[str]
    createdAt: str
    updatedAt: str


class UserBookItem(TypedDict, total=False):
    """GraphQL UserBook (shelf entry) type."""

    userId: str
    bookId: str
    shelf: str
    customShelfIds: List[str]
    rating: Optional[int]
    startedAt: Optional[str]
    finishedAt: Optional[str]
    pagesRead: Optional[int]
    addedAt: str
    updatedAt: str


class ReviewItem(TypedDict, total=False):
    """GraphQL Review type."""

    bookId: str
    reviewId: str
    userId: str
    rating: int
    content: str
    createdAt: str


class FriendItem(TypedDict, total=False):
    """GraphQL Friend edge type."""

    userId: str
    friendId: str
    status: str
    createdAt: str


class CustomShelfItem(TypedDict, total=False):
    """GraphQL CustomShelf type."""

    userId: str
    shelfId: str
    name: str
    description: Optional[str]
    bookRatings: Dict[str, int]
    createdAt: str
    updatedAt: str


class BookLoanItem(TypedDict, total=False):
    """GraphQL BookLoan type."""

    userId: str
    loanId: str
    bookId: str
    borrowerName: str
    lentAt: str
    returnedAt: Optional[str]


def normalize_value(value: Any) -> Any:
    """
    Convert Decimal numbers (at any depth) to int or float.

    Examples:
        >>> normalize_value(Decimal("4"))
        4
        >>> normalize_value({"r": [Decimal("4.5")]})
        {'r': [4.5]}
    """
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: normalize_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [normalize_value(v) for v in value]
    return value


def to_graphql(result: Any) -> Any:
    """Prepare a mapper result (item, list of items, or None) for the GraphQL response."""
    return normalize_value(result)
