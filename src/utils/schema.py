"""
Collection schemas for the multi-table design.

Each collection maps to one DynamoDB table. The key structure here mirrors the
deployed tables and is the single source used by both store backends and by
the test table fixtures.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class IndexSchema:
    """Global secondary index key structure."""

    name: str
    partition_key: str
    sort_key: Optional[str] = None


@dataclass(frozen=True)
class CollectionSchema:
    """Key structure, indexes and TTL attribute of one collection."""

    name: str
    table_name_env: str
    default_table_name: str
    partition_key: str
    sort_key: Optional[str] = None
    indexes: Tuple[IndexSchema, ...] = field(default_factory=tuple)
    ttl_attribute: Optional[str] = None

    @property
    def key_attributes(self) -> Tuple[str, ...]:
        """Primary key attribute names, partition key first."""
        if self.sort_key:
            return (self.partition_key, self.sort_key)
        return (self.partition_key,)

    def get_index(self, index_name: Optional[str]) -> IndexSchema:
        """Return the named index, or the table's own key structure when no name is given."""
        if index_name is None:
            return IndexSchema(name="", partition_key=self.partition_key, sort_key=self.sort_key)
        for index in self.indexes:
            if index.name == index_name:
                return index
        raise KeyError(f"Collection '{self.name}' has no index '{index_name}'")


USERS = CollectionSchema(
    name="users",
    table_name_env="USERS_TABLE_NAME",
    default_table_name="BetterReads-Users",
    partition_key="userId",
    indexes=(IndexSchema("byEmail", "email"),),
)

# External metadata cache; entries expire via TTL
BOOKS = CollectionSchema(
    name="books",
    table_name_env="BOOKS_TABLE_NAME",
    default_table_name="BetterReads-Books",
    partition_key="isbn",
    ttl_attribute="ttl",
)

USER_BOOKS = CollectionSchema(
    name="user_books",
    table_name_env="USER_BOOKS_TABLE_NAME",
    default_table_name="BetterReads-UserBooks",
    partition_key="userId",
    sort_key="bookId",
    indexes=(IndexSchema("byShelf", "userId", "shelf"),),
)

REVIEWS = CollectionSchema(
    name="reviews",
    table_name_env="REVIEWS_TABLE_NAME",
    default_table_name="BetterReads-Reviews",
    partition_key="bookId",
    sort_key="reviewId",
    indexes=(IndexSchema("byUser", "userId", "createdAt"),),
)

FRIENDS = CollectionSchema(
    name="friends",
    table_name_env="FRIENDS_TABLE_NAME",
    default_table_name="BetterReads-Friends",
    partition_key="userId",
    sort_key="friendId",
)

ACTIVITY = CollectionSchema(
    name="activity",
    table_name_env="ACTIVITY_TABLE_NAME",
    default_table_name="BetterReads-Activity",
    partition_key="userId",
    sort_key="timestamp",
    ttl_attribute="ttl",
)

# Sort key is the period label, e.g. "2024" or "2024-01"
READING_STATS = CollectionSchema(
    name="reading_stats",
    table_name_env="READING_STATS_TABLE_NAME",
    default_table_name="BetterReads-ReadingStats",
    partition_key="userId",
    sort_key="period",
)

CUSTOM_SHELVES = CollectionSchema(
    name="custom_shelves",
    table_name_env="CUSTOM_SHELVES_TABLE_NAME",
    default_table_name="BetterReads-CustomShelves",
    partition_key="userId",
    sort_key="shelfId",
)

BOOK_LOANS = CollectionSchema(
    name="book_loans",
    table_name_env="BOOK_LOANS_TABLE_NAME",
    default_table_name="BetterReads-BookLoans",
    partition_key="userId",
    sort_key="loanId",
    indexes=(IndexSchema("byBook", "userId", "bookId"),),
)

COLLECTIONS: Dict[str, CollectionSchema] = {
    schema.name: schema
    for schema in (
        USERS,
        BOOKS,
        USER_BOOKS,
        REVIEWS,
        FRIENDS,
        ACTIVITY,
        READING_STATS,
        CUSTOM_SHELVES,
        BOOK_LOANS,
    )
}
