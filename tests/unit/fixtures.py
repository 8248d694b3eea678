"""
Test data builders for resolver tests.

Provides factory functions for creating test data with sensible defaults
and customization options. Use these to create test entities without
repeating boilerplate across test files.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import uuid4


class FakeClock:
    """Controllable replacement for `utc_now`."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        """Move the clock forward (timedelta keyword arguments)."""
        self.now += timedelta(**kwargs)
        return self.now


def make_user_id(suffix: Optional[str] = None) -> str:
    """Generate a Cognito-style subject identifier.

    Args:
        suffix: Optional suffix for predictable IDs in tests

    Returns:
        Subject identifier
    """
    if suffix:
        return f"user-{suffix}"
    return f"user-{uuid4().hex[:12]}"


def make_isbn(n: int = 0) -> str:
    """Generate a distinct 13-digit ISBN-like book id."""
    return f"978{n:010d}"


def make_appsync_event(
    type_name: str,
    field_name: str,
    arguments: Optional[Dict[str, Any]] = None,
    caller_id: Optional[str] = "user-123-456",
) -> Dict[str, Any]:
    """Build an AppSync direct Lambda resolver event.

    Args:
        type_name: "Query" or "Mutation"
        field_name: GraphQL field name
        arguments: Field arguments
        caller_id: Cognito sub, or None for an event without identity

    Returns:
        Event dict
    """
    event: Dict[str, Any] = {
        "arguments": arguments or {},
        "info": {"parentTypeName": type_name, "fieldName": field_name},
        "requestContext": {"requestId": "test-correlation-id"},
    }
    if caller_id is not None:
        event["identity"] = {
            "sub": caller_id,
            "username": "testuser",
            "claims": {"sub": caller_id, "email": "reader@example.com"},
        }
    return event


def make_shelf_input(book_id: str, shelf: str = "reading", **overrides: Any) -> Dict[str, Any]:
    """Build an addBookToShelf/updateBookShelf input."""
    return {"bookId": book_id, "shelf": shelf, **overrides}


def make_loan_item(user_id: str, loan_id: str, book_id: str, returned_at: Optional[str] = None) -> Dict[str, Any]:
    """Build a stored BookLoan item."""
    item = {
        "userId": user_id,
        "loanId": loan_id,
        "bookId": book_id,
        "borrowerName": "Sam",
        "lentAt": "2025-01-01T00:00:00+00:00",
    }
    if returned_at:
        item["returnedAt"] = returned_at
    return item
