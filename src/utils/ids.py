"""
Identifier and timestamp utilities.

Ids for reviews, custom shelves and loans are minted here before the store
write; the store never allocates keys.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current instant in UTC."""
    return datetime.now(timezone.utc)


def iso_timestamp(moment: Optional[datetime] = None) -> str:
    """
    Render an instant as an ISO-8601 string.

    Examples:
        >>> iso_timestamp(datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc))
        '2025-01-02T03:04:05+00:00'
    """
    return (moment or utc_now()).isoformat()


def new_id() -> str:
    """Mint a random opaque identifier."""
    return str(uuid.uuid4())


def new_time_ordered_id(moment: Optional[datetime] = None) -> str:
    """
    Mint an opaque identifier whose lexical order follows creation time.

    The millisecond prefix is zero-padded so that sorting by the id sorts by
    creation instant; the random suffix keeps ids unique within a millisecond.

    Examples:
        >>> new_time_ordered_id(datetime(2025, 1, 1, tzinfo=timezone.utc))[:14]
        '1735689600000-'
    """
    millis = int((moment or utc_now()).timestamp() * 1000)
    return f"{millis:013d}-{uuid.uuid4()}"


def ttl_epoch(moment: datetime, seconds: int) -> int:
    """Epoch seconds at which an item written at `moment` expires."""
    return int(moment.timestamp()) + seconds
