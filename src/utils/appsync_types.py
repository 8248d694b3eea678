"""
Type definitions for AppSync Lambda events.

Provides TypedDict definitions for strongly typing AppSync resolver events,
reducing runtime errors from incorrect event structure assumptions.
"""

from typing import Any, Dict, List, Optional, Tuple, TypedDict


class AppSyncIdentity(TypedDict, total=False):
    """AppSync Cognito User Pool identity."""

    sub: str  # Cognito user ID
    username: str
    claims: Dict[str, Any]
    sourceIp: List[str]
    defaultAuthStrategy: str


class AppSyncInfo(TypedDict, total=False):
    """Resolver field information."""

    fieldName: str
    parentTypeName: str
    variables: Dict[str, Any]


class AppSyncEvent(TypedDict, total=False):
    """Base AppSync direct Lambda resolver event structure."""

    identity: AppSyncIdentity
    arguments: Dict[str, Any]
    source: Dict[str, Any]
    info: AppSyncInfo
    request: Dict[str, Any]


# Helper functions for safe extraction


def get_caller_id(event: Dict[str, Any]) -> Optional[str]:
    """
    Extract caller's Cognito sub (user ID) from event.

    Args:
        event: AppSync event

    Returns:
        Caller ID or None if not present
    """
    identity: Dict[str, Any] = event.get("identity") or {}
    result: Optional[str] = identity.get("sub")
    return result


def get_field(event: Dict[str, Any]) -> Tuple[str, str]:
    """
    Extract the resolved (typeName, fieldName) pair from event.

    Args:
        event: AppSync event

    Returns:
        Tuple of parent type name and field name, empty strings when absent
    """
    info: Dict[str, Any] = event.get("info") or {}
    return str(info.get("parentTypeName", "")), str(info.get("fieldName", ""))


def get_arguments(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Extract the field arguments from event.

    Args:
        event: AppSync event

    Returns:
        Arguments dict (empty if not present)
    """
    arguments: Dict[str, Any] = event.get("arguments") or {}
    return arguments
