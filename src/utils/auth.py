"""
Caller identity for resolver operations.

The external identity provider (Cognito user pool) authenticates the caller;
AppSync forwards the verified identity on every event. Caller-scoped
operations key their reads and writes on the identity's subject, which gives
per-caller isolation without explicit ACL checks.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .appsync_types import get_caller_id
from .errors import AppError, ErrorCode


@dataclass(frozen=True)
class IdentityContext:
    """
    The authenticated caller of a single operation invocation.

    Attributes:
        caller_id: Cognito sub of the caller, or None for an anonymous event
        claims: Verified token claims forwarded by AppSync
    """

    caller_id: Optional[str] = None
    claims: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_event(cls, event: Dict[str, Any]) -> "IdentityContext":
        """Build the identity from an AppSync resolver event."""
        identity = event.get("identity") or {}
        return cls(caller_id=get_caller_id(event), claims=dict(identity.get("claims") or {}))

    @property
    def subject(self) -> str:
        """
        The caller's stable subject identifier.

        Raises:
            AppError: UNAUTHENTICATED if the event carried no caller identity
        """
        if not self.caller_id:
            raise AppError(ErrorCode.UNAUTHENTICATED, "Authentication required")
        return self.caller_id


def require_identity(identity: IdentityContext) -> str:
    """Reject the request before it reaches a mapper when no caller identity is present."""
    return identity.subject
