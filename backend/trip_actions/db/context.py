"""Request context for tenancy enforcement."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RequestContext:
    """Request context containing the authenticated user.

    Every ownership check walks the trip chain back to this user.
    """

    user_id: str
