"""Error taxonomy for assistant actions.

ActionValidationError, NotFoundError and ForbiddenError map to 400, 404 and 403
at the HTTP edge. ActionSkipped is not a failure: it carries the reason an
action was deliberately not applied and becomes a ``skipped`` dispatch result.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ValidationIssue:
    """Single violated constraint."""

    path: str
    reason: str

    def as_dict(self) -> dict[str, str]:
        return {"path": self.path, "reason": self.reason}


class ActionError(Exception):
    """Base class for classified action errors."""

    pass


class ActionValidationError(ActionError):
    """Payload is malformed or semantically inconsistent."""

    def __init__(self, message: str, issues: list[ValidationIssue] | None = None) -> None:
        super().__init__(message)
        self.issues = issues or []

    def as_detail(self) -> list[dict[str, str]]:
        return [issue.as_dict() for issue in self.issues]


class NotFoundError(ActionError):
    """Referenced trip, day or destination does not exist."""

    pass


class ForbiddenError(ActionError):
    """Referenced entity is not owned by the caller, or a cross-trip operation was attempted."""

    pass


class ConcurrentModificationError(ActionError):
    """Day ordering changed underneath the current action."""

    pass


class ActionSkipped(Exception):
    """Action was recognised but a precondition was not met."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason
