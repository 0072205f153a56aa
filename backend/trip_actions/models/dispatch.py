"""Dispatch outcome models."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from backend.trip_actions.models.common import WireModel


class DispatchStatus(str, Enum):
    """Outcome of a single action within a batch."""

    applied = "applied"
    skipped = "skipped"
    failed = "failed"


@dataclass
class DispatchResult:
    """Per-action outcome; created per dispatch call and never persisted."""

    action: WireModel
    status: DispatchStatus
    reason: str | None = None
    summary: str | None = None

    def to_wire(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "action": self.action.to_wire(),
            "status": self.status.value,
        }
        if self.reason is not None:
            body["reason"] = self.reason
        if self.summary is not None:
            body["summary"] = self.summary
        return body
