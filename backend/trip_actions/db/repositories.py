"""Repository protocol interfaces for data access."""

from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from backend.trip_actions.models.itinerary import (
    BaseLocation,
    Day,
    Destination,
    DestinationDraft,
    Trip,
)


@dataclass
class ActionAuditRecord:
    """Audit trail entry for a previewed or executed action."""

    event: str
    user_id: str
    action_type: str
    summary: str
    payload: dict[str, Any]
    created_at: datetime = field(default_factory=datetime.now)


@dataclass
class ProcessedRequestRecord:
    """Assistant request id that already produced a mutation."""

    request_id: str
    user_id: str
    action_type: str
    ttl_until: datetime


class ItineraryStore(Protocol):
    """Storage for the Trip -> Day -> Destination chain.

    Ordering writes go through ``reorder_day`` only, which compares the day's
    version before renumbering.
    """

    def unit_of_work(self) -> AbstractContextManager[None]:
        """Group the writes of one action; roll back on any exception."""
        ...

    def get_trip(self, trip_id: str) -> Trip | None:
        ...

    def get_day(self, day_id: str) -> Day | None:
        ...

    def get_destination(self, destination_id: str) -> Destination | None:
        ...

    def list_destinations(self, day_id: str) -> list[Destination]:
        """List a day's destinations ordered by order_index."""
        ...

    def insert_destination(self, day_id: str, draft: DestinationDraft) -> Destination:
        """Insert a destination at the end of a day.

        Args:
            day_id: Owning day
            draft: Destination attributes

        Returns:
            Created destination with its new id
        """
        ...

    def update_destination(self, destination_id: str, changes: dict[str, Any]) -> Destination:
        """Apply attribute changes (DestinationDraft field names) to a destination."""
        ...

    def delete_destination(self, destination_id: str) -> None:
        ...

    def reorder_day(self, day_id: str, ordered_ids: list[str], expected_version: int) -> Day:
        """Assign day_id and contiguous order indices 0..n-1 to ``ordered_ids``.

        Args:
            day_id: Day receiving the ordering
            ordered_ids: Destination ids in their new order
            expected_version: Day version read before the change

        Returns:
            Day with its bumped version

        Raises:
            ConcurrentModificationError: If the day version no longer matches
        """
        ...

    def set_base_locations(self, day_id: str, locations: list[BaseLocation]) -> Day:
        ...


class AuditLog(Protocol):
    """Append-only audit trail for assistant actions."""

    def record_audit(self, record: ActionAuditRecord) -> None:
        ...


class ProcessedRequestStore(Protocol):
    """Request ids whose action was already applied, per user."""

    def get(self, request_id: str, user_id: str) -> ProcessedRequestRecord | None:
        """Get a processed request record, or None if unknown or expired."""
        ...

    def set_processed(
        self, request_id: str, user_id: str, action_type: str, ttl_until: datetime
    ) -> None:
        ...
