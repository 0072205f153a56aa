"""SQL implementations of repository interfaces."""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from backend.trip_actions.db.mapping import (
    base_locations_to_json,
    day_from_row,
    destination_change_values,
    destination_from_row,
    destination_row_values,
    trip_from_row,
)
from backend.trip_actions.db.models import (
    AssistantActionLog,
    ProcessedRequest,
    TripDay,
    TripDestination,
    UserTrip,
)
from backend.trip_actions.db.repositories import ActionAuditRecord, ProcessedRequestRecord
from backend.trip_actions.errors import ConcurrentModificationError, NotFoundError
from backend.trip_actions.models.itinerary import (
    BaseLocation,
    Day,
    Destination,
    DestinationDraft,
    Trip,
)


class SqlItineraryStore:
    """SQL implementation of ItineraryStore.

    Writes are flushed, not committed; ``unit_of_work`` commits once per
    action so that an action's insert and renumbering land together.
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self._depth = 0

    @contextmanager
    def unit_of_work(self) -> Iterator[None]:
        """Commit on success, roll back on any exception."""
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        self._depth = 1
        try:
            yield
            self._session.commit()
        except BaseException:
            self._session.rollback()
            raise
        finally:
            self._depth = 0

    def get_trip(self, trip_id: str) -> Trip | None:
        row = self._session.get(UserTrip, trip_id)
        return trip_from_row(row) if row is not None else None

    def get_day(self, day_id: str) -> Day | None:
        row = self._session.get(TripDay, day_id)
        return day_from_row(row) if row is not None else None

    def get_destination(self, destination_id: str) -> Destination | None:
        row = self._session.get(TripDestination, destination_id)
        return destination_from_row(row) if row is not None else None

    def _destination_rows(self, day_id: str) -> list[TripDestination]:
        stmt = (
            select(TripDestination)
            .where(TripDestination.day_id == day_id)
            .order_by(TripDestination.order_index, TripDestination.id)
        )
        return list(self._session.scalars(stmt))

    def list_destinations(self, day_id: str) -> list[Destination]:
        return [destination_from_row(row) for row in self._destination_rows(day_id)]

    def insert_destination(self, day_id: str, draft: DestinationDraft) -> Destination:
        if self._session.get(TripDay, day_id) is None:
            raise NotFoundError("Day not found")

        count = self._session.scalar(
            select(func.count()).select_from(TripDestination).where(TripDestination.day_id == day_id)
        )
        row = TripDestination(
            id=str(uuid.uuid4()),
            day_id=day_id,
            order_index=count or 0,
            **destination_row_values(draft),
        )
        self._session.add(row)
        self._session.flush()
        return destination_from_row(row)

    def update_destination(self, destination_id: str, changes: dict[str, Any]) -> Destination:
        row = self._session.get(TripDestination, destination_id)
        if row is None:
            raise NotFoundError("Destination not found")

        values = destination_change_values(destination_from_row(row), changes)
        for column, value in values.items():
            setattr(row, column, value)

        self._session.flush()
        return destination_from_row(row)

    def delete_destination(self, destination_id: str) -> None:
        row = self._session.get(TripDestination, destination_id)
        if row is None:
            raise NotFoundError("Destination not found")

        self._session.delete(row)
        self._session.flush()

    def reorder_day(self, day_id: str, ordered_ids: list[str], expected_version: int) -> Day:
        # Compare-and-swap on the day version before touching any order index
        result = self._session.execute(
            update(TripDay)
            .where(TripDay.id == day_id, TripDay.version == expected_version)
            .values(version=expected_version + 1)
        )
        if result.rowcount == 0:
            if self._session.get(TripDay, day_id) is None:
                raise NotFoundError("Day not found")
            raise ConcurrentModificationError(
                f"Day {day_id} changed during the update (expected version {expected_version})"
            )

        for index, destination_id in enumerate(ordered_ids):
            row = self._session.get(TripDestination, destination_id)
            if row is None:
                raise NotFoundError("Destination not found")
            row.day_id = day_id
            row.order_index = index

        self._session.flush()

        day_row = self._session.get(TripDay, day_id)
        self._session.refresh(day_row)
        return day_from_row(day_row)

    def set_base_locations(self, day_id: str, locations: list[BaseLocation]) -> Day:
        row = self._session.get(TripDay, day_id)
        if row is None:
            raise NotFoundError("Day not found")

        row.base_locations_json = base_locations_to_json(locations)
        self._session.flush()
        return day_from_row(row)


class SqlAuditLog:
    """SQL implementation of AuditLog."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def record_audit(self, record: ActionAuditRecord) -> None:
        """Insert one audit row in its own transaction."""
        self._session.add(
            AssistantActionLog(
                id=str(uuid.uuid4()),
                event_type=record.event,
                user_id=record.user_id,
                action_type=record.action_type,
                summary=record.summary,
                payload=record.payload,
            )
        )
        self._session.commit()


class SqlProcessedRequestStore:
    """SQL implementation of ProcessedRequestStore."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, request_id: str, user_id: str) -> ProcessedRequestRecord | None:
        """Get processed request record."""
        record = self._session.get(ProcessedRequest, (request_id, user_id))

        if record is None:
            return None

        # Check if expired
        if datetime.now() > record.ttl_until:
            self._session.delete(record)
            self._session.flush()
            return None

        return ProcessedRequestRecord(
            request_id=record.request_id,
            user_id=record.user_id,
            action_type=record.action_type,
            ttl_until=record.ttl_until,
        )

    def set_processed(
        self, request_id: str, user_id: str, action_type: str, ttl_until: datetime
    ) -> None:
        """Remember that a request id produced a mutation.

        Flushed only; the surrounding unit of work commits it together with
        the mutation it guards.
        """
        record = ProcessedRequest(
            request_id=request_id,
            user_id=user_id,
            action_type=action_type,
            ttl_until=ttl_until,
        )

        self._session.merge(record)
        self._session.flush()
