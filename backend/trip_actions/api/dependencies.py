"""Repository dependencies for the action routes."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from backend.trip_actions.db.engine import get_session
from backend.trip_actions.db.repositories import AuditLog, ItineraryStore, ProcessedRequestStore
from backend.trip_actions.db.sql_repositories import (
    SqlAuditLog,
    SqlItineraryStore,
    SqlProcessedRequestStore,
)


def get_itinerary_store(session: Annotated[Session, Depends(get_session)]) -> ItineraryStore:
    return SqlItineraryStore(session)


def get_audit_log(session: Annotated[Session, Depends(get_session)]) -> AuditLog:
    return SqlAuditLog(session)


def get_processed_requests(
    session: Annotated[Session, Depends(get_session)],
) -> ProcessedRequestStore:
    return SqlProcessedRequestStore(session)
