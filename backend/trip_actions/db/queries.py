"""Tenancy-safe query helpers."""

from sqlalchemy import Select, select

from backend.trip_actions.db.context import RequestContext
from backend.trip_actions.db.models import TripDay, TripDestination, UserTrip


def select_user_trips(ctx: RequestContext) -> Select[tuple[UserTrip]]:
    """Select trips with user scoping enforced.

    Args:
        ctx: Request context with user_id

    Returns:
        Select filtered by user_id
    """
    return select(UserTrip).where(UserTrip.user_id == ctx.user_id)


def select_user_days(ctx: RequestContext) -> Select[tuple[TripDay]]:
    """Select days whose trip belongs to the context user."""
    return (
        select(TripDay)
        .join(UserTrip, TripDay.trip_id == UserTrip.id)
        .where(UserTrip.user_id == ctx.user_id)
    )


def select_user_destinations(ctx: RequestContext) -> Select[tuple[TripDestination]]:
    """Select destinations whose day's trip belongs to the context user."""
    return (
        select(TripDestination)
        .join(TripDay, TripDestination.day_id == TripDay.id)
        .join(UserTrip, TripDay.trip_id == UserTrip.id)
        .where(UserTrip.user_id == ctx.user_id)
    )
