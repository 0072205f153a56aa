"""Seed itineraries shared by the unit and integration suites.

USER_ID owns two trips (Rome with two days, Paris with one). OTHER_USER_ID
owns a Berlin trip. Rome day 1 holds a 09:00 and a 15:00 stop.
"""

from datetime import date

from sqlalchemy.orm import Session

from backend.trip_actions.db.inmemory import InMemoryItineraryStore
from backend.trip_actions.db.mapping import destination_row_values
from backend.trip_actions.db.models import TripDay, TripDestination, UserTrip
from backend.trip_actions.models.itinerary import (
    Day,
    DaySnapshot,
    Destination,
    Schedule,
    Trip,
    TripSnapshot,
)

USER_ID = "user-1"
OTHER_USER_ID = "user-2"

ROME_TRIP_ID = "trip-rome"
PARIS_TRIP_ID = "trip-paris"
BERLIN_TRIP_ID = "trip-berlin"

ROME_DAY_1 = "day-rome-1"
ROME_DAY_2 = "day-rome-2"
PARIS_DAY_1 = "day-paris-1"
BERLIN_DAY_1 = "day-berlin-1"

VATICAN_ID = "11111111-1111-4111-8111-111111111111"
TREVI_ID = "22222222-2222-4222-8222-222222222222"
PANTHEON_ID = "33333333-3333-4333-8333-333333333333"
LOUVRE_ID = "44444444-4444-4444-8444-444444444444"
BRANDENBURG_ID = "55555555-5555-4555-8555-555555555555"

TRIPS = [
    Trip(id=ROME_TRIP_ID, user_id=USER_ID, name="Rome"),
    Trip(id=PARIS_TRIP_ID, user_id=USER_ID, name="Paris"),
    Trip(id=BERLIN_TRIP_ID, user_id=OTHER_USER_ID, name="Berlin"),
]

DAYS = [
    Day(id=ROME_DAY_1, trip_id=ROME_TRIP_ID, day_order=1, date=date(2025, 4, 10)),
    Day(id=ROME_DAY_2, trip_id=ROME_TRIP_ID, day_order=2, date=date(2025, 4, 11)),
    Day(id=PARIS_DAY_1, trip_id=PARIS_TRIP_ID, day_order=1),
    Day(id=BERLIN_DAY_1, trip_id=BERLIN_TRIP_ID, day_order=1, date=date(2025, 5, 2)),
]

DESTINATIONS = [
    Destination(
        id=VATICAN_ID,
        day_id=ROME_DAY_1,
        order_index=0,
        name="Vatican Museums",
        coordinates=(12.4545, 41.9065),
        category="museum",
        estimated_duration_minutes=120,
        schedule=Schedule(start_minute=9 * 60, duration_minutes=120),
    ),
    Destination(
        id=TREVI_ID,
        day_id=ROME_DAY_1,
        order_index=1,
        name="Trevi Fountain",
        coordinates=(12.4833, 41.9009),
        notes="Bring coins",
        schedule=Schedule(start_minute=15 * 60, duration_minutes=45, confidence=0.8),
    ),
    Destination(
        id=PANTHEON_ID,
        day_id=ROME_DAY_2,
        order_index=0,
        name="Pantheon",
        coordinates=(12.4768, 41.8986),
        estimated_duration_minutes=60,
    ),
    Destination(
        id=LOUVRE_ID,
        day_id=PARIS_DAY_1,
        order_index=0,
        name="Louvre",
        coordinates=(2.3376, 48.8606),
    ),
    Destination(
        id=BRANDENBURG_ID,
        day_id=BERLIN_DAY_1,
        order_index=0,
        name="Brandenburg Gate",
        coordinates=(13.3777, 52.5163),
    ),
]


def seed_in_memory(store: InMemoryItineraryStore) -> InMemoryItineraryStore:
    for trip in TRIPS:
        store.add_trip(trip)
    for day in DAYS:
        store.add_day(day)
    for destination in DESTINATIONS:
        store.add_destination(destination)
    return store


def seed_sql(session: Session) -> None:
    for trip in TRIPS:
        session.add(UserTrip(id=trip.id, user_id=trip.user_id, name=trip.name))
    for day in DAYS:
        session.add(
            TripDay(
                id=day.id,
                trip_id=day.trip_id,
                day_order=day.day_order,
                day_date=day.date,
                version=day.version,
            )
        )
    session.flush()
    for destination in DESTINATIONS:
        session.add(
            TripDestination(
                id=destination.id,
                day_id=destination.day_id,
                order_index=destination.order_index,
                **destination_row_values(destination),
            )
        )
    session.commit()


def rome_snapshot() -> TripSnapshot:
    """The Rome trip as a client would hold it."""
    days = [
        DaySnapshot(
            **day.model_dump(),
            destinations=[d for d in DESTINATIONS if d.day_id == day.id],
        )
        for day in DAYS
        if day.trip_id == ROME_TRIP_ID
    ]
    return TripSnapshot(id=ROME_TRIP_ID, user_id=USER_ID, name="Rome", days=days)


def order_of(destinations: list[Destination]) -> list[tuple[str, int]]:
    return [(d.name, d.order_index) for d in destinations]
