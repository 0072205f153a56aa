"""Dev seeding helper for stub authentication."""

import uuid
from datetime import date

from sqlalchemy.orm import Session

from backend.trip_actions.config import get_settings
from backend.trip_actions.db.engine import create_session_factory, get_engine
from backend.trip_actions.db.mapping import destination_row_values
from backend.trip_actions.db.models import Base, TripDay, TripDestination, UserTrip
from backend.trip_actions.models.itinerary import DestinationDraft, Schedule

# Fixed IDs; the owner is the stub-auth dev user from settings
DEV_TRIP_ID = "00000000-0000-0000-0000-0000000000a1"
DEV_DAY_IDS = (
    "00000000-0000-0000-0000-0000000000d1",
    "00000000-0000-0000-0000-0000000000d2",
)

_DEV_DESTINATIONS: dict[str, list[DestinationDraft]] = {
    DEV_DAY_IDS[0]: [
        DestinationDraft(
            name="Belem Tower",
            coordinates=(-9.2159, 38.6916),
            category="landmark",
            city="Lisbon",
            estimated_duration_minutes=60,
            schedule=Schedule(start_minute=9 * 60, duration_minutes=60),
        ),
        DestinationDraft(
            name="Jeronimos Monastery",
            coordinates=(-9.2068, 38.6979),
            category="landmark",
            city="Lisbon",
            estimated_duration_minutes=90,
            schedule=Schedule(start_minute=11 * 60, duration_minutes=90),
        ),
    ],
    DEV_DAY_IDS[1]: [
        DestinationDraft(
            name="Sao Jorge Castle",
            coordinates=(-9.1334, 38.7139),
            category="landmark",
            city="Lisbon",
            notes="Buy tickets online",
        ),
    ],
}


def seed_dev_trip(session: Session, user_id: str | None = None) -> bool:
    """Seed the dev user's trip, days and destinations.

    This function is idempotent - safe to run multiple times.

    Args:
        session: Database session
        user_id: Owner of the trip, defaults to the configured dev user

    Returns:
        True if rows were created, False if the dev trip already existed
    """
    if session.get(UserTrip, DEV_TRIP_ID) is not None:
        return False

    owner = user_id or get_settings().dev_user_id
    session.add(UserTrip(id=DEV_TRIP_ID, user_id=owner, name="Lisbon weekend"))
    for day_order, day_id in enumerate(DEV_DAY_IDS, start=1):
        session.add(
            TripDay(
                id=day_id,
                trip_id=DEV_TRIP_ID,
                day_order=day_order,
                day_date=date(2025, 6, 9 + day_order),
                version=0,
            )
        )
        for order_index, draft in enumerate(_DEV_DESTINATIONS[day_id]):
            session.add(
                TripDestination(
                    id=str(uuid.uuid4()),
                    day_id=day_id,
                    order_index=order_index,
                    **destination_row_values(draft),
                )
            )

    session.commit()
    return True


def main() -> None:
    engine = get_engine()
    Base.metadata.create_all(engine)
    with create_session_factory(engine)() as session:
        if seed_dev_trip(session):
            print(f"Created dev trip {DEV_TRIP_ID} for user {get_settings().dev_user_id}")
        else:
            print("Dev trip already exists")


if __name__ == "__main__":
    main()
