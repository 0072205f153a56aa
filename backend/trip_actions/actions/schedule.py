"""Schedule annotation codec.

Timing is stored as a single marker line inside a destination's free-text
notes, e.g.::

    [assistant-schedule] start=09:30 duration=90 confidence=85

The line is decoded into a Schedule at the storage boundary; business logic
only ever sees the decoded value plus the user-authored note text.
"""

import math
import re
from collections.abc import Sequence
from typing import Protocol

from backend.trip_actions.config import get_settings
from backend.trip_actions.models.itinerary import Schedule

_ISO_TIME_REGEX = re.compile(r"T(\d{2}):(\d{2})")
_BARE_TIME_REGEX = re.compile(r"^(\d{2}):(\d{2})(?::\d{2})?$")
_START_TOKEN_REGEX = re.compile(r"^(\d{2}):(\d{2})$")
_INT_TOKEN_REGEX = re.compile(r"^[+-]?\d+")

LAST_MINUTE_OF_DAY = 23 * 60 + 59


class Scheduled(Protocol):
    """Anything ordered within a day that may carry a start minute."""

    @property
    def id(self) -> str: ...

    @property
    def start_minute(self) -> int | None: ...


def marker() -> str:
    return get_settings().schedule_note_prefix


def minutes_from_time(value: str | None) -> int | None:
    """Minute of day from an ISO date-time or a bare HH:MM[:SS] string.

    The wall-clock time in the string is used as-is; no timezone conversion.
    """
    if not value:
        return None

    iso_match = _ISO_TIME_REGEX.search(value)
    if iso_match:
        return int(iso_match.group(1)) * 60 + int(iso_match.group(2))

    time_match = _BARE_TIME_REGEX.match(value)
    if time_match:
        return int(time_match.group(1)) * 60 + int(time_match.group(2))

    return None


def format_minutes(minutes: float) -> str:
    """Format a minute of day as HH:MM, clamped to the day."""
    normalized = max(0, min(LAST_MINUTE_OF_DAY, round(minutes)))
    return f"{normalized // 60:02d}:{normalized % 60:02d}"


def _is_marker_line(line: str, prefix: str) -> bool:
    return line.strip().startswith(prefix)


def strip(notes: str | None) -> str:
    """Remove every schedule marker line, leaving the user's text."""
    if not notes:
        return ""
    prefix = marker()
    return "\n".join(line for line in notes.split("\n") if not _is_marker_line(line, prefix))


def decode(notes: str | None) -> Schedule:
    """Decode the first marker line; malformed tokens are ignored."""
    if not notes:
        return Schedule()

    prefix = marker()
    schedule_line = next(
        (line.strip() for line in notes.split("\n") if _is_marker_line(line, prefix)),
        None,
    )
    if schedule_line is None:
        return Schedule()

    start_minute: int | None = None
    duration: int | None = None
    confidence: float | None = None

    for token in schedule_line[len(prefix) :].split():
        key, sep, raw_value = token.partition("=")
        if not sep or not raw_value:
            continue
        if key == "start":
            match = _START_TOKEN_REGEX.match(raw_value)
            if match:
                hours, mins = int(match.group(1)), int(match.group(2))
                if hours < 24 and mins < 60:
                    start_minute = hours * 60 + mins
        elif key == "duration":
            match = _INT_TOKEN_REGEX.match(raw_value)
            if match and int(match.group(0)) >= 0:
                duration = int(match.group(0))
        elif key == "confidence":
            match = _INT_TOKEN_REGEX.match(raw_value)
            if match and 0 <= int(match.group(0)) <= 100:
                confidence = int(match.group(0)) / 100

    return Schedule(start_minute=start_minute, duration_minutes=duration, confidence=confidence)


def encode(
    user_notes: str | None,
    start_minute: int | None = None,
    duration_minutes: int | None = None,
    confidence: float | None = None,
) -> str | None:
    """Build notes text with a fresh marker line prepended.

    Any prior marker line is stripped first. Without a start minute the item
    carries no annotation at all and only the user's text is returned.
    """
    user_text = strip(user_notes)

    if start_minute is None:
        return user_text or None

    tokens = [f"start={format_minutes(start_minute)}"]
    if duration_minutes is not None:
        tokens.append(f"duration={max(0, round(duration_minutes))}")
    if confidence is not None:
        tokens.append(f"confidence={max(0, min(100, round(confidence * 100)))}")

    schedule_line = f"{marker()} {' '.join(tokens)}"
    return f"{schedule_line}\n{user_text}" if user_text else schedule_line


def encode_schedule(user_notes: str | None, schedule: Schedule | None) -> str | None:
    if schedule is None:
        return encode(user_notes)
    return encode(
        user_notes,
        schedule.start_minute,
        schedule.duration_minutes,
        schedule.confidence,
    )


def split_notes(notes: str | None) -> tuple[str | None, Schedule | None]:
    """Split raw wire notes into (user text, schedule) at the storage boundary."""
    schedule = decode(notes)
    user_text = strip(notes) or None
    return user_text, (None if schedule.is_empty else schedule)


def insertion_index(
    items: Sequence[Scheduled],
    desired_start_minute: int | None,
    exclude_id: str | None = None,
) -> int:
    """Index at which an item starting at ``desired_start_minute`` belongs.

    Returns the first position whose item starts strictly later than the
    desired minute; items already at the same minute keep their place ahead of
    the new one. Untimed items count as +infinity. With no desired minute the
    item is appended. ``exclude_id`` removes the item being moved from the comparison.
    """
    snapshot = [item for item in items if exclude_id is None or item.id != exclude_id]

    if desired_start_minute is None:
        return len(snapshot)

    for index, item in enumerate(snapshot):
        existing = item.start_minute
        existing_minute = math.inf if existing is None else existing
        if desired_start_minute < existing_minute:
            return index

    return len(snapshot)
