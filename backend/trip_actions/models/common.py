"""Common types shared across all models."""

import re
from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, HttpUrl
from pydantic.alias_generators import to_camel

ISO_DATE_TIME_REGEX = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(:\d{2})?(?:\.\d{1,6})?(?:Z|[+-]\d{2}:\d{2})?$"
)
HH_MM_TIME_REGEX = re.compile(r"^\d{2}:\d{2}(?::\d{2})?$")
UUID_REGEX = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)
TEMP_ID_REGEX = re.compile(r"^temp[_-][a-zA-Z0-9_-]+$")


def _validate_time_string(value: str) -> str:
    if HH_MM_TIME_REGEX.match(value):
        hours, minutes = int(value[0:2]), int(value[3:5])
        if hours < 24 and minutes < 60:
            return value
        raise ValueError("HH:MM time is out of range")
    if ISO_DATE_TIME_REGEX.match(value):
        try:
            datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise ValueError("Expected ISO8601 datetime string or HH:MM time") from e
        return value
    raise ValueError("Expected ISO8601 datetime string or HH:MM time")


def _validate_item_id(value: str) -> str:
    if UUID_REGEX.match(value) or TEMP_ID_REGEX.match(value):
        return value
    raise ValueError("Expected uuid or temp_* identifier")


NonEmptyStr = Annotated[str, Field(min_length=1)]
TimeString = Annotated[str, Field(min_length=1), AfterValidator(_validate_time_string)]
ItemId = Annotated[str, Field(min_length=1), AfterValidator(_validate_item_id)]

Longitude = Annotated[float, Field(ge=-180, le=180)]
Latitude = Annotated[float, Field(ge=-90, le=90)]
# [longitude, latitude], matching GeoJSON ordering
Coordinates = tuple[Longitude, Latitude]


class WireModel(BaseModel):
    """Base for payloads crossing the assistant boundary (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class LocationLink(WireModel):
    """External link attached to a destination or base location."""

    label: str = Field(..., min_length=1, max_length=48)
    url: HttpUrl
