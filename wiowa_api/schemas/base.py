"""Shared pieces for API response models."""
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer

from wiowa_api.utils.datetime_helpers import ensure_utc


def to_utc_iso(value: datetime) -> str:
    """ISO 8601 with a ``Z`` suffix; naive values from SQLite are UTC."""
    return ensure_utc(value).isoformat().replace("+00:00", "Z")


UTCDateTime = Annotated[datetime, PlainSerializer(to_utc_iso, return_type=str, when_used="json")]


class ORMResponse(BaseModel):
    """Response model read straight from an ORM row."""

    model_config = ConfigDict(from_attributes=True)


class MessageResponse(BaseModel):
    message: str
