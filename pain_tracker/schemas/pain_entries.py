"""Pain entry schemas for request/response validation."""

from datetime import date as date_type
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

TimeRange = Literal["7d", "30d", "90d", "custom"]


class PainEntryCreate(BaseModel):
    """New pain entry form."""

    pain_level: int = Field(default=5, ge=0, le=10)
    date: date_type = Field(default_factory=date_type.today)
    notes: str = ""


class PainEntryResponse(BaseModel):
    """Pain entry as stored in Firestore."""

    id: str
    user_id: str
    pain_level: int
    date: date_type
    notes: str
    created_at: datetime | None = None


class PainEntryList(BaseModel):
    """A user's entries, newest observation first."""

    entries: list[PainEntryResponse]
    total: int


class TrendPointResponse(BaseModel):
    """One chart point: the rounded mean pain level of a single day."""

    date: date_type
    label: str
    pain_level: float


class PainTrendResponse(BaseModel):
    """Daily-average series for the resolved window."""

    range: TimeRange
    start: date_type
    end: date_type
    points: list[TrendPointResponse]
