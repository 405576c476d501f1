"""Restaurant settings data models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_OPENING_TIME = "10:00"
DEFAULT_CLOSING_TIME = "22:00"


class SettingsRead(BaseModel):
    """Opening hours and holidays."""

    model_config = ConfigDict(from_attributes=True)

    opening_time: str = DEFAULT_OPENING_TIME
    closing_time: str = DEFAULT_CLOSING_TIME
    closed_dates: list[str] = Field(default_factory=list)
    updated_at: datetime | None = None


class SettingsUpdate(BaseModel):
    """Admin update of the settings singleton."""

    opening_time: str | None = None
    closing_time: str | None = None
    closed_dates: list[str] | None = None


class ClosedDateRequest(BaseModel):
    date: str = Field(..., description="Holiday date (YYYY-MM-DD)")


class TimeSlot(BaseModel):
    value: str
    label: str


class GuestOption(BaseModel):
    value: int
    label: str


class BookingOptions(BaseModel):
    """Everything the public booking form needs to render."""

    opening_time: str
    closing_time: str
    min_date: str = Field(..., description="First bookable date (today)")
    max_date: str = Field(..., description="Last bookable date")
    closed_dates: list[str]
    time_slots: list[TimeSlot]
    guest_options: list[GuestOption]
