"""Data models for restaurant reservations."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ReservationStatus(str, Enum):
    """Lifecycle status of a reservation."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    CANCELLED = "cancelled"
    ARRIVED = "arrived"

    @property
    def is_active(self) -> bool:
        """True while the reservation still holds (or may hold) a table."""
        return self is not ReservationStatus.CANCELLED


class ReservationCreate(BaseModel):
    """Guest-submitted booking details."""

    name: str | None = Field(None, description="Full name (split into first/last)")
    first_name: str | None = Field(None, description="Guest first name")
    last_name: str | None = Field(None, description="Guest last name")
    email: str = Field(..., description="Guest email address")
    phone: str | None = Field(None, description="Guest phone number")
    date: str = Field(..., description="Requested date (YYYY-MM-DD)")
    time: str = Field(..., description="Requested time (HH:MM)")
    guests: int = Field(..., description="Party size")
    remark: str | None = Field(None, description="Free-text remark")


class ReservationUpdate(BaseModel):
    """Staff edit of a reservation."""

    date: str | None = None
    time: str | None = None
    guests: int | None = None
    table_id: int | None = None


class AssignTableRequest(BaseModel):
    """Table assignment payload."""

    table_id: int = Field(..., description="Table to assign")


class ReservationRead(BaseModel):
    """Reservation as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    date: str
    time: str
    guests: int
    remark: str | None = None
    status: ReservationStatus
    table_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class LifecycleResult(BaseModel):
    """Outcome of a staff action on a reservation."""

    reservation: ReservationRead
    email_sent: bool | None = Field(
        None, description="Whether the notification went out (None if none was due)"
    )
    warning: str | None = Field(None, description="Non-blocking warning for the UI")
