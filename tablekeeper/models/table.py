"""Restaurant table data models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class TableStatus(str, Enum):
    """Occupancy status of a table."""

    AVAILABLE = "available"
    RESERVED = "reserved"
    OCCUPIED = "occupied"


class TableCreate(BaseModel):
    """New table details."""

    number: int = Field(..., gt=0, description="Table number shown to staff")
    capacity: int = Field(..., gt=0, description="Number of seats")


class TableUpdate(BaseModel):
    """Editable table fields."""

    capacity: int | None = Field(None, gt=0, description="Number of seats")
    status: TableStatus | None = Field(None, description="Occupancy status")


class TableRead(BaseModel):
    """Table as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    number: int
    capacity: int
    status: TableStatus

    def describe(self) -> str:
        """Human-readable label used in confirmation emails."""
        return f"Table {self.number} ({self.capacity} seats)"
