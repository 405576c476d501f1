"""Employee data models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EmployeeRole(str, Enum):
    """Staff role, used for page-level access control."""

    WAITER = "waiter"
    MANAGER = "manager"
    ADMIN = "admin"


class EmployeeStatus(str, Enum):
    """Account status of an employee."""

    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"


class EmployeeCreate(BaseModel):
    """New employee details."""

    name: str = Field(..., description="Full name")
    email: str = Field(..., description="Login email")
    role: EmployeeRole = Field(default=EmployeeRole.WAITER, description="Staff role")


class EmployeeUpdate(BaseModel):
    """Editable employee fields."""

    name: str | None = None
    email: str | None = None
    role: EmployeeRole | None = None
    status: EmployeeStatus | None = None


class EmployeeRead(BaseModel):
    """Employee as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: EmployeeRole
    status: EmployeeStatus
    created_at: datetime | None = None


class EmployeeCreateResult(BaseModel):
    """Outcome of adding an employee."""

    employee: EmployeeRead
    invite_sent: bool
    message: str
