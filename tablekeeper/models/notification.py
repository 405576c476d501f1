"""Notification and auth request models."""

from pydantic import BaseModel, Field

from tablekeeper.models.employee import EmployeeRead


class ConfirmationEmailRequest(BaseModel):
    """Payload of the confirmation email endpoint."""

    to: str = Field(..., description="Recipient address")
    first_name: str
    last_name: str = ""
    date: str
    time: str
    table: str = Field(..., description="Assigned table description")


class RejectionEmailRequest(BaseModel):
    """Payload of the rejection email endpoint."""

    to: str = Field(..., description="Recipient address")
    name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    date: str
    time: str

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


class MagicLinkRequest(BaseModel):
    email: str


class TokenExchangeRequest(BaseModel):
    token: str


class SessionResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    employee: EmployeeRead
