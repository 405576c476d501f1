"""Statistics report models."""

from pydantic import BaseModel, Field

from tablekeeper.models.employee import EmployeeRole
from tablekeeper.models.reservation import ReservationRead


class DailyStat(BaseModel):
    date: str
    count: int


class WeeklyStat(BaseModel):
    week: int
    count: int


class StatusStat(BaseModel):
    status: str
    count: int
    percentage: int


class StatsReport(BaseModel):
    """Aggregated reservation figures for a trailing window."""

    range_days: int = Field(..., description="Length of the trailing window")
    start_date: str
    end_date: str
    total_reservations: int
    average_daily: float = Field(..., description="Reservations per active day")
    peak_day: str | None = Field(None, description="Date with most reservations")
    growth_rate: float = Field(0.0, description="Last vs first week, percent")
    daily: list[DailyStat]
    weekly: list[WeeklyStat]
    by_status: list[StatusStat]


class DashboardOverview(BaseModel):
    """Landing-page summary for a signed-in staff member."""

    employee_name: str
    employee_role: EmployeeRole
    today: str
    today_reservations: list[ReservationRead] = Field(
        default_factory=list, description="Accepted reservations for today, by time"
    )
    reserved_tables: int
    total_tables: int
    staff_count: int = Field(..., description="Employees excluding admins")
