"""Reservation statistics and the dashboard overview."""

import logging
import math
from collections import Counter
from datetime import date, timedelta

from sqlalchemy import func, select

from tablekeeper.database import (
    Database,
    EmployeeRecord,
    ReservationRecord,
    TableRecord,
    get_database,
)
from tablekeeper.errors import InputValidationError
from tablekeeper.models.employee import EmployeeRole
from tablekeeper.models.reservation import ReservationRead, ReservationStatus
from tablekeeper.models.stats import (
    DailyStat,
    DashboardOverview,
    StatsReport,
    StatusStat,
    WeeklyStat,
)
from tablekeeper.models.table import TableStatus
from tablekeeper.services.auth_service import RequestContext

logger = logging.getLogger(__name__)

ALLOWED_RANGES = (7, 30, 90, 365)
GROWTH_MIN_DAYS = 14
GROWTH_WINDOW = 7


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves towards +infinity, like JavaScript's Math.round."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def week_of_year(day: date) -> int:
    """Week number where week 1 is the week containing January 1st (weeks start Sunday)."""
    first_jan = date(day.year, 1, 1)
    days = (day - first_jan).days
    first_weekday = (first_jan.weekday() + 1) % 7  # Sunday = 0
    return math.ceil((days + first_weekday + 1) / 7)


def growth_rate(daily: list[DailyStat]) -> float:
    """Percent change between the first and last seven daily entries."""
    if len(daily) <= GROWTH_MIN_DAYS:
        return 0.0
    first_week = sum(d.count for d in daily[:GROWTH_WINDOW])
    last_week = sum(d.count for d in daily[-GROWTH_WINDOW:])
    if first_week == 0:
        return 0.0
    return round_half_up((last_week - first_week) / first_week * 100, 1)


class StatsService:
    """Read-side aggregation, recomputed from raw rows on every call."""

    def __init__(self, database: Database | None = None) -> None:
        self.database = database or get_database()

    def compute(self, range_days: int = 30, today: date | None = None) -> StatsReport:
        """Aggregate reservations dated within the last ``range_days`` days.

        Args:
            range_days: One of 7, 30, 90 or 365
            today: Reference date, defaults to the current date

        Returns:
            StatsReport with daily, weekly and per-status breakdowns

        Raises:
            InputValidationError: If range_days is not a supported window
        """
        if range_days not in ALLOWED_RANGES:
            msg = f"range_days must be one of {', '.join(map(str, ALLOWED_RANGES))}"
            raise InputValidationError(msg)

        end = today or date.today()
        start = end - timedelta(days=range_days)

        with self.database.session() as session:
            rows = session.execute(
                select(ReservationRecord.date, ReservationRecord.status).where(
                    ReservationRecord.date >= start.isoformat(),
                    ReservationRecord.date <= end.isoformat(),
                )
            ).all()

        total = len(rows)
        per_day = Counter(row.date for row in rows)
        daily = [DailyStat(date=d, count=per_day[d]) for d in sorted(per_day)]

        peak_day = None
        if daily:
            # First maximum in date order
            peak_day = max(daily, key=lambda d: d.count).date

        per_week = Counter(week_of_year(date.fromisoformat(row.date)) for row in rows)
        weekly = [WeeklyStat(week=w, count=per_week[w]) for w in sorted(per_week)]

        per_status = Counter(row.status.value for row in rows)
        by_status = [
            StatusStat(
                status=status,
                count=count,
                percentage=int(round_half_up(count / total * 100)),
            )
            for status, count in per_status.items()
        ]

        report = StatsReport(
            range_days=range_days,
            start_date=start.isoformat(),
            end_date=end.isoformat(),
            total_reservations=total,
            average_daily=round_half_up(total / len(daily), 1) if daily else 0.0,
            peak_day=peak_day,
            growth_rate=growth_rate(daily),
            daily=daily,
            weekly=weekly,
            by_status=by_status,
        )
        logger.info(
            f"Stats computed for {start.isoformat()}..{end.isoformat()}: {total} reservations"
        )
        return report

    def overview(self, context: RequestContext, today: date | None = None) -> DashboardOverview:
        day = (today or date.today()).isoformat()

        with self.database.session() as session:
            reservations = session.scalars(
                select(ReservationRecord)
                .where(
                    ReservationRecord.date == day,
                    ReservationRecord.status == ReservationStatus.ACCEPTED,
                )
                .order_by(ReservationRecord.time)
            )
            today_reservations = [ReservationRead.model_validate(r) for r in reservations]

            total_tables = session.scalar(select(func.count()).select_from(TableRecord))
            reserved_tables = session.scalar(
                select(func.count())
                .select_from(TableRecord)
                .where(TableRecord.status == TableStatus.RESERVED)
            )
            staff_count = session.scalar(
                select(func.count())
                .select_from(EmployeeRecord)
                .where(EmployeeRecord.role != EmployeeRole.ADMIN)
            )

        return DashboardOverview(
            employee_name=context.name,
            employee_role=context.role,
            today=day,
            today_reservations=today_reservations,
            reserved_tables=reserved_tables or 0,
            total_tables=total_tables or 0,
            staff_count=staff_count or 0,
        )
