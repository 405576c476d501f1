"""Tests for statistics and the dashboard overview."""

from datetime import date, timedelta

import pytest

from tablekeeper.database import ReservationRecord
from tablekeeper.errors import InputValidationError
from tablekeeper.models import (
    DailyStat,
    EmployeeCreate,
    EmployeeRole,
    ReservationStatus,
    TableCreate,
)
from tablekeeper.services.auth_service import RequestContext
from tablekeeper.services.stats_service import growth_rate, round_half_up, week_of_year

TODAY = date(2025, 6, 30)


def add_reservations(database, *entries):
    """Insert (date, status) pairs directly."""
    with database.session() as session:
        for day, status in entries:
            session.add(
                ReservationRecord(
                    first_name="Guest",
                    last_name="Test",
                    email="guest@x.com",
                    date=day,
                    time="19:00",
                    guests=2,
                    status=status,
                )
            )


class TestHelpers:
    """Tests for rounding, week numbers and growth."""

    def test_round_half_up(self):
        assert round_half_up(2.25, 1) == 2.3
        assert round_half_up(2.5) == 3
        assert round_half_up(-2.5) == -2

    def test_week_of_year(self):
        # 2025-01-01 is a Wednesday, so the first Sunday starts week 2
        assert week_of_year(date(2025, 1, 1)) == 1
        assert week_of_year(date(2025, 1, 4)) == 1
        assert week_of_year(date(2025, 1, 5)) == 2

    def test_growth_needs_more_than_two_weeks(self):
        daily = [DailyStat(date=f"2025-06-{d:02d}", count=1) for d in range(1, 15)]

        assert growth_rate(daily) == 0.0

    def test_growth_rate(self):
        daily = [DailyStat(date=f"2025-06-{d:02d}", count=1) for d in range(1, 9)]
        daily += [DailyStat(date=f"2025-06-{d:02d}", count=2) for d in range(9, 16)]

        assert growth_rate(daily) == 100.0


class TestStatsService:
    """Tests for StatsService.compute."""

    def test_rejects_unsupported_range(self, stats_service):
        with pytest.raises(InputValidationError):
            stats_service.compute(14, today=TODAY)

    def test_empty_window(self, stats_service):
        report = stats_service.compute(7, today=TODAY)

        assert report.total_reservations == 0
        assert report.average_daily == 0.0
        assert report.peak_day is None
        assert report.daily == []

    def test_aggregates(self, database, stats_service):
        add_reservations(
            database,
            ("2025-06-28", ReservationStatus.PENDING),
            ("2025-06-28", ReservationStatus.ACCEPTED),
            ("2025-06-29", ReservationStatus.PENDING),
            ("2025-06-10", ReservationStatus.CANCELLED),  # outside the 7-day window
        )

        report = stats_service.compute(7, today=TODAY)

        assert report.start_date == "2025-06-23"
        assert report.end_date == "2025-06-30"
        assert report.total_reservations == 3
        assert [(d.date, d.count) for d in report.daily] == [("2025-06-28", 2), ("2025-06-29", 1)]
        assert report.average_daily == 1.5
        assert report.peak_day == "2025-06-28"

        by_status = {s.status: (s.count, s.percentage) for s in report.by_status}
        assert by_status == {"pending": (2, 67), "accepted": (1, 33)}

    def test_window_is_inclusive(self, database, stats_service):
        start = TODAY - timedelta(days=30)
        add_reservations(
            database,
            (start.isoformat(), ReservationStatus.ACCEPTED),
            (TODAY.isoformat(), ReservationStatus.ACCEPTED),
        )

        assert stats_service.compute(30, today=TODAY).total_reservations == 2

    def test_peak_day_prefers_earliest_tie(self, database, stats_service):
        add_reservations(
            database,
            ("2025-06-25", ReservationStatus.PENDING),
            ("2025-06-27", ReservationStatus.PENDING),
        )

        assert stats_service.compute(7, today=TODAY).peak_day == "2025-06-25"

    def test_weekly_counts(self, database, stats_service):
        add_reservations(
            database,
            ("2025-06-28", ReservationStatus.PENDING),  # Saturday
            ("2025-06-29", ReservationStatus.PENDING),  # Sunday, next week
        )

        weekly = stats_service.compute(7, today=TODAY).weekly

        assert [w.count for w in weekly] == [1, 1]
        assert weekly[1].week == weekly[0].week + 1


class TestOverview:
    """Tests for the dashboard landing summary."""

    def test_overview(self, database, stats_service, table_service, employee_service, config):
        employee_service.bootstrap_admin(config.admin_email, "Ada Admin")
        employee_service.create_employee(EmployeeCreate(name="Walter White", email="walter@madot.test"))
        table_service.create_table(TableCreate(number=1, capacity=2))
        add_reservations(
            database,
            (TODAY.isoformat(), ReservationStatus.ACCEPTED),
            (TODAY.isoformat(), ReservationStatus.PENDING),
        )
        context = RequestContext(
            employee_id=1, email=config.admin_email, name="Ada Admin", role=EmployeeRole.ADMIN
        )

        overview = stats_service.overview(context, today=TODAY)

        assert overview.employee_name == "Ada Admin"
        assert overview.employee_role == EmployeeRole.ADMIN
        assert len(overview.today_reservations) == 1
        assert overview.total_tables == 1
        assert overview.reserved_tables == 0
        assert overview.staff_count == 1
