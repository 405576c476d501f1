"""Tests for the table inventory."""

import pytest

from tablekeeper.errors import ConflictError, NotFoundError
from tablekeeper.models import ReservationStatus, TableCreate, TableStatus, TableUpdate


class TestTableService:
    """Tests for TableService CRUD."""

    def test_create_defaults_to_available(self, table_service):
        table = table_service.create_table(TableCreate(number=1, capacity=2))

        assert table.status == TableStatus.AVAILABLE
        assert table.describe() == "Table 1 (2 seats)"

    def test_duplicate_number_rejected(self, table_service, table_four):
        with pytest.raises(ConflictError):
            table_service.create_table(TableCreate(number=4, capacity=8))

    def test_list_ordered_by_number(self, table_service):
        for number in (7, 2, 5):
            table_service.create_table(TableCreate(number=number, capacity=4))

        assert [t.number for t in table_service.list_tables()] == [2, 5, 7]

    def test_update_capacity_and_status(self, table_service, table_four):
        updated = table_service.update_table(
            table_four.id, TableUpdate(capacity=6, status=TableStatus.OCCUPIED)
        )

        assert updated.capacity == 6
        assert updated.status == TableStatus.OCCUPIED

    def test_update_missing_table(self, table_service):
        with pytest.raises(NotFoundError):
            table_service.update_table(42, TableUpdate(capacity=2))

    def test_delete_unused_table(self, table_service, table_four):
        table_service.delete_table(table_four.id)

        assert table_service.list_tables() == []

    def test_delete_referenced_by_active_reservation(
        self, table_service, reservation_service, table_four, jane_booking
    ):
        """Test that a table held by an active reservation cannot be deleted."""
        reservation = reservation_service.create_reservation(jane_booking)
        reservation_service.assign_table(reservation.id, table_four.id)

        with pytest.raises(ConflictError):
            table_service.delete_table(table_four.id)
        assert table_service.get_table(table_four.id).number == 4

    def test_delete_clears_cancelled_references(
        self, table_service, reservation_service, table_four, jane_booking
    ):
        """Test that cancelled reservations lose their reference when the table goes."""
        reservation = reservation_service.create_reservation(jane_booking)
        reservation_service.assign_table(reservation.id, table_four.id)
        reservation_service.cancel(reservation.id)

        table_service.delete_table(table_four.id)

        assert reservation_service.get_reservation(reservation.id).table_id is None

    def test_delete_after_guests_arrived(
        self, table_service, reservation_service, table_four, jane_booking
    ):
        """Test that arrived reservations are history and do not pin the table."""
        reservation = reservation_service.create_reservation(jane_booking)
        reservation_service.assign_table(reservation.id, table_four.id)
        reservation_service.confirm(reservation.id)
        reservation_service.mark_arrived(reservation.id)

        table_service.delete_table(table_four.id)

        assert table_service.list_tables() == []
        arrived = reservation_service.get_reservation(reservation.id)
        assert arrived.status == ReservationStatus.ARRIVED
        assert arrived.table_id is None
