"""Reservation lifecycle: booking, table assignment and status changes.

Every status change goes through ``ALLOWED_TRANSITIONS``. Reservation and
table writes for one action share a single transaction; guest emails are
sent only after that transaction has committed.
"""

import logging
from collections.abc import Callable
from datetime import date

from sqlalchemy import or_, select

from tablekeeper.database import Database, ReservationRecord, TableRecord, get_database
from tablekeeper.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    NotificationError,
)
from tablekeeper.guardrails.input_validator import InputValidator
from tablekeeper.models.reservation import (
    LifecycleResult,
    ReservationCreate,
    ReservationRead,
    ReservationStatus,
    ReservationUpdate,
)
from tablekeeper.models.settings import SettingsRead
from tablekeeper.models.table import TableRead, TableStatus
from tablekeeper.services.email_service import EmailService
from tablekeeper.services.settings_service import SettingsService
from tablekeeper.services.table_service import ACTIVE_STATUSES, HOLDING_STATUSES

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset(
        {ReservationStatus.ACCEPTED, ReservationStatus.CANCELLED}
    ),
    ReservationStatus.ACCEPTED: frozenset(
        {ReservationStatus.ARRIVED, ReservationStatus.CANCELLED}
    ),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.ARRIVED: frozenset(),
}

NO_TABLE_MESSAGE = "Please assign a table before confirming this reservation."
EMAIL_WARNING = "Reservation updated but the email could not be sent"


def check_transition(current: ReservationStatus, target: ReservationStatus) -> bool:
    """Validate a status change.

    Returns:
        False when the reservation is already in ``target`` (nothing to do),
        True when the change is allowed

    Raises:
        InvalidTransitionError: If the change is not in the transition table
    """
    if current is target:
        return False
    if target not in ALLOWED_TRANSITIONS[current]:
        msg = f"Cannot change a {current.value} reservation to {target.value}"
        raise InvalidTransitionError(msg)
    return True


class ReservationService:
    """Service for the reservation lifecycle.

    This service handles:
    - Public booking submissions (always stored as pending, no table)
    - Table assignment with double-booking protection
    - Confirm / cancel / mark-arrived transitions and their table side effects
    - Staff edits and deletion
    - Best-effort confirmation and rejection emails
    """

    def __init__(
        self,
        database: Database | None = None,
        email_service: EmailService | None = None,
        settings_service: SettingsService | None = None,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self.database = database or get_database()
        self.email_service = email_service or EmailService()
        self.settings_service = settings_service or SettingsService(self.database)
        self.clock = clock

    # ---------- Helpers ----------

    @staticmethod
    def _load(session, reservation_id: str) -> ReservationRecord:
        reservation = session.get(ReservationRecord, reservation_id)
        if reservation is None:
            msg = f"Reservation {reservation_id} not found"
            raise NotFoundError(msg)
        return reservation

    @staticmethod
    def _load_table(session, table_id: int) -> TableRecord:
        table = session.get(TableRecord, table_id)
        if table is None:
            msg = f"Table {table_id} not found"
            raise NotFoundError(msg)
        return table

    @staticmethod
    def _check_double_booking(
        session,
        reservation_id: str,
        table_id: int,
        booking_date: str,
        booking_time: str,
    ) -> None:
        clash = session.scalar(
            select(ReservationRecord).where(
                ReservationRecord.id != reservation_id,
                ReservationRecord.table_id == table_id,
                ReservationRecord.date == booking_date,
                ReservationRecord.time == booking_time,
                ReservationRecord.status.in_(ACTIVE_STATUSES),
            )
        )
        if clash is not None:
            msg = f"This table is already booked on {booking_date} at {booking_time}"
            raise ConflictError(msg)

    @staticmethod
    def _move_table(session, reservation: ReservationRecord, table: TableRecord) -> None:
        """Point the reservation at ``table``, freeing the previous one."""
        previous_id = reservation.table_id
        if previous_id is not None and previous_id != table.id:
            previous = session.get(TableRecord, previous_id)
            if previous is not None:
                previous.status = TableStatus.AVAILABLE
                logger.info(f"Table {previous.number} freed")

        reservation.table_id = table.id
        table.status = TableStatus.RESERVED

    def _notify(self, send, *args) -> tuple[bool, str | None]:
        try:
            send(*args)
        except NotificationError as e:
            logger.warning(f"Notification failed: {e.message}")
            return False, EMAIL_WARNING
        return True, None

    def _settings(self) -> SettingsRead:
        return self.settings_service.get_settings()

    # ---------- Queries ----------

    def list_reservations(
        self, search: str | None = None, status: ReservationStatus | None = None
    ) -> list[ReservationRead]:
        query = select(ReservationRecord)
        if status is not None:
            query = query.where(ReservationRecord.status == status)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.where(
                or_(
                    ReservationRecord.first_name.ilike(pattern),
                    ReservationRecord.last_name.ilike(pattern),
                    (ReservationRecord.first_name + " " + ReservationRecord.last_name).ilike(pattern),
                    ReservationRecord.email.ilike(pattern),
                )
            )
        query = query.order_by(ReservationRecord.date, ReservationRecord.time)

        with self.database.session() as session:
            return [ReservationRead.model_validate(r) for r in session.scalars(query)]

    def get_reservation(self, reservation_id: str) -> ReservationRead:
        with self.database.session() as session:
            return ReservationRead.model_validate(self._load(session, reservation_id))

    # ---------- Booking ----------

    def create_reservation(self, data: ReservationCreate) -> ReservationRead:
        """Store a guest booking as pending with no table.

        Raises:
            InputValidationError: If a field fails validation
            PersistenceError: If the insert fails
        """
        values = InputValidator.validate_booking(data, self._settings(), self.clock())

        with self.database.session() as session:
            reservation = ReservationRecord(
                **values, status=ReservationStatus.PENDING, table_id=None
            )
            session.add(reservation)
            session.flush()
            result = ReservationRead.model_validate(reservation)

        logger.info(
            f"Reservation {result.id} created for {result.full_name} "
            f"on {result.date} at {result.time} ({result.guests} guests)"
        )
        return result

    # ---------- Staff actions ----------

    def assign_table(self, reservation_id: str, table_id: int) -> ReservationRead:
        """Assign a table, reserving it and freeing any previously assigned one.

        Raises:
            NotFoundError: If the reservation or table does not exist
            InvalidTransitionError: If the reservation is cancelled or arrived
            ConflictError: If another active reservation holds the table then
        """
        with self.database.session() as session:
            reservation = self._load(session, reservation_id)
            if not ALLOWED_TRANSITIONS[reservation.status]:
                msg = f"Cannot assign a table to a {reservation.status.value} reservation"
                raise InvalidTransitionError(msg)

            table = self._load_table(session, table_id)
            self._check_double_booking(
                session, reservation.id, table.id, reservation.date, reservation.time
            )
            self._move_table(session, reservation, table)
            session.flush()
            logger.info(f"Table {table.number} assigned to reservation {reservation.id}")
            return ReservationRead.model_validate(reservation)

    def confirm(self, reservation_id: str) -> LifecycleResult:
        """Accept a reservation that has a table, then email the guest."""
        with self.database.session() as session:
            reservation = self._load(session, reservation_id)
            if not check_transition(reservation.status, ReservationStatus.ACCEPTED):
                return LifecycleResult(
                    reservation=ReservationRead.model_validate(reservation)
                )
            if reservation.table_id is None:
                raise InvalidTransitionError(NO_TABLE_MESSAGE)

            table = self._load_table(session, reservation.table_id)
            reservation.status = ReservationStatus.ACCEPTED
            table.status = TableStatus.RESERVED
            session.flush()
            result = ReservationRead.model_validate(reservation)
            table_read = TableRead.model_validate(table)

        logger.info(f"Reservation {result.id} confirmed at table {table_read.number}")
        email_sent, warning = self._notify(
            self.email_service.send_confirmation,
            result.email,
            result.first_name,
            result.last_name,
            result.date,
            result.time,
            table_read.describe(),
        )
        return LifecycleResult(reservation=result, email_sent=email_sent, warning=warning)

    def cancel(self, reservation_id: str) -> LifecycleResult:
        """Cancel a reservation, free its table and email the guest."""
        with self.database.session() as session:
            reservation = self._load(session, reservation_id)
            if not check_transition(reservation.status, ReservationStatus.CANCELLED):
                return LifecycleResult(
                    reservation=ReservationRead.model_validate(reservation)
                )

            reservation.status = ReservationStatus.CANCELLED
            if reservation.table_id is not None:
                table = session.get(TableRecord, reservation.table_id)
                if table is not None:
                    table.status = TableStatus.AVAILABLE
            session.flush()
            result = ReservationRead.model_validate(reservation)

        logger.info(f"Reservation {result.id} cancelled")
        email_sent, warning = self._notify(
            self.email_service.send_rejection,
            result.email,
            result.full_name,
            result.date,
            result.time,
        )
        return LifecycleResult(reservation=result, email_sent=email_sent, warning=warning)

    def mark_arrived(self, reservation_id: str) -> LifecycleResult:
        """Seat an accepted reservation; its table becomes occupied."""
        with self.database.session() as session:
            reservation = self._load(session, reservation_id)
            if check_transition(reservation.status, ReservationStatus.ARRIVED):
                reservation.status = ReservationStatus.ARRIVED
                if reservation.table_id is not None:
                    table = self._load_table(session, reservation.table_id)
                    table.status = TableStatus.OCCUPIED
                session.flush()
                logger.info(f"Reservation {reservation.id} marked as arrived")
            return LifecycleResult(reservation=ReservationRead.model_validate(reservation))

    def update_reservation(self, reservation_id: str, data: ReservationUpdate) -> ReservationRead:
        """Edit date, time, party size or table of a reservation.

        Raises:
            InvalidTransitionError: For arrived reservations, or a table change
                on a cancelled one
            InputValidationError: If the new schedule is invalid
            ConflictError: If the resulting table slot is already taken
        """
        settings = self._settings()

        with self.database.session() as session:
            reservation = self._load(session, reservation_id)
            if reservation.status is ReservationStatus.ARRIVED:
                msg = "Arrived reservations cannot be edited"
                raise InvalidTransitionError(msg)

            new_date = data.date or reservation.date
            new_time = data.time or reservation.time
            new_guests = data.guests if data.guests is not None else reservation.guests
            if (new_date, new_time, new_guests) != (
                reservation.date,
                reservation.time,
                reservation.guests,
            ):
                InputValidator.validate_schedule_change(
                    settings, new_date, new_time, new_guests
                )

            table_changed = data.table_id is not None and data.table_id != reservation.table_id
            if table_changed and reservation.status is ReservationStatus.CANCELLED:
                msg = "Cannot change the table of a cancelled reservation"
                raise InvalidTransitionError(msg)

            target_table_id = data.table_id if table_changed else reservation.table_id
            if target_table_id is not None and reservation.status.is_active:
                self._check_double_booking(
                    session, reservation.id, target_table_id, new_date, new_time
                )

            if table_changed:
                self._move_table(session, reservation, self._load_table(session, data.table_id))

            reservation.date = new_date
            reservation.time = new_time
            reservation.guests = new_guests
            session.flush()
            logger.info(f"Reservation {reservation.id} updated")
            return ReservationRead.model_validate(reservation)

    def delete_reservation(self, reservation_id: str) -> None:
        """Remove a reservation, freeing its table if it was pending or accepted."""
        with self.database.session() as session:
            reservation = self._load(session, reservation_id)
            if reservation.status in HOLDING_STATUSES and reservation.table_id is not None:
                table = session.get(TableRecord, reservation.table_id)
                if table is not None:
                    table.status = TableStatus.AVAILABLE
            session.delete(reservation)
            logger.info(f"Reservation {reservation_id} deleted")
