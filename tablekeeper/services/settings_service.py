"""Restaurant settings: opening hours, holidays and booking options."""

import logging
from datetime import date, datetime, timedelta

from tablekeeper.database import SETTINGS_ID, Database, SettingsRecord, get_database
from tablekeeper.errors import ConflictError, InputValidationError
from tablekeeper.guardrails.input_validator import (
    BOOKING_WINDOW_DAYS,
    MAX_GUESTS,
    MIN_GUESTS,
    SLOT_MINUTES,
    InputValidator,
)
from tablekeeper.models.settings import (
    BookingOptions,
    GuestOption,
    SettingsRead,
    SettingsUpdate,
    TimeSlot,
)

logger = logging.getLogger(__name__)


def generate_time_slots(opening: str, closing: str) -> list[TimeSlot]:
    """Build 30-minute slots from opening through closing, inclusive.

    Args:
        opening: Opening time as HH:MM
        closing: Closing time as HH:MM

    Returns:
        Slots with an HH:MM value and a 12-hour label (e.g. "7:30 PM")
    """
    start = datetime.strptime(opening, "%H:%M")
    end = datetime.strptime(closing, "%H:%M")

    slots = []
    current = start
    while current <= end:
        label = current.strftime("%I:%M %p").lstrip("0")
        slots.append(TimeSlot(value=current.strftime("%H:%M"), label=label))
        current += timedelta(minutes=SLOT_MINUTES)
    return slots


def guest_options() -> list[GuestOption]:
    return [
        GuestOption(value=n, label=f"{n} {'guest' if n == 1 else 'guests'}")
        for n in range(MIN_GUESTS, MAX_GUESTS + 1)
    ]


class SettingsService:
    """Read and update the settings singleton."""

    def __init__(self, database: Database | None = None) -> None:
        self.database = database or get_database()

    @staticmethod
    def _load(session) -> SettingsRecord:
        record = session.get(SettingsRecord, SETTINGS_ID)
        if record is None:
            record = SettingsRecord(id=SETTINGS_ID, closed_dates=[])
            session.add(record)
            session.flush()
            logger.info("Created default restaurant settings")
        return record

    def ensure_settings(self) -> SettingsRead:
        """Create the singleton row with defaults if it is missing."""
        return self.get_settings()

    def get_settings(self) -> SettingsRead:
        with self.database.session() as session:
            return SettingsRead.model_validate(self._load(session))

    def update_settings(self, data: SettingsUpdate) -> SettingsRead:
        """Apply an admin update.

        Raises:
            InputValidationError: On malformed times/dates or closing before opening
        """
        with self.database.session() as session:
            record = self._load(session)

            opening = data.opening_time or record.opening_time
            closing = data.closing_time or record.closing_time
            for value in (opening, closing):
                is_valid, error = InputValidator.validate_time(value)
                if not is_valid:
                    raise InputValidationError(error)
            if closing <= opening:
                msg = "Closing time must be after opening time"
                raise InputValidationError(msg)

            record.opening_time = opening
            record.closing_time = closing

            if data.closed_dates is not None:
                for value in data.closed_dates:
                    is_valid, error = InputValidator.validate_date(value)
                    if not is_valid:
                        raise InputValidationError(error)
                record.closed_dates = list(dict.fromkeys(data.closed_dates))

            session.flush()
            logger.info(
                f"Settings updated: {opening}-{closing}, "
                f"{len(record.closed_dates)} closed date(s)"
            )
            return SettingsRead.model_validate(record)

    def add_closed_date(self, value: str) -> SettingsRead:
        is_valid, error = InputValidator.validate_date(value)
        if not is_valid:
            raise InputValidationError(error)

        with self.database.session() as session:
            record = self._load(session)
            if value in record.closed_dates:
                msg = f"{value} is already added"
                raise ConflictError(msg)

            # Reassign so the JSON column is flagged dirty
            record.closed_dates = [*record.closed_dates, value]
            session.flush()
            logger.info(f"Closed date added: {value}")
            return SettingsRead.model_validate(record)

    def remove_closed_date(self, value: str) -> SettingsRead:
        with self.database.session() as session:
            record = self._load(session)
            record.closed_dates = [d for d in record.closed_dates if d != value]
            session.flush()
            logger.info(f"Closed date removed: {value}")
            return SettingsRead.model_validate(record)

    def booking_options(self, today: date | None = None) -> BookingOptions:
        """Everything the public booking form needs."""
        settings = self.get_settings()
        first_day = today or date.today()
        return BookingOptions(
            min_date=first_day.isoformat(),
            max_date=(first_day + timedelta(days=BOOKING_WINDOW_DAYS)).isoformat(),
            opening_time=settings.opening_time,
            closing_time=settings.closing_time,
            closed_dates=sorted(settings.closed_dates),
            time_slots=generate_time_slots(settings.opening_time, settings.closing_time),
            guest_options=guest_options(),
        )
