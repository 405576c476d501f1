"""Server-side validation of booking and staff input."""

import logging
import re
from datetime import date, datetime, timedelta

from tablekeeper.errors import InputValidationError
from tablekeeper.models.reservation import ReservationCreate
from tablekeeper.models.settings import SettingsRead

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 50
MIN_GUESTS = 1
MAX_GUESTS = 10
MAX_REMARK_LENGTH = 500
BOOKING_WINDOW_DAYS = 30
SLOT_MINUTES = 30

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")
TIME_PATTERN = re.compile(r"([01]\d|2[0-3]):[0-5]\d")
PHONE_PATTERN = re.compile(r"^\+?\d{7,15}$")

# Markup and script injection in free-text fields
BLOCKED_PATTERNS = [
    r"<script",
    r"javascript:",
    r"onclick",
    r"onerror",
    r"<iframe",
]

CLOSED_DATE_MESSAGE = (
    "Sorry, the restaurant is closed on this date. Please choose another date."
)


class InputValidator:
    """Field-level checks.

    Each ``validate_*`` method returns ``(is_valid, error_message)`` so callers can
    collect messages; ``validate_booking`` raises on the first failure.
    """

    @staticmethod
    def validate_name(name: str | None) -> tuple[bool, str | None]:
        if not name or not name.strip():
            return False, "Name is required"

        length = len(name.strip())
        if length < MIN_NAME_LENGTH:
            return False, f"Name must be at least {MIN_NAME_LENGTH} characters"
        if length > MAX_NAME_LENGTH:
            return False, f"Name must be at most {MAX_NAME_LENGTH} characters"

        return InputValidator.validate_free_text(name)

    @staticmethod
    def validate_email(email: str | None) -> tuple[bool, str | None]:
        if not email or not EMAIL_PATTERN.match(email.strip()):
            return False, "Invalid email address"
        return True, None

    @staticmethod
    def validate_phone_number(phone: str | None) -> tuple[bool, str | None]:
        if not phone:
            return False, "Phone number is required"

        normalized = (
            phone.replace(" ", "")
            .replace("-", "")
            .replace("(", "")
            .replace(")", "")
        )
        if not PHONE_PATTERN.match(normalized):
            return False, "Invalid phone number"
        return True, None

    @staticmethod
    def validate_date(value: str | None) -> tuple[bool, str | None]:
        if not value:
            return False, "Please select a date"
        try:
            parse_iso_date(value)
        except InputValidationError as e:
            return False, e.message
        return True, None

    @staticmethod
    def validate_time(value: str | None) -> tuple[bool, str | None]:
        if not value:
            return False, "Please select a time"
        if not TIME_PATTERN.fullmatch(value):
            return False, f"Invalid time '{value}', expected HH:MM"
        return True, None

    @staticmethod
    def check_booking_window(booking_date: str, today: date) -> tuple[bool, str | None]:
        """Bookings run from today through BOOKING_WINDOW_DAYS ahead."""
        day = parse_iso_date(booking_date)
        if day < today:
            return False, "Please choose a date from today onwards"
        if day > today + timedelta(days=BOOKING_WINDOW_DAYS):
            return False, f"Bookings can be made at most {BOOKING_WINDOW_DAYS} days ahead"
        return True, None

    @staticmethod
    def validate_party_size(guests: int | None) -> tuple[bool, str | None]:
        if guests is None:
            return False, "Please select number of guests"
        if guests < MIN_GUESTS or guests > MAX_GUESTS:
            return False, f"Party size must be between {MIN_GUESTS} and {MAX_GUESTS}"
        return True, None

    @staticmethod
    def validate_free_text(text: str | None, max_length: int = MAX_REMARK_LENGTH) -> tuple[bool, str | None]:
        if not text:
            return True, None

        if len(text) > max_length:
            return False, f"Text too long (max {max_length} characters)"

        text_lower = text.lower()
        for pattern in BLOCKED_PATTERNS:
            if re.search(pattern, text_lower):
                logger.warning(f"Blocked suspicious input pattern ({pattern})")
                return False, "Input contains suspicious content"

        return True, None

    @staticmethod
    def check_opening_hours(
        booking_date: str, booking_time: str, settings: SettingsRead
    ) -> tuple[bool, str | None]:
        """Check a date/time pair against holidays, opening hours and time slots."""
        if booking_date in settings.closed_dates:
            return False, CLOSED_DATE_MESSAGE

        if not settings.opening_time <= booking_time <= settings.closing_time:
            return False, (
                f"Please choose a time between {settings.opening_time} "
                f"and {settings.closing_time}"
            )

        # Only the generated slots are bookable
        opening = datetime.strptime(settings.opening_time, "%H:%M")
        offset = datetime.strptime(booking_time, "%H:%M") - opening
        if offset.seconds % (SLOT_MINUTES * 60):
            return False, f"Please choose a time on a {SLOT_MINUTES}-minute slot"
        return True, None

    @staticmethod
    def split_name(data: ReservationCreate) -> tuple[str, str]:
        """Return (first_name, last_name) from either a full name or the parts."""
        if data.first_name:
            return data.first_name.strip(), (data.last_name or "").strip()

        full_name = (data.name or "").strip()
        first, _, last = full_name.partition(" ")
        return first, last.strip()

    @classmethod
    def validate_booking(
        cls, data: ReservationCreate, settings: SettingsRead, today: date | None = None
    ) -> dict:
        """Validate a guest booking and return the normalized column values.

        Args:
            data: Booking as submitted
            settings: Current opening hours and holidays
            today: Reference date for the booking window, defaults to the current date

        Raises:
            InputValidationError: On the first rule that fails
        """
        first_name, last_name = cls.split_name(data)
        display_name = f"{first_name} {last_name}".strip()

        checks = [
            cls.validate_name(display_name),
            cls.validate_email(data.email),
            cls.validate_date(data.date),
            cls.validate_time(data.time),
            cls.validate_party_size(data.guests),
            cls.validate_free_text(data.remark),
        ]
        if data.phone:
            checks.append(cls.validate_phone_number(data.phone))

        for is_valid, error in checks:
            if not is_valid:
                raise InputValidationError(error)

        for is_valid, error in (
            cls.check_booking_window(data.date, today or date.today()),
            cls.check_opening_hours(data.date, data.time, settings),
        ):
            if not is_valid:
                raise InputValidationError(error)

        return {
            "first_name": first_name,
            "last_name": last_name,
            "email": data.email.strip().lower(),
            "phone": data.phone.strip() if data.phone else None,
            "date": data.date,
            "time": data.time,
            "guests": data.guests,
            "remark": data.remark.strip() if data.remark else None,
        }

    @classmethod
    def validate_schedule_change(
        cls,
        settings: SettingsRead,
        booking_date: str,
        booking_time: str,
        guests: int,
    ) -> None:
        """Validate the fields staff may edit on an existing reservation."""
        for is_valid, error in (
            cls.validate_date(booking_date),
            cls.validate_time(booking_time),
            cls.validate_party_size(guests),
            cls.check_opening_hours(booking_date, booking_time, settings),
        ):
            if not is_valid:
                raise InputValidationError(error)


def parse_iso_date(value: str) -> date:
    """Parse a strict YYYY-MM-DD date or raise InputValidationError.

    Dates are stored and compared as strings, so compact or week-based ISO
    forms are refused rather than normalized.
    """
    msg = f"Invalid date '{value}', expected YYYY-MM-DD"
    if not DATE_PATTERN.fullmatch(value):
        raise InputValidationError(msg)
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as e:
        raise InputValidationError(msg) from e
