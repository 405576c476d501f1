"""Exception types raised by Tablekeeper services."""


class TablekeeperError(Exception):
    """Base class for all service errors.

    Subclasses set ``status_code`` so the HTTP layer can map them directly.
    """

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InputValidationError(TablekeeperError):
    """Input failed a form-level rule."""

    status_code = 400


class NotFoundError(TablekeeperError):
    """A referenced record does not exist."""

    status_code = 404


class InvalidTransitionError(TablekeeperError):
    """A reservation status change is not allowed from the current state."""

    status_code = 409


class ConflictError(TablekeeperError):
    """The change would clash with existing data."""

    status_code = 409


class AuthenticationError(TablekeeperError):
    """The caller has no valid session."""

    status_code = 401


class PermissionDeniedError(TablekeeperError):
    """The caller's role is not allowed to perform the action."""

    status_code = 403


class PersistenceError(TablekeeperError):
    """The database rejected or failed a query."""

    status_code = 500


class NotificationError(TablekeeperError):
    """An email could not be delivered."""

    status_code = 500
