"""
Custom exceptions for the battle tracker with user-friendly error messages.

Every exception carries a technical message (for logs) and a user_message
(for Discord replies), plus a stable ``kind`` used as the structured error code.
"""


class FlockBotException(Exception):
    """Base exception for battle tracker errors."""
    kind = "error"

    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message

    def to_dict(self) -> dict:
        """Structured form handed to the calling layer."""
        return {"error": self.kind, "message": self.user_message}


class InvalidFormatError(FlockBotException):
    """Raised when an identifier or date string is malformed."""
    kind = "invalid_format"

    def __init__(self, value, expected: str):
        super().__init__(
            f"Invalid format {value!r}: expected {expected}",
            f"❌ `{value}` is not valid. Expected {expected}."
        )
        self.value = value


class InvalidCalendarDateError(FlockBotException):
    """Raised when a well-formed identifier names a date that does not exist."""
    kind = "invalid_calendar_date"

    def __init__(self, value: str):
        super().__init__(
            f"Identifier {value!r} is not a real calendar date",
            f"❌ `{value}` is not a real calendar date."
        )
        self.value = value


class ZeroDenominatorError(FlockBotException, ZeroDivisionError):
    """Raised when a statistic's required-positive denominator is zero."""
    kind = "division_by_zero"

    def __init__(self, field: str):
        super().__init__(
            f"{field} cannot be zero",
            f"❌ {field} must be greater than zero."
        )
        self.field = field


class EmptyPeriodError(FlockBotException):
    """Raised when a period summary is requested over zero battles."""
    kind = "empty_period"

    def __init__(self, period: str = None):
        detail = f" {period}" if period else ""
        super().__init__(
            f"Cannot summarize period{detail} with no battles",
            "❌ No battles were recorded in this period."
        )


class NotConfiguredError(FlockBotException):
    """Raised when a required setting is missing."""
    kind = "not_configured"

    def __init__(self, key: str):
        super().__init__(
            f"Setting '{key}' is not configured",
            "❌ The battle schedule has not been configured yet."
        )
        self.key = key


class MustBeFutureError(FlockBotException):
    """Raised when a date that must lie in the future does not."""
    kind = "must_be_future"

    def __init__(self, value):
        super().__init__(
            f"Date {value} must be in the future",
            "❌ The next battle date must be in the future."
        )
        self.value = value


class AlreadyExistsError(FlockBotException):
    """Raised on a duplicate creation attempt."""
    kind = "already_exists"

    def __init__(self, entity: str, identifier):
        super().__init__(
            f"{entity} {identifier} already exists",
            f"❌ {entity} `{identifier}` already exists."
        )
        self.entity = entity
        self.identifier = identifier


class NotFoundError(FlockBotException):
    """Raised when a referenced battle, clan or player does not exist."""
    kind = "not_found"

    def __init__(self, entity: str, identifier):
        super().__init__(
            f"{entity} {identifier} not found",
            f"❌ {entity} `{identifier}` was not found."
        )
        self.entity = entity
        self.identifier = identifier
