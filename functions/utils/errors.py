class RentDeskError(Exception):
    """Base class for errors raised by the entity stores."""


class ValidationError(RentDeskError, ValueError):
    """Raised when a write is rejected by a validator."""


class NotFoundError(RentDeskError, LookupError):
    """Raised when a record id does not exist in its store."""


class PlanLimitError(ValidationError):
    """Raised when adding units would exceed the user's plan."""
