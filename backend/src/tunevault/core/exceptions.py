"""Domain exceptions shared by services, the API and the worker."""


class TunevaultError(Exception):
    """Base class for all errors raised by tunevault services."""


class NotFoundError(TunevaultError):
    """The requested entity does not exist or is not visible to the user."""


class UniqueConstraintViolation(TunevaultError):
    """An insert collided with an existing row on a unique key.

    Raised instead of the driver-level ``IntegrityError`` so callers can tell
    a lost insert race apart from other database failures.
    """
