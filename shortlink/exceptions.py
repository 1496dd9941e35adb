"""Domain exceptions raised by the shortlink core.

Every exception derives from ``ShortLinkError`` so the HTTP layer can register
one handler per failure kind and leave anything else (e.g. SQLAlchemy errors)
to the generic server-error handler.

Classes:
    ShortLinkError:
        Generic base class for shortlink exceptions.

    ValidationError:
        Raised when a long URL is missing or malformed. Client error, never retried.

    NotFoundError:
        Raised when a short identifier has no record.

    AllocationExhaustedError:
        Raised when no free short identifier was found within the retry ceiling.

    StoreUnavailableError:
        Raised when the record store cannot be reached while opening the handle.

Example:
    >>> from shortlink.exceptions import NotFoundError
    >>> raise NotFoundError("zzz999")
    Traceback (most recent call last):
        ...
    shortlink.exceptions.NotFoundError: Short link 'zzz999' not found
"""

__all__ = [
    "ShortLinkError",
    "ValidationError",
    "NotFoundError",
    "AllocationExhaustedError",
    "StoreUnavailableError",
]


class ShortLinkError(Exception):
    """Generic base class for shortlink exceptions."""

    pass


class ValidationError(ShortLinkError):
    """Exception raised when a submitted long URL is missing or malformed."""

    pass


class NotFoundError(ShortLinkError):
    """Exception raised when a short identifier does not map to any record."""

    def __init__(self, short_id: str):
        self.short_id = short_id
        super().__init__(f"Short link '{short_id}' not found")


class AllocationExhaustedError(ShortLinkError):
    """Exception raised when every candidate identifier collided."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Could not allocate a short identifier after {attempts} attempts")


class StoreUnavailableError(ShortLinkError):
    """Exception raised when the record store cannot be reached.

    e.g. wrong credentials, DNS failure, database file in a missing directory.
    """

    pass
