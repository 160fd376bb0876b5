from __future__ import annotations


class BookSignalsError(Exception):
    """Base class for every error raised by book_signals."""


class InvalidInputError(BookSignalsError, ValueError):
    pass


class AcceleratorUnavailableError(BookSignalsError):
    pass


class AcceleratedPathError(BookSignalsError):
    pass


class BackendNotInitializedError(BookSignalsError):
    pass


class BackendInitializationError(BookSignalsError):
    """Backend state could not be constructed; the only fatal init condition."""
