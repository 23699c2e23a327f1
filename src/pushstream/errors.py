"""Exceptions raised by pushstream.

Usage errors (adding to a closed stream, listening twice) are raised
synchronously from the offending call. Errors published with add_error()
are never raised; they travel through the stream as Error messages.
"""


class StreamError(Exception):
    """Base class for all pushstream errors."""


class StreamClosedError(StreamError):
    """Raised when adding data or errors to a closed stream."""


class AlreadyListeningError(StreamError):
    """Raised when a second listener attaches to a single-subscription stream."""


class StreamExhaustedError(StreamError):
    """The stream closed before producing the value an aggregator needed."""
