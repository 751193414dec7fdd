"""Publisher error hierarchy.

Adapters translate library failures into these; callers only ever catch
PublisherError subclasses.
"""


class PublisherError(Exception):
    """Base for all publisher failures."""


class TransportError(PublisherError):
    """Raised when the byte-stream connection cannot be opened or closed."""


class UnsupportedProtocolError(PublisherError):
    """Raised when the requested messaging protocol is not implemented."""


class SessionError(PublisherError):
    """Raised on protocol-level connect, send or disconnect failure."""


class PreconditionError(PublisherError):
    """Raised when an operation is attempted in the wrong lifecycle state."""


class FileReadError(PublisherError):
    """Raised when a bulk message source cannot be read."""
