"""
Error taxonomy for Link Platform.

Every failure the registry or resolver reports to a caller is one of these
classes. The HTTP layer maps them to status codes; nothing below the HTTP
layer knows about status codes.

    InvalidInputError      malformed URL or short-code grammar
    ConflictError          custom short code already taken
    NotFoundError          code absent (never existed or deleted)
    ResourceExhaustedError random allocation ran out of attempts
    InternalError          storage backend failure (detail is not leaked)
"""


class LinkError(Exception):
    """Base class for all registry/resolver errors."""


class InvalidInputError(LinkError, ValueError):
    """Raised when a URL or a short code fails validation."""


class ConflictError(LinkError):
    """Raised when a custom short code is already used by a live link."""


class NotFoundError(LinkError, LookupError):
    """Raised when no live link has the requested short code."""


class ResourceExhaustedError(LinkError):
    """Raised when every random candidate collided with an existing code."""


class InternalError(LinkError):
    """Raised when the storage backend fails; the cause is chained, not exposed."""
