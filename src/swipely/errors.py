"""Errors raised by the discovery domain and mapped to HTTP codes by the API."""


class SwipelyError(Exception):
    """Base class for domain errors."""


class ValidationError(SwipelyError, ValueError):
    pass


class NotFoundError(SwipelyError, LookupError):
    pass


class ForbiddenError(SwipelyError, PermissionError):
    pass


class ModerationError(SwipelyError):
    """Raised when a favorite is moderated from a status other than pending."""


class ConflictError(SwipelyError):
    """Raised when a record that must be unique already exists."""
