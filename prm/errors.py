# prm/errors.py


class PRMError(Exception):
    """Base error for the data layer."""


class NotFoundError(PRMError):
    """Row is missing or owned by another user."""


class ValidationError(PRMError):
    """Payload is missing required fields or references foreign rows."""
