"""Errors raised by polar_toolkit."""


class PolarError(Exception):
    """Base class for all polar_toolkit errors."""


class ConfigurationError(PolarError):
    """A required credential or identifier is missing."""


class AuthenticationError(PolarError):
    """The authorization code could not be exchanged for an access token."""

    def __init__(self, message, result=None):
        super().__init__(message)
        self.result = result


class PolarAPIError(PolarError):
    """AccessLink answered with an unexpected HTTP status."""

    def __init__(self, message, status_code=None, body=""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ConsentError(PolarAPIError):
    """The user has not accepted the mandatory consents (HTTP 403)."""


class TransportError(PolarError):
    """No HTTP response was obtained at all."""
