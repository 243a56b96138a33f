"""Domain errors raised by services and mapped to HTTP responses in main."""

from typing import Any, Optional


class HealthNetError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None, errors: Any = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.errors = errors
        super().__init__(message)


class ValidationFailed(HealthNetError):
    status_code = 400


class InvalidState(HealthNetError):
    """A state machine transition that is not allowed from the current status."""
    status_code = 400


class AuthenticationFailed(HealthNetError):
    status_code = 401


class PermissionDenied(HealthNetError):
    status_code = 403


class NotFound(HealthNetError):
    status_code = 404


class Conflict(HealthNetError):
    status_code = 409


class Gone(HealthNetError):
    """The resource existed but can no longer be used (inactive or expired QR token)."""
    status_code = 410
