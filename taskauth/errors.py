"""
Error taxonomy for the authentication endpoints.

Every ``AuthError`` is an expected outcome: the exception handler in
``taskauth.main`` turns it into ``{"success": false, "message": ...}``
with the error's status code. Most of them travel as a normal 200
response; only ``Unauthenticated`` (401) and ``VerificationTimeout`` (503)
carry a distinct status.
"""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Fatal misconfiguration detected at startup."""


class AuthError(Exception):
    status_code = 200
    default_message = "Request failed"

    def __init__(
        self, message: str | None = None, *, headers: dict[str, str] | None = None
    ) -> None:
        self.message = message or self.default_message
        self.headers = headers
        super().__init__(self.message)


class MissingFields(AuthError):
    default_message = "Missing details"


class AlreadyExists(AuthError):
    default_message = "User already exists"


class NotFound(AuthError):
    default_message = "No user found"


class InvalidCredentials(AuthError):
    default_message = "Invalid Credentials"


class VerificationTimeout(AuthError):
    status_code = 503
    default_message = "Password verification failed: timed out"


class CodeMismatch(AuthError):
    default_message = "Invalid verification code."


class Expired(AuthError):
    default_message = "Verification code expired."


class AlreadyVerified(AuthError):
    default_message = "Account already verified"


class Unauthenticated(AuthError):
    status_code = 401
    default_message = "Not authenticated"


class StorageFailure(AuthError):
    default_message = "Storage error, please try again later"


class DeliveryFailure(AuthError):
    default_message = "Could not send verification email"


class TooManyRequests(AuthError):
    status_code = 429
    default_message = "Too many requests, please try again later."
