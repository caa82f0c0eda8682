"""
Application error taxonomy.

Every error carries the HTTP status it maps to and a message that is safe to
show to the client. api/errors.py renders them in the response envelope.
"""
from __future__ import annotations


class AppError(Exception):
    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid input"


class Unauthenticated(AppError):
    status_code = 401
    default_message = "Unauthorized access"


class InvalidCredential(Unauthenticated):
    default_message = "Incorrect password"


class TokenReuseDetected(Unauthenticated):
    default_message = "Refresh token is expired or used"


class NotFound(AppError):
    status_code = 404
    default_message = "Resource not found"


class Conflict(AppError):
    status_code = 409
    default_message = "Conflict"


class UploadError(AppError):
    default_message = "Failed to upload file"


class PersistenceError(AppError):
    default_message = "Failed to save record"


class ConfigError(AppError):
    default_message = "Server is misconfigured"


# Raised by the token service; never rendered directly.
class TokenError(Exception):
    pass


class TokenExpired(TokenError):
    pass


class TokenInvalid(TokenError):
    pass
