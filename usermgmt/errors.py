"""Application error types.

Every failure the API reports is one of these. Each carries the HTTP status
and the public message sent to the client; the handlers registered in
``middleware.error_handler`` turn them into the JSON error envelope.
"""

from fastapi import status


class AppError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


# --- Validation (400) ---

class RequestValidationFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"


class EmailExistsError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Email already exists"


class UnknownEmailError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "User not found"


class IncorrectPasswordError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Incorrect password"


# --- Authentication / authorization (403) ---

class MissingTokenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Access denied. No token provided."


class InvalidTokenError(AppError):
    """Malformed, wrongly signed or expired token. Deliberately undifferentiated."""

    status_code = status.HTTP_403_FORBIDDEN
    message = "Invalid token."


class AccountBlockedError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "User is blocked"


class LoginBlockedError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "You are blocked. Contact with the Admin!"


# --- Not found (404) ---

class AccountNotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "User not found"


# --- Storage (500) ---

class StorageError(AppError):
    """Underlying store failure. Terminal for the request, never retried."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Database error"
