"""
Caller-facing errors raised by the authentication gateway.

The stores never raise these; they return None for "not found" and let
database errors propagate. The gateway translates both into one of the
classes below and the exception handlers in main turn them into
{"message": ...} responses.
"""
from fastapi import status


class AuthError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(AuthError):
    status_code = status.HTTP_400_BAD_REQUEST


class Conflict(AuthError):
    status_code = status.HTTP_409_CONFLICT


class Unauthorized(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str, clear_cookie: bool = False):
        super().__init__(message)
        # Set when the client presented a token that is no longer valid
        self.clear_cookie = clear_cookie


class InternalError(AuthError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
