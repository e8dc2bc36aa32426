from __future__ import annotations

from typing import Optional


class SessionError(Exception):
    """Terminal session lifecycle failure; ``error_code`` is stable and safe to log."""

    status_code: int = 401
    error_code: str = 'unauthenticated'

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.error_code.replace('_', ' ')
        super().__init__(self.message)


class UnauthenticatedError(SessionError):
    error_code = 'unauthenticated'

    def __init__(self, reason: str, message: Optional[str] = None) -> None:
        # reason is for logs only; every variant answers the same 401
        self.reason = reason
        super().__init__(message or f'access token rejected: {reason}')


class InvalidTokenError(SessionError):
    error_code = 'invalid_token'


class TokenExpiredError(SessionError):
    error_code = 'token_expired'


# also covers replays and lost rotation races
class TokenRevokedError(SessionError):
    error_code = 'token_revoked'


class TokenValidationError(SessionError):
    status_code = 400
    error_code = 'validation_error'
