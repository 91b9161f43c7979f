"""Typed application errors.

Raised by services and the authorization gate during the synchronous part of
a request; the exception handlers in ``roomai.main`` turn them into the
``ErrorResponse`` JSON shape. Nothing raised inside the detached generation
job ever reaches an HTTP caller.
"""

from __future__ import annotations


class AppError(Exception):
    status_code: int = 500
    error: str = "internal_error"
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        error: str | None = None,
        status_code: int | None = None,
        retryable: bool | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error is not None:
            self.error = error
        if status_code is not None:
            self.status_code = status_code
        if retryable is not None:
            self.retryable = retryable


class NotFoundError(AppError):
    status_code = 404
    error = "not_found"


class AccessDeniedError(AppError):
    status_code = 403
    error = "access_denied"


class AuthenticationError(AppError):
    status_code = 401
    error = "authentication_required"


class UploadValidationError(AppError):
    status_code = 422
    error = "invalid_upload"


class InvalidTransitionError(AppError):
    """A design write that would leave a terminal state or skip a step."""

    status_code = 409
    error = "invalid_transition"


class ProviderError(Exception):
    """A generation backend failed; the message is recorded on the design."""

    def __init__(self, message: str, *, provider: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider
