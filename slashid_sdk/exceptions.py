"""SDK exception hierarchy."""

from __future__ import annotations

from enum import StrEnum


class SDKError(Exception):
    """Base class for all SDK-specific exceptions."""


class InvalidEnvironmentError(SDKError, ValueError):
    """Raised when the client is built for an unknown environment."""


class ErrorKind(StrEnum):
    """Closed taxonomy of classified API failures."""

    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    ACCESS_DENIED = "access_denied"
    ID_NOT_FOUND = "id_not_found"
    INVALID_ENDPOINT = "invalid_endpoint"
    CONFLICT = "conflict"


class ApiError(SDKError):
    """Raised when the API answers with a recognized client error.

    The original ``httpx.HTTPStatusError`` is available as ``__cause__``.
    """

    kind: ErrorKind

    def __init__(self, message: str, method: str, path: str, status_code: int) -> None:
        """Initialize with the request context the error was observed on."""
        super().__init__(message)
        self.message = message
        self.method = method
        self.path = path
        self.status_code = status_code


class BadRequestError(ApiError):
    """400: malformed ID or invalid data in the request body."""

    kind = ErrorKind.BAD_REQUEST


class UnauthorizedError(ApiError):
    """401: wrong or missing organization ID or API key."""

    kind = ErrorKind.UNAUTHORIZED


class AccessDeniedError(ApiError):
    """403: credentials are valid but not allowed to perform the call."""

    kind = ErrorKind.ACCESS_DENIED


class IdNotFoundError(ApiError):
    """404 on a valid endpoint: the referenced object does not exist."""

    kind = ErrorKind.ID_NOT_FOUND


class InvalidEndpointError(ApiError):
    """404 without an API error body: the route itself does not exist."""

    kind = ErrorKind.INVALID_ENDPOINT


class ConflictError(ApiError):
    """409: an object with a unique value already exists."""

    kind = ErrorKind.CONFLICT


API_ERRORS_BY_KIND: dict[ErrorKind, type[ApiError]] = {
    error_class.kind: error_class
    for error_class in (
        BadRequestError,
        UnauthorizedError,
        AccessDeniedError,
        IdNotFoundError,
        InvalidEndpointError,
        ConflictError,
    )
}


class ApiResponseError(SDKError):
    """Raised when a successful response carries malformed or unexpected data."""

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        """Initialize with optional HTTP status code context."""
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


class MalformedTokenError(SDKError):
    """Raised when a token cannot be structurally decoded."""


class WebhookNotFoundError(SDKError):
    """Raised when no webhook is registered for a target URL."""

    def __init__(self, organization_id: str, url: str) -> None:
        super().__init__(
            f'There is no webhook in organization {organization_id} for the URL "{url}".'
        )
        self.organization_id = organization_id
        self.url = url


class WebhookVerificationError(SDKError):
    """Raised when an inbound webhook call fails signature or claim verification."""

    def __init__(self, detail: str, code: str) -> None:
        """Initialize with user-facing detail and machine-readable code."""
        super().__init__(detail)
        self.detail = detail
        self.code = code
