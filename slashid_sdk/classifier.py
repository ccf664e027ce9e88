"""Classification of failed API exchanges into the SDK error taxonomy."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from slashid_sdk.exceptions import API_ERRORS_BY_KIND, ApiError, ErrorKind

DEFAULT_MESSAGE = "Error"
UNAUTHORIZED_MESSAGE = "Invalid credentials: check the organization ID and API key"
ACCESS_DENIED_PREFIX = "Access has been denied: "

_KIND_BY_STATUS: dict[int, ErrorKind] = {
    400: ErrorKind.BAD_REQUEST,
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.ACCESS_DENIED,
    409: ErrorKind.CONFLICT,
}


@dataclass(frozen=True)
class ClassifiedError:
    """A failure that maps onto one member of the error taxonomy."""

    kind: ErrorKind
    message: str
    method: str
    path: str
    status_code: int

    def to_exception(self, cause: BaseException | None = None) -> ApiError:
        """Build the matching exception, chained to the transport error."""
        error = API_ERRORS_BY_KIND[self.kind](
            self.message, self.method, self.path, self.status_code
        )
        error.__cause__ = cause
        return error


@dataclass(frozen=True)
class Unclassified:
    """A failure outside the taxonomy; the transport error must propagate as is."""

    status_code: int


Classification = ClassifiedError | Unclassified


def extract_error_message(body: bytes | str | None) -> str | None:
    """Return ``errors[0].message`` from an API error body, if there is one."""
    if not body:
        return None
    try:
        payload: Any = json.loads(body)
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    errors = payload.get("errors")
    if not isinstance(errors, list) or not errors or not isinstance(errors[0], dict):
        return None
    message = errors[0].get("message")
    return str(message) if message is not None else None


def classify(
    status_code: int,
    body: bytes | str | None,
    method: str,
    request_target: str,
) -> Classification:
    """Classify a failed response.

    The result depends only on the arguments. A 404 is split on whether the body
    is an API error envelope: unknown routes answer with plain text instead.
    """
    method = method.upper()
    message = extract_error_message(body)
    location = f" at {method} {request_target}"

    if status_code == 404:
        kind = ErrorKind.INVALID_ENDPOINT if message is None else ErrorKind.ID_NOT_FOUND
    elif status_code in _KIND_BY_STATUS:
        kind = _KIND_BY_STATUS[status_code]
    else:
        return Unclassified(status_code=status_code)

    if kind is ErrorKind.UNAUTHORIZED:
        text = UNAUTHORIZED_MESSAGE + location
    elif kind is ErrorKind.ACCESS_DENIED:
        text = ACCESS_DENIED_PREFIX + (message or DEFAULT_MESSAGE) + location
    else:
        text = (message or DEFAULT_MESSAGE) + location

    return ClassifiedError(
        kind=kind,
        message=text,
        method=method,
        path=request_target,
        status_code=status_code,
    )
