"""Synchronous HTTP client mediating every call to the SlashID API."""

from __future__ import annotations

import json
from collections.abc import Mapping
from functools import cached_property
from time import perf_counter
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from slashid_sdk.classifier import Unclassified, classify
from slashid_sdk.config import Settings, get_settings
from slashid_sdk.exceptions import ApiResponseError, InvalidEnvironmentError
from slashid_sdk.types import JWKS, Environment

if TYPE_CHECKING:
    from slashid_sdk.migration import MigrationExporter
    from slashid_sdk.token import TokenVerifier
    from slashid_sdk.webhook import WebhookRegistry

DEFAULT_TIMEOUT = httpx.Timeout(connect=5.0, read=30.0, write=30.0, pool=5.0)
ORGANIZATION_HEADER = "SlashID-OrgID"
API_KEY_HEADER = "SlashID-API-Key"

logger = structlog.get_logger(__name__)


def resolve_environment(environment: Environment | str) -> Environment:
    """Return the Environment for a value, failing before any network access."""
    if isinstance(environment, Environment):
        return environment
    try:
        return Environment(environment)
    except ValueError as exc:
        valid = " or ".join(member.value for member in Environment)
        raise InvalidEnvironmentError(
            f'Invalid environment "{environment}". Valid options are: {valid}.'
        ) from exc


def encode_query(query: Mapping[str, Any]) -> dict[str, str]:
    """Flatten query values; list values become comma-separated strings.

    Entries whose value is None are left out of the query string.
    """
    encoded: dict[str, str] = {}
    for key, value in query.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple, set, frozenset)):
            encoded[key] = ",".join(str(item) for item in value)
        elif isinstance(value, bool):
            encoded[key] = "true" if value else "false"
        else:
            encoded[key] = str(value)
    return encoded


class SlashIdClient:
    """Client for the SlashID REST API.

    Each call returns the unwrapped ``result`` of the response envelope. Recognized
    client errors are raised as :class:`~slashid_sdk.exceptions.ApiError` subclasses;
    any other transport failure propagates untouched.
    """

    def __init__(
        self,
        environment: Environment | str,
        organization_id: str,
        api_key: str,
        timeout: httpx.Timeout | float | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Create client with sane defaults and optional injected transport."""
        self._environment = resolve_environment(environment)
        self._organization_id = organization_id
        self._api_key = api_key
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout or DEFAULT_TIMEOUT)

    @classmethod
    def from_settings(
        cls, settings: Settings | None = None, http_client: httpx.Client | None = None
    ) -> SlashIdClient:
        """Build a client from environment-driven settings."""
        settings = settings or get_settings()
        return cls(
            environment=settings.environment,
            organization_id=settings.organization_id,
            api_key=settings.api_key.get_secret_value(),
            timeout=settings.timeout_seconds,
            http_client=http_client,
        )

    @property
    def environment(self) -> Environment:
        return self._environment

    @property
    def organization_id(self) -> str:
        return self._organization_id

    @property
    def api_url(self) -> str:
        return self._environment.base_url

    @cached_property
    def webhook(self) -> WebhookRegistry:
        """Webhook registration, trigger and call verification operations."""
        from slashid_sdk.webhook import WebhookRegistry

        return WebhookRegistry(self)

    @cached_property
    def token(self) -> TokenVerifier:
        """Token validation operations."""
        from slashid_sdk.token import TokenVerifier

        return TokenVerifier(self)

    @cached_property
    def migration(self) -> MigrationExporter:
        """Bulk person import operations."""
        from slashid_sdk.migration import MigrationExporter

        return MigrationExporter(self)

    def get(self, path: str, query: Mapping[str, Any] | None = None) -> Any:
        return self.request("GET", path, query=query)

    def post(self, path: str, body: Any = None) -> Any:
        return self.request("POST", path, body=body)

    def patch(self, path: str, body: Any = None) -> Any:
        return self.request("PATCH", path, body=body)

    def put(self, path: str, body: Any = None) -> Any:
        return self.request("PUT", path, body=body)

    def delete(self, path: str, query: Mapping[str, Any] | None = None) -> Any:
        return self.request("DELETE", path, query=query)

    def request(
        self,
        method: str,
        path: str,
        query: Mapping[str, Any] | None = None,
        body: Any = None,
    ) -> Any:
        """Perform one API call and return the ``result`` field of the envelope."""
        headers = self._headers()
        kwargs: dict[str, Any] = {}
        if query:
            kwargs["params"] = encode_query(query)
        if body is not None:
            headers["Content-Type"] = "application/json"
            kwargs["content"] = json.dumps(body)
        response = self._send(method, self._url(path), headers=headers, **kwargs)
        return self._unwrap(response)

    def upload(self, path: str, field_name: str, filename: str, contents: str | bytes) -> Any:
        """POST a multipart file upload and return the ``result`` field."""
        response = self._send(
            "POST",
            self._url(path),
            headers=self._headers(),
            files={field_name: (filename, contents)},
        )
        return self._unwrap(response)

    def fetch_jwks(self, url: str) -> JWKS:
        """Fetch a JSON Web Key Set published at an absolute URL."""
        response = self._send(
            "GET",
            url,
            headers={"Accept": "application/json", ORGANIZATION_HEADER: self._organization_id},
        )
        payload = self._json_object(response)
        keys = payload.get("keys")
        if not isinstance(keys, list) or not all(isinstance(item, dict) for item in keys):
            raise ApiResponseError("Invalid JWKS response payload.", response.status_code)
        return {"keys": keys}

    def close(self) -> None:
        """Close underlying HTTP client if owned by this instance."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> SlashIdClient:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        del exc_type, exc, tb
        self.close()

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            ORGANIZATION_HEADER: self._organization_id,
            API_KEY_HEADER: self._api_key,
        }

    def _url(self, path: str) -> str:
        return f"{self.api_url}/{path.lstrip('/')}"

    def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Execute request and translate recognized client errors."""
        start = perf_counter()
        response = self._client.request(method, url, **kwargs)
        target = response.request.url.raw_path.decode("ascii")
        logger.debug(
            "api_request_completed",
            method=method,
            path=target,
            status_code=response.status_code,
            duration_ms=round((perf_counter() - start) * 1000, 2),
        )

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            classification = classify(response.status_code, response.content, method, target)
            if isinstance(classification, Unclassified):
                raise
            logger.warning(
                "api_request_failed",
                kind=str(classification.kind),
                method=classification.method,
                path=classification.path,
                status_code=classification.status_code,
            )
            raise classification.to_exception(exc) from exc
        return response

    @classmethod
    def _unwrap(cls, response: httpx.Response) -> Any:
        """Return the envelope ``result``, or None for empty and result-less bodies."""
        if not response.content:
            return None
        return cls._json_object(response).get("result")

    @staticmethod
    def _json_object(response: httpx.Response) -> dict[str, Any]:
        """Return response JSON as object."""
        try:
            payload = response.json()
        except ValueError as exc:
            raise ApiResponseError("API returned invalid JSON.", response.status_code) from exc
        if not isinstance(payload, dict):
            raise ApiResponseError("API returned invalid JSON object.", response.status_code)
        return payload
