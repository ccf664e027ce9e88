"""Shared unit-test fixtures: SDK clients backed by a recording mock transport."""

from __future__ import annotations

import base64
import logging
import sys
import time
from collections.abc import Callable, Iterator, Sequence
from typing import Any

import httpx
import pytest
import structlog
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from jose import jwt

from slashid_sdk.client import SlashIdClient

MockResponse = tuple[int, Any]


class RecordingTransport:
    """Serve queued responses in order and keep every request received."""

    def __init__(self, responses: Sequence[MockResponse]) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request {request.method} {request.url}")
        status_code, body = self.responses.pop(0)
        if body is None:
            return httpx.Response(status_code)
        if isinstance(body, (dict, list)):
            return httpx.Response(status_code, json=body)
        if isinstance(body, Exception):
            raise body
        return httpx.Response(status_code, content=body)


ClientFactory = Callable[..., tuple[SlashIdClient, RecordingTransport]]


@pytest.fixture
def make_client() -> Iterator[ClientFactory]:
    """Build SlashIdClient instances wired to a RecordingTransport."""
    http_clients: list[httpx.Client] = []

    def factory(
        responses: Sequence[MockResponse] = (), environment: str = "production"
    ) -> tuple[SlashIdClient, RecordingTransport]:
        recorder = RecordingTransport(responses)
        http_client = httpx.Client(transport=httpx.MockTransport(recorder))
        http_clients.append(http_client)
        client = SlashIdClient(environment, "org_id", "api_key", http_client=http_client)
        return client, recorder

    yield factory
    for http_client in http_clients:
        http_client.close()


class FakeClock:
    """Controllable monotonic clock for TTL and rate-limit tests."""

    def __init__(self) -> None:
        self.current = 1000.0

    def now(self) -> float:
        return self.current


def _base64url_uint(value: int, length: int) -> str:
    """Encode integer in URL-safe base64 without padding."""
    return base64.urlsafe_b64encode(value.to_bytes(length, "big")).rstrip(b"=").decode("ascii")


def generate_signing_material(kid: str) -> tuple[str, dict[str, Any]]:
    """Generate a P-256 private PEM and the matching JWKS key entry."""
    private_key = ec.generate_private_key(ec.SECP256R1())
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")
    public_numbers = private_key.public_key().public_numbers()
    jwk = {
        "alg": "ES256",
        "crv": "P-256",
        "key_ops": ["verify"],
        "kid": kid,
        "kty": "EC",
        "use": "sig",
        "x": _base64url_uint(public_numbers.x, 32),
        "y": _base64url_uint(public_numbers.y, 32),
    }
    return private_pem, jwk


def build_webhook_token(
    private_pem: str,
    kid: str,
    issued_at: int | None = None,
    expires_in: int = 1200,
) -> str:
    """Build an ES256 webhook call token shaped like the ones the API sends."""
    iat = int(time.time()) if issued_at is None else issued_at
    payload = {
        "aud": "org_id",
        "iat": iat,
        "exp": iat + expires_in,
        "iss": "https://api.slashid.com",
        "jti": "0003aec7-0bcf-4204-9bea-2e2c370ca639",
        "sub": "ec1c13a6-1d40-47ef-b2ff-e1355c5750d0",
        "trigger_name": "PersonCreated_v1",
        "trigger_type": "event",
        "trigger_content": {
            "event_metadata": {
                "event_id": "ec1c13a6-1d40-47ef-b2ff-e1355c5750d0",
                "event_name": "PersonCreated_v1",
            }
        },
        "webhook_id": "065e3dc5-c5b2-7e3f-b100-61fda8732b07",
    }
    return jwt.encode(payload, private_pem, algorithm="ES256", headers={"kid": kid})


@pytest.fixture
def signing_material() -> Callable[[str], tuple[str, dict[str, Any]]]:
    """Expose signing material generation to tests."""
    return generate_signing_material


@pytest.fixture
def webhook_token() -> Callable[..., str]:
    """Expose webhook token building to tests."""
    return build_webhook_token


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _structlog_to_stderr() -> Iterator[None]:
    """Send SDK log events to whatever sys.stderr is when each event is logged."""
    structlog.configure(
        processors=[structlog.processors.add_log_level, structlog.processors.JSONRenderer()],
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        logger_factory=lambda *args: structlog.PrintLogger(sys.stderr),
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()
