"""Signature and claim verification of inbound webhook calls."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError

from slashid_sdk.cache import CachedKeySet, KeyCache
from slashid_sdk.exceptions import WebhookVerificationError

if TYPE_CHECKING:
    from slashid_sdk.client import SlashIdClient

JWKS_PATH = "/organizations/webhooks/verification-jwks"
ALLOWED_ALGORITHMS = frozenset(
    {"RS256", "RS384", "RS512", "PS256", "PS384", "PS512", "ES256", "ES384", "ES512"}
)
DEFAULT_TTL_SECONDS = 3600

logger = structlog.get_logger(__name__)


class WebhookCallVerifier:
    """Verify JWT-signed webhook calls against the organization's published keys."""

    def __init__(
        self,
        client: SlashIdClient,
        leeway_seconds: int = 0,
        now: Callable[[], float] | None = None,
    ) -> None:
        self._client = client
        self._leeway_seconds = leeway_seconds
        self._now = now or time.time

    @property
    def jwks_url(self) -> str:
        return self._client.api_url + JWKS_PATH

    def decode_and_verify(
        self,
        token: str,
        cache: KeyCache,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        rate_limited: bool = True,
    ) -> dict[str, Any]:
        """Verify a webhook call token and return its claims.

        The signing key is resolved by the ``kid`` header through ``cache``; the key
        set is fetched from the API on a cache miss or an unknown kid.
        """
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as exc:
            raise WebhookVerificationError("Invalid token.", "invalid_token") from exc

        algorithm = str(header.get("alg", ""))
        if algorithm not in ALLOWED_ALGORITHMS:
            raise WebhookVerificationError("Invalid token.", "invalid_token")
        kid = header.get("kid")
        if not kid:
            raise WebhookVerificationError("Invalid token.", "invalid_token")

        key_set = CachedKeySet(
            self._client,
            self.jwks_url,
            cache,
            ttl_seconds=ttl_seconds,
            rate_limited=rate_limited,
        )
        key = key_set.get_key(str(kid))
        if key.get("alg") not in (None, algorithm):
            raise WebhookVerificationError("Invalid token.", "invalid_token")

        options = {
            "verify_aud": False,
            "require_exp": True,
            "require_iat": True,
            "leeway": self._leeway_seconds,
        }
        try:
            claims = jwt.decode(token, key, algorithms=[algorithm], options=options)
        except ExpiredSignatureError as exc:
            raise WebhookVerificationError("Token has expired.", "token_expired") from exc
        except JWTError as exc:
            raise WebhookVerificationError("Invalid token.", "invalid_token") from exc

        # jose validates the type of iat, not its value.
        if claims["iat"] > self._now() + self._leeway_seconds:
            raise WebhookVerificationError("Invalid token.", "invalid_token")

        logger.debug(
            "webhook_call_verified",
            kid=str(kid),
            trigger_name=claims.get("trigger_name"),
        )
        return claims
