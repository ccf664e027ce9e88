"""Bearer token validation and structural decoding."""

from __future__ import annotations

import base64
import binascii
import json
from typing import TYPE_CHECKING, Any

from slashid_sdk.exceptions import MalformedTokenError

if TYPE_CHECKING:
    from slashid_sdk.client import SlashIdClient

MALFORMED_TOKEN_MESSAGE = "The token is malformed."


def _b64decode_segment(segment: str) -> bytes:
    """Decode a standard or URL-safe base64 segment, padded or not."""
    padded = segment + "=" * (-len(segment) % 4)
    return base64.b64decode(padded.replace("-", "+").replace("_", "/"), validate=True)


class TokenVerifier:
    """Validate tokens remotely and read their subject locally."""

    def __init__(self, client: SlashIdClient) -> None:
        self._client = client

    def validate(self, token: str) -> bool:
        """Ask the API whether a token is valid."""
        result = self._client.post("/token/validate", {"token": token})
        if not isinstance(result, dict):
            return False
        return result.get("valid") is True

    def extract_subject(self, token: str) -> Any:
        """Return the ``sub`` claim of a compact token without verifying it.

        Only the structure is checked: three dot-separated segments and a middle
        segment holding base64-encoded JSON.
        """
        if "." not in token:
            raise MalformedTokenError(MALFORMED_TOKEN_MESSAGE)
        parts = token.split(".")
        if len(parts) != 3:
            raise MalformedTokenError(MALFORMED_TOKEN_MESSAGE)

        try:
            claims = json.loads(_b64decode_segment(parts[1]))
        except (binascii.Error, ValueError) as exc:
            raise MalformedTokenError(MALFORMED_TOKEN_MESSAGE) from exc
        if not isinstance(claims, dict):
            raise MalformedTokenError(MALFORMED_TOKEN_MESSAGE)
        return claims.get("sub")
