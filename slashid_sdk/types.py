"""SDK data contract types."""

from __future__ import annotations

from enum import Enum, StrEnum
from typing import Any, TypedDict


class Environment(Enum):
    """Remote API environments, each bound to its base URL."""

    PRODUCTION = "production"
    SANDBOX = "sandbox"

    @property
    def base_url(self) -> str:
        """Return the API base URL (no trailing slash)."""
        return _ENVIRONMENT_URLS[self]


_ENVIRONMENT_URLS: dict[Environment, str] = {
    Environment.PRODUCTION: "https://api.slashid.com",
    Environment.SANDBOX: "https://api.sandbox.slashid.com",
}


class TriggerType(StrEnum):
    """Webhook trigger categories."""

    SYNC_HOOK = "sync_hook"
    EVENT = "event"

    @classmethod
    def for_name(cls, trigger_name: str) -> TriggerType:
        """Derive the trigger type from the trigger name."""
        if trigger_name in SYNC_HOOK_TRIGGERS:
            return cls.SYNC_HOOK
        return cls.EVENT


SYNC_HOOK_TRIGGERS = frozenset({"token_minted"})


class WebhookDefinition(TypedDict, total=False):
    """Webhook definition as returned by the API."""

    id: str
    name: str
    description: str
    target_url: str
    custom_headers: dict[str, list[str]]
    timeout: str


class WebhookOptions(TypedDict, total=False):
    """Optional webhook fields accepted by register()."""

    description: str
    custom_headers: dict[str, list[str]]
    timeout: str


class WebhookTrigger(TypedDict):
    """Trigger entry in the webhook triggers endpoint."""

    trigger_type: str
    trigger_name: str


class JWKS(TypedDict):
    """JWKS payload returned by the webhook verification endpoint."""

    keys: list[dict[str, Any]]


class MigrationResult(TypedDict, total=False):
    """Per-batch outcome of a bulk person import."""

    failed_csv: str | None
    successful_imports: int
    failed_imports: int
