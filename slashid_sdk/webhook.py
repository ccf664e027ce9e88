"""Webhook registration and trigger reconciliation."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

import structlog

from slashid_sdk.cache import InMemoryKeyCache, KeyCache
from slashid_sdk.exceptions import ApiResponseError, WebhookNotFoundError
from slashid_sdk.types import TriggerType, WebhookDefinition, WebhookOptions, WebhookTrigger
from slashid_sdk.verification import DEFAULT_TTL_SECONDS, WebhookCallVerifier

if TYPE_CHECKING:
    from slashid_sdk.client import SlashIdClient

WEBHOOKS_PATH = "/organizations/webhooks"

logger = structlog.get_logger(__name__)


class WebhookRegistry:
    """Manage the organization's webhooks and the triggers they subscribe to.

    Nothing is cached locally: every operation reads the current remote state.
    """

    def __init__(self, client: SlashIdClient, key_cache: KeyCache | None = None) -> None:
        self._client = client
        self._key_cache = key_cache or InMemoryKeyCache()
        self._verifier = WebhookCallVerifier(client)

    def find_all(self) -> list[WebhookDefinition]:
        """Return every webhook defined in the organization."""
        return self._client.get(WEBHOOKS_PATH) or []

    def find_by_id(self, webhook_id: str) -> WebhookDefinition:
        """Return one webhook; raises IdNotFoundError when the ID is unknown."""
        return self._client.get(f"{WEBHOOKS_PATH}/{webhook_id}")

    def find_by_url(self, url: str) -> WebhookDefinition | None:
        """Return the first webhook whose target URL is exactly ``url``."""
        for webhook in self.find_all():
            if webhook.get("target_url") == url:
                return webhook
        return None

    def register(
        self,
        url: str,
        name: str,
        triggers: Iterable[str],
        options: WebhookOptions | None = None,
    ) -> WebhookDefinition:
        """Create or update the webhook for ``url`` and set its triggers.

        An existing webhook is updated with PATCH: fields missing from ``options``
        keep their current value on the server.
        """
        payload: dict[str, Any] = {"target_url": url, "name": name}
        for field, value in (options or {}).items():
            payload.setdefault(field, value)

        existing = self.find_by_url(url)
        if existing is not None:
            webhook_id = existing["id"]
            webhook = self._client.patch(f"{WEBHOOKS_PATH}/{webhook_id}", payload)
            logger.info("webhook_updated", webhook_id=webhook_id, target_url=url)
        else:
            webhook = self._client.post(WEBHOOKS_PATH, payload)
            if not isinstance(webhook, dict) or "id" not in webhook:
                # Created without a definition in the response; look it up by URL.
                webhook = self.find_by_url(url)
                if webhook is None:
                    raise ApiResponseError(
                        f"Webhook for {url} was not returned or listed after creation."
                    )
            webhook_id = webhook["id"]
            logger.info("webhook_created", webhook_id=webhook_id, target_url=url)

        self.set_triggers(webhook_id, triggers)
        return webhook

    def delete_by_id(self, webhook_id: str) -> None:
        self._client.delete(f"{WEBHOOKS_PATH}/{webhook_id}")
        logger.info("webhook_deleted", webhook_id=webhook_id)

    def delete_by_url(self, url: str) -> None:
        """Delete the webhook for ``url``; raises WebhookNotFoundError if there is none."""
        webhook = self.find_by_url(url)
        if webhook is None:
            raise WebhookNotFoundError(self._client.organization_id, url)
        self.delete_by_id(webhook["id"])

    def get_triggers(self, webhook_id: str) -> list[str]:
        """Return the names of the triggers the webhook subscribes to."""
        triggers: list[WebhookTrigger] = (
            self._client.get(f"{WEBHOOKS_PATH}/{webhook_id}/triggers") or []
        )
        return [trigger["trigger_name"] for trigger in triggers]

    def set_triggers(self, webhook_id: str, triggers: Iterable[str]) -> None:
        """Make the webhook's trigger set exactly ``triggers``.

        Removals are sent before additions and triggers already present are left
        alone. The calls are not transactional; re-running recomputes the
        difference against the remote state.
        """
        desired = set(triggers)
        existing = dict.fromkeys(self.get_triggers(webhook_id))

        for name in existing:
            if name not in desired:
                self.delete_trigger(webhook_id, name)
        for name in sorted(desired.difference(existing)):
            self.add_trigger(webhook_id, name)

    def add_trigger(self, webhook_id: str, trigger_name: str) -> None:
        self._client.post(
            f"{WEBHOOKS_PATH}/{webhook_id}/triggers",
            {"trigger_type": str(TriggerType.for_name(trigger_name)), "trigger_name": trigger_name},
        )
        logger.info("webhook_trigger_added", webhook_id=webhook_id, trigger_name=trigger_name)

    def delete_trigger(self, webhook_id: str, trigger_name: str) -> None:
        self._client.delete(
            f"{WEBHOOKS_PATH}/{webhook_id}/triggers",
            {"trigger_type": str(TriggerType.for_name(trigger_name)), "trigger_name": trigger_name},
        )
        logger.info("webhook_trigger_deleted", webhook_id=webhook_id, trigger_name=trigger_name)

    def decode_webhook_call(
        self,
        token: str,
        cache: KeyCache | None = None,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        rate_limited: bool = True,
    ) -> dict[str, Any]:
        """Verify the JWT body of a webhook call and return its claims."""
        return self._verifier.decode_and_verify(
            token,
            cache if cache is not None else self._key_cache,
            ttl_seconds=ttl_seconds,
            rate_limited=rate_limited,
        )
