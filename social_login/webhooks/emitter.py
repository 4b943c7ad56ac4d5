"""Webhook event emitter."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from social_login.config import get_settings
from social_login.valkey import get_valkey
from social_login.webhooks.config import WebhookConfigLoader
from social_login.webhooks.event import EventType, WebhookEvent

if TYPE_CHECKING:
    from social_login.identity.types import Provider
    from social_login.models import User

logger = logging.getLogger(__name__)

# Queue key for webhook events
WEBHOOK_QUEUE_KEY = "webhook:events"


def _is_testing() -> bool:
    """Check if running in test environment."""
    return get_settings().TESTING


class WebhookEmitter:
    """Emits webhook events to the queue for async delivery."""

    @staticmethod
    async def emit(event_type: str, data: dict[str, Any]) -> WebhookEvent | None:
        """
        Queue a webhook event for delivery.

        Args:
            event_type: The event type (e.g., "credential.created")
            data: The event data payload

        Returns:
            The created WebhookEvent, or None if nothing was queued
        """
        if _is_testing():
            logger.debug("Skipping webhook emission in test environment")
            return None

        endpoints = WebhookConfigLoader.get_endpoints_for_event(event_type)
        if not endpoints:
            logger.debug("No endpoints subscribe to event: %s", event_type)
            return None

        event = WebhookEvent(event_type=event_type, data=data)

        try:
            client = await get_valkey()
            await client.rpush(WEBHOOK_QUEUE_KEY, json.dumps(event.to_payload()))
            logger.info(
                "Queued webhook event %s (type: %s) for %d endpoint(s)",
                event.event_id,
                event_type,
                len(endpoints),
            )
        except Exception as e:
            logger.error("Failed to queue webhook event: %s", e)
            return None

        return event


class WebhookNotifier:
    """Announces newly linked credentials through the webhook queue."""

    async def notify_credential_created(self, user: User, provider: Provider) -> None:
        await WebhookEmitter.emit(
            EventType.CREDENTIAL_CREATED,
            {
                "user_id": str(user.id),
                "login": user.login,
                "provider": str(provider),
            },
        )
