"""Webhook subscription configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from social_login.config import get_settings

logger = logging.getLogger(__name__)


@dataclass
class WebhookEndpoint:
    """An endpoint subscribed to one or more event types.

    Delivery (signing, retries) is done by the consumer of the queue; only
    the subscription part of the configuration matters here.
    """

    id: str
    url: str
    events: list[str]
    enabled: bool = True
    description: str = ""

    def subscribes_to(self, event_type: str) -> bool:
        """Check if this endpoint subscribes to the given event type."""
        return event_type in self.events or "*" in self.events


@dataclass
class WebhookConfig:
    """Complete webhook configuration."""

    endpoints: list[WebhookEndpoint] = field(default_factory=list)


class WebhookConfigLoader:
    """Loads webhook endpoint subscriptions from YAML."""

    _config: WebhookConfig | None = None

    @classmethod
    def config_path(cls) -> Path:
        return Path(get_settings().WEBHOOK_CONFIG_PATH)

    @classmethod
    def load(cls, path: Path | None = None) -> WebhookConfig:
        """Load endpoints from the configured YAML file."""
        path = path or cls.config_path()

        if not path.exists():
            logger.info("Webhook configuration not found at %s. Webhooks disabled.", path)
            cls._config = WebhookConfig()
            return cls._config

        try:
            with open(path) as f:
                raw_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error("Failed to parse webhook configuration: %s", e)
            cls._config = WebhookConfig()
            return cls._config

        endpoints = []
        for ep_data in raw_config.get("endpoints", []):
            try:
                endpoints.append(cls._parse_endpoint(ep_data))
            except ValueError as e:
                logger.warning("Skipping invalid endpoint: %s", e)

        cls._config = WebhookConfig(endpoints=endpoints)
        logger.info("Loaded %d webhook endpoint(s) from %s", len(endpoints), path)
        return cls._config

    @classmethod
    def get_config(cls) -> WebhookConfig:
        """Get current configuration, loading if necessary."""
        if cls._config is None:
            return cls.load()
        return cls._config

    @classmethod
    def reset(cls) -> None:
        cls._config = None

    @classmethod
    def get_endpoints_for_event(cls, event_type: str) -> list[WebhookEndpoint]:
        """Get all enabled endpoints subscribed to an event type."""
        config = cls.get_config()
        return [ep for ep in config.endpoints if ep.enabled and ep.subscribes_to(event_type)]

    @staticmethod
    def _parse_endpoint(data: Any) -> WebhookEndpoint:
        """Parse and validate endpoint configuration."""
        if not isinstance(data, dict):
            raise ValueError(f"Endpoint entry must be a mapping, got {type(data).__name__}")

        endpoint_id = data.get("id")
        url = data.get("url")
        events = data.get("events", [])

        if not endpoint_id:
            raise ValueError("Endpoint missing 'id' field")
        if not url:
            raise ValueError(f"Endpoint '{endpoint_id}' missing 'url' field")
        if not events or not isinstance(events, list):
            raise ValueError(f"Endpoint '{endpoint_id}' missing 'events' field")
        if not url.startswith("https://"):
            raise ValueError(f"Endpoint '{endpoint_id}' URL must use HTTPS: {url}")

        return WebhookEndpoint(
            id=endpoint_id,
            url=url,
            events=[str(event) for event in events],
            enabled=bool(data.get("enabled", True)),
            description=data.get("description", ""),
        )
