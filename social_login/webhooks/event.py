"""Webhook event data model."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class EventType(StrEnum):
    """Event types emitted by the reconciliation engine."""

    CREDENTIAL_CREATED = "credential.created"


@dataclass
class WebhookEvent:
    """Represents a webhook event to be delivered."""

    event_type: str
    data: dict[str, Any]
    event_id: uuid.UUID = field(default_factory=uuid.uuid4)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_payload(self) -> dict[str, Any]:
        """Convert to JSON-serializable payload."""
        return {
            "event_id": str(self.event_id),
            "event_type": str(self.event_type),
            "timestamp": self.timestamp.isoformat(),
            "data": self.data,
        }
