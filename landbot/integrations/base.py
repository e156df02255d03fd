from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol


class EventType(str, enum.Enum):
    new_properties = "new_properties"
    price_changes = "price_changes"
    search_complete = "search_complete"
    search_error = "search_error"


@dataclass(frozen=True)
class MonitoringEvent:
    type: EventType
    timestamp: datetime
    profile_name: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "timestamp": self.timestamp.isoformat(),
            "profile": self.profile_name,
            **self.data,
        }


@dataclass(frozen=True)
class DeliveryResult:
    ok: bool
    error: str | None = None


class NotificationProvider(Protocol):
    name: str
    channel: str  # console|file|webhook
    enabled: bool

    async def send(self, event: MonitoringEvent) -> DeliveryResult:
        ...
