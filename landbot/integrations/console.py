from __future__ import annotations

import logging

from .base import DeliveryResult, EventType, MonitoringEvent

log = logging.getLogger(__name__)


def format_event(event: MonitoringEvent) -> str:
    prefix = f"[{event.timestamp.isoformat()}] [{event.profile_name}]"
    d = event.data

    if event.type == EventType.new_properties:
        return f"{prefix} Found {d.get('count', 0)} new properties"
    if event.type == EventType.price_changes:
        return f"{prefix} Detected {d.get('count', 0)} price changes"
    if event.type == EventType.search_complete:
        return (
            f"{prefix} Search completed in {float(d.get('duration_s', 0.0)):.1f}s - "
            f"{d.get('total_properties', 0)} total, {d.get('new_properties', 0)} new, "
            f"{d.get('price_changes', 0)} price changes"
        )
    return f"{prefix} Search failed: {d.get('error')}"


class ConsoleNotifier:
    name = "console"
    channel = "console"

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled

    async def send(self, event: MonitoringEvent) -> DeliveryResult:
        message = format_event(event)
        if event.type == EventType.search_error:
            log.error(message)
        else:
            log.info(message)
        return DeliveryResult(ok=True)
