from __future__ import annotations

import hashlib
import hmac
import json

import httpx

from ..config import settings
from .base import DeliveryResult, MonitoringEvent


class WebhookNotifier:
    name = "webhook"
    channel = "webhook"

    def __init__(
        self,
        url: str,
        secret: str | None = None,
        timeout_s: int = 20,
        enabled: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.secret = secret
        self.timeout_s = timeout_s
        self.enabled = enabled
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "WebhookNotifier | None":
        if not settings.MONITOR_WEBHOOK_URL:
            return None
        return cls(
            url=settings.MONITOR_WEBHOOK_URL,
            secret=settings.MONITOR_WEBHOOK_SECRET,
            timeout_s=settings.MONITOR_WEBHOOK_TIMEOUT_S,
        )

    def _sign(self, body: bytes) -> str | None:
        if not self.secret:
            return None
        return hmac.new(self.secret.encode("utf-8"), body, hashlib.sha256).hexdigest()

    async def send(self, event: MonitoringEvent) -> DeliveryResult:
        body = json.dumps(event.to_dict()).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        sig = self._sign(body)
        if sig:
            headers["X-Landbot-Signature"] = sig

        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
                r = await client.post(self.url, content=body, headers=headers)
        except httpx.HTTPError as e:
            return DeliveryResult(ok=False, error=str(e))

        if 200 <= r.status_code < 300:
            return DeliveryResult(ok=True)
        return DeliveryResult(ok=False, error=f"HTTP {r.status_code}: {r.text[:500]}")
