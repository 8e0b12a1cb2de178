# src/farm_tasks/notifications/push.py

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class WebhookPushNotifier:
    """
    Background notification channel: POSTs a JSON payload to a push endpoint.

    Payload: {"title": ..., "body": ..., "data": {"url": <action url>}}.
    Delivery and click routing belong to whatever sits behind the endpoint.
    Errors are raised so the dispatcher can fall back to a foreground notification.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not url:
            raise ValueError("push url is required")
        self.url = url
        self.timeout = timeout
        self._transport = transport

    async def show_notification(
        self,
        title: str,
        *,
        body: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        payload = {"title": title, "body": body or "", "data": data or {}}
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(self.url, json=payload)
            response.raise_for_status()
        logger.info("Push notification sent: %s", title)
