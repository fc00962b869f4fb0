"""Slack incoming-webhook notification sink."""

from __future__ import annotations

import httpx
import structlog

from driftwatch.constants import SLACK_TIMEOUT_S
from driftwatch.errors import NotificationError
from driftwatch.notifications.chat import ChatNotification

logger = structlog.get_logger(__name__)


class SlackWebhook(ChatNotification):
    def __init__(self, webhook_url: str, *, timeout_s: float = SLACK_TIMEOUT_S) -> None:
        self.webhook_url = webhook_url
        self.timeout_s = timeout_s

    async def send(self, text: str) -> None:
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                response = await client.post(self.webhook_url, json={"text": text})
        except httpx.HTTPError as exc:
            raise NotificationError(f"failed to send slack webhook request: {exc}") from exc

        if response.status_code != 200:
            raise NotificationError(
                f"failed to send slack webhook request (HTTP {response.status_code}): {response.text[:200]}"
            )
        logger.debug("slack message sent", chars=len(text))
