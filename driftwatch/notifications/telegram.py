"""Telegram Bot API notification sink."""

from __future__ import annotations

import os

import httpx
import structlog

from driftwatch.constants import TELEGRAM_MESSAGE_MAX_LENGTH, TELEGRAM_TOKEN_ENV
from driftwatch.errors import NotificationError
from driftwatch.notifications.chat import ChatNotification

logger = structlog.get_logger(__name__)


async def send_telegram_message(
    chat_id: str,
    content: str,
    *,
    token_env: str = TELEGRAM_TOKEN_ENV,
    timeout_s: float = 10.0,
) -> str:
    """Send a Telegram message directly by chat_id and return its message id."""
    token = os.getenv(token_env)
    if not token:
        raise NotificationError("Missing Telegram bot token")

    message = content or ""
    if not message.strip():
        raise NotificationError("Notification content is empty")

    text = message[:TELEGRAM_MESSAGE_MAX_LENGTH]
    if len(message) > TELEGRAM_MESSAGE_MAX_LENGTH:
        logger.warning("message truncated", original_len=len(message), max_len=TELEGRAM_MESSAGE_MAX_LENGTH)

    try:
        async with httpx.AsyncClient(timeout=timeout_s) as client:
            response = await client.post(
                f"https://api.telegram.org/bot{token}/sendMessage",
                data={
                    "chat_id": chat_id,
                    "text": text,
                    "disable_web_page_preview": "true",
                },
            )
    except httpx.HTTPError as exc:
        raise NotificationError(f"Telegram send failed: {exc}") from exc

    if response.status_code >= 400:
        try:
            payload = response.json()
            detail = payload.get("description") or response.text[:200]
        except ValueError:
            detail = response.text[:200]
        raise NotificationError(f"Telegram send failed (HTTP {response.status_code}): {detail}")

    try:
        payload = response.json()
    except ValueError as exc:
        raise NotificationError(
            f"Telegram returned non-JSON (HTTP {response.status_code}): {response.text[:200]}"
        ) from exc

    if not payload.get("ok"):
        detail = payload.get("description") or "telegram api error"
        raise NotificationError(f"Telegram send failed: {detail}")
    result = payload.get("result") or {}
    message_id = result.get("message_id")
    logger.info("telegram message sent", chat_id=chat_id, message_id=message_id)
    return str(message_id)


class TelegramNotification(ChatNotification):
    def __init__(self, chat_id: str, *, token_env: str = TELEGRAM_TOKEN_ENV) -> None:
        self.chat_id = chat_id
        self.token_env = token_env

    async def send(self, text: str) -> None:
        await send_telegram_message(self.chat_id, text, token_env=self.token_env)
