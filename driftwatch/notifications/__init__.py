"""Notification sinks for drift findings."""

from __future__ import annotations

from driftwatch.config.schema import Settings
from driftwatch.core.protocols import Notification
from driftwatch.notifications.log import LogNotification
from driftwatch.notifications.multi import MultiNotification
from driftwatch.notifications.slack import SlackWebhook
from driftwatch.notifications.telegram import TelegramNotification


def build_notification(settings: Settings) -> MultiNotification:
    """Compose the log sink with every chat sink configured in settings."""
    sinks: list[Notification] = [LogNotification()]
    if settings.slack_webhook_url:
        sinks.append(SlackWebhook(settings.slack_webhook_url))
    if settings.telegram_chat_id:
        sinks.append(TelegramNotification(settings.telegram_chat_id, token_env=settings.telegram_token_env))
    return MultiNotification(sinks)


__all__ = [
    "LogNotification",
    "MultiNotification",
    "SlackWebhook",
    "TelegramNotification",
    "build_notification",
]
