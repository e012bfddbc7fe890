"""Notification module for Librus Bot."""

from librus_bot.notify.batcher import NotificationBatcher
from librus_bot.notify.formatters import PayloadFormatter
from librus_bot.notify.webhook import WebhookNotifier

__all__ = ["NotificationBatcher", "PayloadFormatter", "WebhookNotifier"]
