"""Notification system for Delivery Boy."""

from .base import DispatchError, Notifier
from .discord import DiscordWebhookNotifier
from .dispatcher import DispatchResult, WebhookDispatcher

__all__ = [
    "DispatchError",
    "Notifier",
    "DiscordWebhookNotifier",
    "DispatchResult",
    "WebhookDispatcher",
]
