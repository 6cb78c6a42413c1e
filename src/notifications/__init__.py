"""Notifications: webhook digests of collected items."""

from src.notifications.channels import Notifier, WebhookNotifier, format_digest
from src.notifications.config import NotificationConfig
from src.notifications.repository import NotifierConfigRepository
from src.notifications.schemas import NotifierConfig
from src.notifications.service import NotificationService

__all__ = [
    "NotificationConfig",
    "NotificationService",
    "Notifier",
    "NotifierConfig",
    "NotifierConfigRepository",
    "WebhookNotifier",
    "format_digest",
]
