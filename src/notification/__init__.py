"""
In-app notifications for the helpdesk workflow.
"""

from .models import NotificationModel, NotificationType
from .repository import NotificationRepository
from .service import NotificationService

__all__ = [
    "NotificationModel",
    "NotificationType",
    "NotificationRepository",
    "NotificationService",
]
