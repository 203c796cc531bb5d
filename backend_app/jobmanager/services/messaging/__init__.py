"""
Messaging Services

- email_service: outbox with optional SMTP delivery
- notification_service: in-app notifications
"""

from .email_service import EmailService
from .notification_service import NotificationService

__all__ = [
    "EmailService",
    "NotificationService",
]
