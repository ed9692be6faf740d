"""
Notification events.

Emission is post-commit and best effort; reads go through the inbox.
"""

from .notification_service import NotificationEmitter, NotificationInbox

__all__ = ["NotificationEmitter", "NotificationInbox"]
