"""
Notification Module

Push delivery for the daily match digest.

Usage:
    from notification import NotificationChannelFactory, NotificationMessageBuilder

    channel = NotificationChannelFactory.get_channel('expo', dry_run=True)
    message = NotificationMessageBuilder().build_message(push_token, 3)
    channel.send_message(message)
"""

from notification.channels import (
    NotificationChannel,
    ExpoPushChannel,
    LogChannel,
    NotificationChannelFactory,
)

from notification.message_builder import (
    NotificationMessageBuilder,
    PushMessage,
)

__all__ = [
    # Channels
    'NotificationChannel',
    'ExpoPushChannel',
    'LogChannel',
    'NotificationChannelFactory',
    # Messages
    'NotificationMessageBuilder',
    'PushMessage',
]
