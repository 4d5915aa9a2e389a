#!/usr/bin/env python3
"""
Notification Channels

Delivery backends for the daily match digest. Every channel implements the
same interface so the sweep never depends on a concrete transport.

Usage:
    from notification.channels import NotificationChannelFactory

    channel = NotificationChannelFactory.get_channel('expo', push_url=...)
    channel.send(push_token, title, body, metadata)
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
import logging
import os

import requests

from notification.message_builder import PushMessage

logger = logging.getLogger(__name__)

EXPO_PUSH_URL = "https://exp.host/--/api/v2/push/send"


def _is_dry_run_mode() -> bool:
    """Check if notification channels should run in dry-run (log-only) mode."""
    return os.environ.get('NOTIFICATION_DRY_RUN', '').lower() in ('true', '1', 'yes')


def _mask_token(token: str) -> str:
    """
    Mask a push token for safe logging.

    Keeps the first 12 characters, e.g. "ExponentPush***"
    """
    if not token:
        return "***"
    return f"{token[:12]}***" if len(token) > 12 else "***"


class NotificationChannel(ABC):
    """
    Delivery transport for a user's match digest.

    Implementations report success as a bool and never raise for transport
    failures; the sweep records the outcome either way.
    """

    @property
    @abstractmethod
    def channel_type(self) -> str:
        """Registry name of this channel."""
        pass

    @abstractmethod
    def send(self, recipient: str, subject: str, body: str, metadata: Dict[str, Any]) -> bool:
        """
        Deliver one message.

        Args:
            recipient: Device push token (or channel-specific address)
            subject: Title shown in the notification
            body: Digest text
            metadata: Data payload delivered alongside the message

        Returns:
            True when the transport accepted the message
        """
        pass

    def send_message(self, message: PushMessage) -> bool:
        return self.send(message.to, message.title, message.body, message.data)


class ExpoPushChannel(NotificationChannel):
    """Mobile push via the Expo push service."""

    def __init__(
        self,
        push_url: str = EXPO_PUSH_URL,
        timeout: float = 10,
        dry_run: Optional[bool] = None,
        session: Optional[requests.Session] = None,
    ):
        self.push_url = push_url
        self.timeout = timeout
        self.dry_run = _is_dry_run_mode() if dry_run is None else dry_run
        self.session = session or requests.Session()

    @property
    def channel_type(self) -> str:
        return 'expo'

    def send(self, recipient: str, subject: str, body: str, metadata: Dict[str, Any]) -> bool:
        if not recipient:
            logger.error("Expo push skipped - no push token")
            return False

        message = PushMessage(to=recipient, title=subject, body=body, data=metadata or {"type": "job_matches"})

        if self.dry_run:
            logger.info(f"[DRY RUN] Push to {_mask_token(recipient)}: {subject} - {body}")
            return True

        try:
            response = self.session.post(
                self.push_url,
                json=message.model_dump(),
                headers={
                    'Accept': 'application/json',
                    'Content-Type': 'application/json',
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            result = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Failed to send push to {_mask_token(recipient)}: {e}")
            return False

        data = result.get('data') if isinstance(result, dict) else None
        if isinstance(data, list):
            data = data[0] if data else None
        status = data.get('status') if isinstance(data, dict) else None

        if status != 'ok':
            logger.warning(f"Push rejected for {_mask_token(recipient)}: {result}")
            return False

        logger.info(f"Push sent to {_mask_token(recipient)}")
        return True


class LogChannel(NotificationChannel):
    """Writes notifications to the log only. Used for local runs."""

    @property
    def channel_type(self) -> str:
        return 'log'

    def send(self, recipient: str, subject: str, body: str, metadata: Dict[str, Any]) -> bool:
        logger.info(f"[LOG] To: {_mask_token(recipient)}, Title: {subject}, Body: {body}")
        return True


class NotificationChannelFactory:
    """
    Factory for creating notification channels by type name.
    """

    _channels: Dict[str, type] = {
        'expo': ExpoPushChannel,
        'log': LogChannel,
    }

    @classmethod
    def get_channel(cls, channel_type: str, **kwargs) -> NotificationChannel:
        """
        Get a notification channel instance by type.

        Raises:
            ValueError: If channel type is not registered
        """
        channel_class = cls._channels.get(channel_type.lower())
        if not channel_class:
            raise ValueError(f"Unknown channel type: {channel_type}. "
                             f"Available: {', '.join(cls._channels.keys())}")
        return channel_class(**kwargs)

    @classmethod
    def register_channel(cls, channel_type: str, channel_class: type):
        if not issubclass(channel_class, NotificationChannel):
            raise ValueError("Channel class must extend NotificationChannel")

        cls._channels[channel_type.lower()] = channel_class
        logger.info(f"Registered new channel type: {channel_type}")

    @classmethod
    def list_channels(cls) -> list:
        return list(cls._channels.keys())
