"""Notification dispatch for task and functional requirement changes.

Dispatch is best-effort: a failing notifier is logged and never aborts the
mutation that triggered it.
"""
import logging
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from .models import Collection, NotificationType
from .store import DocumentStore

logger = logging.getLogger("pms-core.notifications")


class Notifier(ABC):
    """Base notifier. Subclasses deliver one notification per recipient."""

    @abstractmethod
    def send(
        self,
        notification_type: NotificationType,
        user_ids: list[str],
        title: str,
        message: str,
        related_entity_id: Optional[str] = None,
        related_entity_type: Optional[str] = None,
        workspace_id: Optional[str] = None,
    ) -> None:
        """Deliver one notification to each of ``user_ids``."""


class StoreNotifier(Notifier):
    """Writes notifications into the ``notifications`` collection."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def send(
        self,
        notification_type: NotificationType,
        user_ids: list[str],
        title: str,
        message: str,
        related_entity_id: Optional[str] = None,
        related_entity_type: Optional[str] = None,
        workspace_id: Optional[str] = None,
    ) -> None:
        for user_id in user_ids:
            self.store.create(
                Collection.NOTIFICATIONS,
                {
                    "workspace_id": workspace_id,
                    "user_id": user_id,
                    "type": notification_type.value,
                    "title": title,
                    "message": message,
                    "related_entity_id": related_entity_id,
                    "related_entity_type": related_entity_type,
                    "is_read": False,
                },
            )


class NullNotifier(Notifier):
    """Discards every notification."""

    def send(self, notification_type, user_ids, title, message,
             related_entity_id=None, related_entity_type=None, workspace_id=None) -> None:
        return None


def _valid_recipients(user_ids: Optional[Iterable[str]]) -> list[str]:
    recipients = []
    for user_id in user_ids or []:
        if isinstance(user_id, str) and user_id.strip() and user_id not in recipients:
            recipients.append(user_id)
    return recipients


def notify(
    notifier: Optional[Notifier],
    notification_type: NotificationType,
    user_ids: Optional[Iterable[str]],
    title: str,
    message: str,
    related_entity_id: Optional[str] = None,
    related_entity_type: Optional[str] = None,
    workspace_id: Optional[str] = None,
) -> bool:
    """
    Send a notification without ever raising.

    Returns:
        True if the notifier accepted it, False if skipped or failed
    """
    recipients = _valid_recipients(user_ids)
    if notifier is None or not recipients:
        return False

    try:
        notifier.send(
            notification_type,
            recipients,
            title,
            message,
            related_entity_id=related_entity_id,
            related_entity_type=related_entity_type,
            workspace_id=workspace_id,
        )
    except Exception as e:
        logger.warning(f"Failed to send {notification_type.value} notification: {e}")
        return False

    logger.debug(f"Sent {notification_type.value} to {len(recipients)} users")
    return True
