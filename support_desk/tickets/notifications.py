from __future__ import annotations

import logging
from typing import Iterable

from .models import Actor, Notification, NotificationType, Ticket
from .ports import NotificationSender
from .state import StatusNotice

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Fire-and-forget delivery with failures isolated per recipient."""

    def __init__(self, sender: NotificationSender) -> None:
        self._sender = sender

    async def send(self, notification: Notification) -> bool:
        try:
            await self._sender.send(notification)
        except Exception:
            logger.warning(
                "Failed to deliver %s notification to %s",
                notification.type.value,
                notification.user_id,
                exc_info=True,
            )
            return False
        logger.info("Notification %s sent to %s", notification.type.value, notification.user_id)
        return True

    async def fan_out(
        self,
        recipients: Iterable[str],
        *,
        notification_type: NotificationType,
        title: str,
        message: str,
    ) -> int:
        """Send the same event to every recipient; return how many succeeded."""

        delivered = 0
        for user_id in recipients:
            if await self.send(Notification(user_id=user_id, type=notification_type, title=title, message=message)):
                delivered += 1
        return delivered

    async def ticket_created(self, ticket: Ticket, admins: Iterable[Actor]) -> int:
        return await self.fan_out(
            [admin.id for admin in admins],
            notification_type=NotificationType.TICKET_CREATED,
            title=f"New ticket created: {ticket.subject}",
            message=f"A new ticket has been created by {ticket.actor_type.value}",
        )

    async def ticket_assigned(self, ticket: Ticket, *, admin_id: str, assigned_by: str) -> bool:
        return await self.send(
            Notification(
                user_id=admin_id,
                type=NotificationType.TICKET_ASSIGNED_TO_ADMIN,
                title=f"Ticket assigned to you: {ticket.subject}",
                message=f"A ticket has been assigned to you by {assigned_by}",
            )
        )

    async def status_changed(self, ticket: Ticket, notice: StatusNotice) -> bool:
        return await self.send(
            Notification(
                user_id=ticket.actor_id,
                type=NotificationType.TICKET_STATUS_CHANGED,
                title=notice.title,
                message=notice.message,
            )
        )
