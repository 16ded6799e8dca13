from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from .access import AccessPolicy, ActorResolver
from .errors import TicketNotFoundError
from .models import MessagePage, Ticket, TicketMessage
from .ports import Clock, MessageStore, TicketStore
from .validation import MAX_PAGE_SIZE, check_page_window, clean_content, require_id

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE_PAGE_SIZE = 50


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MessageThread:
    """Append-only conversation attached to a ticket."""

    def __init__(
        self,
        tickets: TicketStore,
        messages: MessageStore,
        *,
        resolver: ActorResolver,
        policy: AccessPolicy | None = None,
        clock: Clock | None = None,
        default_page_size: int = DEFAULT_MESSAGE_PAGE_SIZE,
        max_page_size: int = MAX_PAGE_SIZE,
    ) -> None:
        self._tickets = tickets
        self._messages = messages
        self._resolver = resolver
        self._policy = policy or AccessPolicy()
        self._clock = clock or _utcnow
        self._default_page_size = default_page_size
        self._max_page_size = max_page_size

    async def add_message(self, ticket_id: str, requester_id: str, content: str) -> TicketMessage:
        ticket_id = require_id(ticket_id, "INVALID_TICKET_ID")
        requester_id = require_id(requester_id, "INVALID_SENDER_ID")
        cleaned = clean_content(content)

        ticket = await self._load(ticket_id, action="add message to")
        requester = await self._resolver.resolve(requester_id)
        sender_type = self._policy.ensure_can_access(ticket, requester, action="add message to")

        now = self._clock()
        message = TicketMessage(
            id=str(uuid.uuid4()),
            ticket_id=ticket_id,
            sender_type=sender_type,
            sender_id=requester_id,
            content=cleaned,
            created_at=now,
            updated_at=now,
        )
        await self._messages.create(message)
        # Recency index used by the admin listing; no other ticket field moves.
        await self._tickets.update_by_id(ticket_id, {"last_message_at": message.created_at})

        logger.info(
            "Message added: %s to ticket: %s by %s:%s", message.id, ticket_id, sender_type.value, requester_id
        )
        return message

    async def list_messages(
        self,
        ticket_id: str,
        requester_id: str,
        *,
        page: int | None = None,
        limit: int | None = None,
    ) -> MessagePage:
        ticket_id = require_id(ticket_id, "INVALID_TICKET_ID")
        requester_id = require_id(requester_id, "INVALID_REQUESTER_ID")
        page = 1 if page is None else page
        limit = self._default_page_size if limit is None else limit
        check_page_window(page, limit, maximum=self._max_page_size)

        ticket = await self._load(ticket_id, action="get messages from")
        requester = await self._resolver.resolve(requester_id)
        self._policy.ensure_can_access(ticket, requester, action="get messages from")

        total = await self._messages.count_by_ticket_id(ticket_id)
        items = await self._messages.find_by_ticket_id_paginated(ticket_id, page, limit)
        return MessagePage(items=list(items), total=total, page=page, limit=limit)

    async def _load(self, ticket_id: str, *, action: str) -> Ticket:
        ticket = await self._tickets.find_by_id(ticket_id)
        if ticket is None:
            logger.warning("Attempt to %s non-existent ticket: %s", action, ticket_id)
            raise TicketNotFoundError(ticket_id)
        return ticket
