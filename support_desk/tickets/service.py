from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from .access import AccessPolicy, ActorResolver
from .enrichment import LinkedEntityResolver
from .errors import TicketNotFoundError, TicketValidationError
from .models import (
    CreatedTicket,
    LinkedEntityType,
    Ticket,
    TicketDetail,
    TicketMessage,
    TicketPriority,
)
from .notifications import NotificationDispatcher
from .ports import Clock, MessageStore, TicketStore
from .state import ActorType, TicketLifecycle, TicketStatus
from .validation import (
    clean_content,
    clean_subject,
    parse_enum,
    parse_optional_enum,
    parse_ticket_actor_type,
    require_id,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TicketService:
    """High level orchestration for ticket creation, reads and lifecycle changes."""

    def __init__(
        self,
        tickets: TicketStore,
        messages: MessageStore,
        *,
        resolver: ActorResolver,
        notifier: NotificationDispatcher,
        linked_entities: LinkedEntityResolver,
        policy: AccessPolicy | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._tickets = tickets
        self._messages = messages
        self._resolver = resolver
        self._notifier = notifier
        self._linked_entities = linked_entities
        self._policy = policy or AccessPolicy()
        self._clock = clock or _utcnow

    async def create_ticket(
        self,
        requester_id: str,
        *,
        actor_type: ActorType | str,
        subject: str,
        content: str,
        actor_id: str | None = None,
        linked_entity_type: LinkedEntityType | str | None = None,
        linked_entity_id: str | None = None,
        priority: TicketPriority | str | None = None,
    ) -> CreatedTicket:
        requester_id = require_id(requester_id, "INVALID_REQUESTER_ID")
        actor_id = require_id(actor_id, "INVALID_ACTOR_ID") if actor_id is not None else requester_id
        parsed_actor_type = parse_ticket_actor_type(actor_type)
        cleaned_subject = clean_subject(subject)
        cleaned_content = clean_content(content)
        entity_type = parse_optional_enum(LinkedEntityType, linked_entity_type, "INVALID_LINKED_ENTITY_TYPE")
        blank_entity_id = linked_entity_id is None or (
            isinstance(linked_entity_id, str) and not linked_entity_id.strip()
        )
        entity_id = None if blank_entity_id else require_id(linked_entity_id, "INVALID_LINKED_ENTITY_ID")
        if entity_id is not None and entity_type is None:
            raise TicketValidationError(
                "linkedEntityType is required when linkedEntityId is provided", code="INVALID_LINKED_ENTITY"
            )
        parsed_priority = parse_enum(TicketPriority, priority or TicketPriority.MEDIUM, "INVALID_PRIORITY")

        if actor_id != requester_id:
            requester = await self._resolver.resolve(requester_id)
            self._policy.ensure_actor(requester, actor_id, action="create a ticket")

        now = self._clock()
        ticket = Ticket(
            id=str(uuid.uuid4()),
            actor_type=parsed_actor_type,
            actor_id=actor_id,
            subject=cleaned_subject,
            status=TicketLifecycle.initial_state(),
            priority=parsed_priority,
            linked_entity_type=entity_type,
            linked_entity_id=entity_id,
            assigned_admin_id=None,
            last_message_at=now,
            created_at=now,
            updated_at=now,
        )
        message = TicketMessage(
            id=str(uuid.uuid4()),
            ticket_id=ticket.id,
            sender_type=parsed_actor_type,
            sender_id=actor_id,
            content=cleaned_content,
            created_at=now,
            updated_at=now,
        )

        await self._tickets.create(ticket)
        await self._messages.create(message)
        logger.info("Ticket created: %s by %s:%s", ticket.id, ticket.actor_type.value, ticket.actor_id)

        try:
            admins = await self._resolver.list_admins()
        except Exception:
            logger.warning("Could not list admins to announce ticket %s", ticket.id, exc_info=True)
        else:
            await self._notifier.ticket_created(ticket, admins)

        return CreatedTicket(ticket=ticket, message=message)

    async def get_ticket(self, ticket_id: str, requester_id: str) -> TicketDetail:
        ticket_id = require_id(ticket_id, "INVALID_TICKET_ID")
        requester_id = require_id(requester_id, "INVALID_REQUESTER_ID")

        ticket = await self._load(ticket_id, action="get")
        requester = await self._resolver.resolve(requester_id)
        self._policy.ensure_can_access(ticket, requester, action="get")
        return await self._detail(ticket)

    async def list_actor_tickets(self, requester_id: str, actor_type: ActorType | str) -> list[TicketDetail]:
        """Return the requester's own tickets, newest first."""

        requester_id = require_id(requester_id, "INVALID_REQUESTER_ID")
        parsed_actor_type = parse_ticket_actor_type(actor_type)

        tickets = await self._tickets.find_by_actor(parsed_actor_type, requester_id)
        ordered = sorted(tickets, key=lambda ticket: ticket.created_at, reverse=True)
        numbers = await self._linked_entities.resolve_many(ordered)
        return [TicketDetail(ticket=ticket, linked_entity_number=number) for ticket, number in zip(ordered, numbers)]

    async def assign_to_admin(self, ticket_id: str, requester_id: str, admin_id: str) -> TicketDetail:
        ticket_id = require_id(ticket_id, "INVALID_TICKET_ID")
        requester_id = require_id(requester_id, "INVALID_REQUESTER_ID")
        admin_id = require_id(admin_id, "INVALID_ADMIN_ID")

        requester = await self._resolver.resolve(requester_id)
        self._policy.ensure_admin(requester, action="assign a ticket")
        admin = await self._resolver.resolve_admin(admin_id)
        ticket = await self._load(ticket_id, action="assign")

        fields: dict[str, Any] = {"assigned_admin_id": admin.id, "updated_at": self._clock()}
        next_status = TicketLifecycle.status_after_assignment(ticket.status)
        if next_status != ticket.status:
            fields["status"] = next_status
        updated = await self._write(ticket_id, fields)
        logger.info("Ticket assigned to admin: %s -> %s by admin: %s", ticket_id, admin.id, requester_id)

        await self._notifier.ticket_assigned(
            updated, admin_id=admin.id, assigned_by=requester.name or requester.id
        )
        return await self._detail(updated)

    async def update_status(
        self, ticket_id: str, requester_id: str, status: TicketStatus | str
    ) -> TicketDetail:
        ticket_id = require_id(ticket_id, "INVALID_TICKET_ID")
        requester_id = require_id(requester_id, "INVALID_REQUESTER_ID")
        new_status = parse_enum(TicketStatus, status, "INVALID_STATUS")

        requester = await self._resolver.resolve(requester_id)
        self._policy.ensure_admin(requester, action="update ticket status")
        ticket = await self._load(ticket_id, action="update status of")

        previous = ticket.status
        if previous == new_status:
            updated = ticket
        else:
            updated = await self._write(ticket_id, {"status": new_status, "updated_at": self._clock()})
            logger.info(
                "Ticket status updated: %s from %s to %s by admin: %s",
                ticket_id,
                previous.value,
                new_status.value,
                requester_id,
            )

        notice = TicketLifecycle.status_notice(
            actor_type=updated.actor_type,
            previous=previous,
            new=new_status,
            subject=updated.subject,
        )
        if notice is not None:
            await self._notifier.status_changed(updated, notice)
        return await self._detail(updated)

    async def _load(self, ticket_id: str, *, action: str) -> Ticket:
        ticket = await self._tickets.find_by_id(ticket_id)
        if ticket is None:
            logger.warning("Attempt to %s non-existent ticket: %s", action, ticket_id)
            raise TicketNotFoundError(ticket_id)
        return ticket

    async def _write(self, ticket_id: str, fields: dict[str, Any]) -> Ticket:
        await self._tickets.update_by_id(ticket_id, fields)
        return await self._reload(ticket_id)

    async def _reload(self, ticket_id: str) -> Ticket:
        ticket = await self._tickets.find_by_id(ticket_id)
        if ticket is None:
            raise TicketNotFoundError(ticket_id)
        return ticket

    async def _detail(self, ticket: Ticket) -> TicketDetail:
        number = await self._linked_entities.resolve(ticket)
        return TicketDetail(ticket=ticket, linked_entity_number=number.value_or(None))
