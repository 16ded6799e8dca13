from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from support_desk.tickets import (
    ActorResolver,
    AdminQueryEngine,
    LinkedEntityResolver,
    MessageThread,
    NotificationDispatcher,
    TicketService,
)
from support_desk.tickets.models import Actor, Ticket, TicketMessage, TicketPriority, UserRole
from support_desk.tickets.state import ActorType, TicketStatus

BASE_TIME = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


class SteppingClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime = BASE_TIME) -> None:
        self._current = start

    def __call__(self) -> datetime:
        self._current += timedelta(seconds=1)
        return self._current


class InMemoryTicketStore:
    def __init__(self) -> None:
        self.rows: dict[str, Ticket] = {}
        self.create = AsyncMock(side_effect=self._create)
        self.find_by_id = AsyncMock(side_effect=self._find_by_id)
        self.update_by_id = AsyncMock(side_effect=self._update_by_id)
        self.find_by_actor = AsyncMock(side_effect=self._find_by_actor)
        self.find_all_with_filters = AsyncMock(return_value=([], 0))

    def add(self, ticket: Ticket) -> Ticket:
        self.rows[ticket.id] = ticket
        return ticket

    async def _create(self, ticket: Ticket) -> None:
        self.rows[ticket.id] = replace(ticket)

    async def _find_by_id(self, ticket_id: str) -> Ticket | None:
        ticket = self.rows.get(ticket_id)
        if ticket is None or ticket.is_deleted:
            return None
        return replace(ticket)

    async def _update_by_id(self, ticket_id: str, fields) -> bool:
        if ticket_id not in self.rows:
            return False
        self.rows[ticket_id] = replace(self.rows[ticket_id], **fields)
        return True

    async def _find_by_actor(self, actor_type: ActorType, actor_id: str) -> list[Ticket]:
        return [
            replace(ticket)
            for ticket in self.rows.values()
            if ticket.actor_type == actor_type and ticket.actor_id == actor_id and not ticket.is_deleted
        ]


class InMemoryMessageStore:
    def __init__(self) -> None:
        self.rows: list[TicketMessage] = []
        self.create = AsyncMock(side_effect=self._create)
        self.find_by_ticket_id = AsyncMock(side_effect=self._find_by_ticket_id)
        self.find_by_ticket_id_paginated = AsyncMock(side_effect=self._paginated)
        self.count_by_ticket_id = AsyncMock(side_effect=self._count)

    async def _create(self, message: TicketMessage) -> None:
        self.rows.append(message)

    async def _find_by_ticket_id(self, ticket_id: str) -> list[TicketMessage]:
        return sorted(
            (message for message in self.rows if message.ticket_id == ticket_id),
            key=lambda message: message.created_at,
        )

    async def _paginated(self, ticket_id: str, page: int, limit: int) -> list[TicketMessage]:
        thread = await self._find_by_ticket_id(ticket_id)
        start = (page - 1) * limit
        return thread[start : start + limit]

    async def _count(self, ticket_id: str) -> int:
        return len(await self._find_by_ticket_id(ticket_id))


class StubDirectory:
    """User or driver directory backed by a dict of actors."""

    def __init__(self, actors: list[Actor]) -> None:
        self.actors = {actor.id: actor for actor in actors}
        self.find_by_id = AsyncMock(side_effect=self._find_by_id)
        self.find_by_role = AsyncMock(side_effect=self._find_by_role)
        self.search_by_name = AsyncMock(side_effect=self._search_by_name)

    async def _find_by_id(self, actor_id: str) -> Actor | None:
        return self.actors.get(actor_id)

    async def _find_by_role(self, role: UserRole) -> list[Actor]:
        return [actor for actor in self.actors.values() if actor.role == role]

    async def _search_by_name(self, query: str, *, limit: int) -> list[Actor]:
        matches = [
            actor
            for actor in self.actors.values()
            if actor.role == UserRole.USER and query.lower() in actor.full_name.lower()
        ]
        return matches[:limit]


@pytest.fixture
def make_ticket():
    def factory(**overrides) -> Ticket:
        values = {
            "id": "ticket-1",
            "actor_type": ActorType.END_USER,
            "actor_id": "user-1",
            "subject": "Refund not received",
            "status": TicketStatus.OPEN,
            "priority": TicketPriority.MEDIUM,
            "created_at": BASE_TIME,
            "updated_at": BASE_TIME,
            "last_message_at": BASE_TIME,
        }
        values.update(overrides)
        return Ticket(**values)

    return factory


@pytest.fixture
def users() -> StubDirectory:
    return StubDirectory(
        [
            Actor(id="user-1", full_name="Ursula Stone"),
            Actor(id="user-2", full_name="Omar Field"),
            Actor(id="admin-1", full_name="Ada Admin", role=UserRole.ADMIN),
            Actor(id="admin-2", full_name="Alan Admin", role=UserRole.ADMIN),
        ]
    )


@pytest.fixture
def drivers() -> StubDirectory:
    return StubDirectory([Actor(id="driver-1", full_name="Dana Wheel")])


@pytest.fixture
def desk(users: StubDirectory, drivers: StubDirectory) -> SimpleNamespace:
    tickets = InMemoryTicketStore()
    messages = InMemoryMessageStore()
    sender = AsyncMock()
    quotes = AsyncMock()
    quotes.find_number = AsyncMock(return_value="Q-1001")
    reservations = AsyncMock()
    reservations.find_number = AsyncMock(return_value="R-2002")
    clock = SteppingClock()
    resolver = ActorResolver(users)

    return SimpleNamespace(
        tickets=tickets,
        messages=messages,
        users=users,
        drivers=drivers,
        sender=sender,
        quotes=quotes,
        reservations=reservations,
        service=TicketService(
            tickets,
            messages,
            resolver=resolver,
            notifier=NotificationDispatcher(sender),
            linked_entities=LinkedEntityResolver(quotes=quotes, reservations=reservations),
            clock=clock,
        ),
        thread=MessageThread(tickets, messages, resolver=resolver, clock=clock),
        query=AdminQueryEngine(tickets, users=users, drivers=drivers, resolver=resolver),
    )


def sent_notifications(sender: AsyncMock) -> list:
    return [call.args[0] for call in sender.send.await_args_list]


@pytest.fixture
def notifications():
    return sent_notifications
