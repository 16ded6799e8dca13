"""Boundary contracts the ticketing core depends on.

The SQL-backed implementations live in :mod:`support_desk.tickets.repository`
and :mod:`support_desk.tickets.directory`; tests substitute ``AsyncMock``
objects with the same shape.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Protocol, Sequence

from .models import Actor, Notification, Ticket, TicketFilter, TicketMessage, UserRole
from .state import ActorType, TicketStatus


class TicketStore(Protocol):
    async def create(self, ticket: Ticket) -> None:
        ...

    async def find_by_id(self, ticket_id: str) -> Ticket | None:
        ...

    async def update_by_id(self, ticket_id: str, fields: Mapping[str, Any]) -> bool:
        ...

    async def find_by_actor(self, actor_type: ActorType, actor_id: str) -> Sequence[Ticket]:
        ...

    async def find_by_status(self, status: TicketStatus) -> Sequence[Ticket]:
        ...

    async def find_by_actor_type(self, actor_type: ActorType) -> Sequence[Ticket]:
        ...

    async def find_by_assigned_admin(self, admin_id: str) -> Sequence[Ticket]:
        ...

    async def find_all_with_filters(self, query: TicketFilter) -> tuple[Sequence[Ticket], int]:
        ...


class MessageStore(Protocol):
    async def create(self, message: TicketMessage) -> None:
        ...

    async def find_by_ticket_id(self, ticket_id: str) -> Sequence[TicketMessage]:
        ...

    async def find_by_ticket_id_paginated(self, ticket_id: str, page: int, limit: int) -> Sequence[TicketMessage]:
        ...

    async def count_by_ticket_id(self, ticket_id: str) -> int:
        ...


class UserDirectory(Protocol):
    async def find_by_id(self, user_id: str) -> Actor | None:
        ...

    async def find_by_role(self, role: UserRole) -> Sequence[Actor]:
        ...

    async def search_by_name(self, query: str, *, limit: int) -> Sequence[Actor]:
        ...


class DriverDirectory(Protocol):
    async def find_by_id(self, driver_id: str) -> Actor | None:
        ...

    async def search_by_name(self, query: str, *, limit: int) -> Sequence[Actor]:
        ...


class EntityNumberLookup(Protocol):
    async def find_number(self, entity_id: str) -> str | None:
        ...


class NotificationSender(Protocol):
    async def send(self, notification: Notification) -> None:
        ...


class Clock(Protocol):
    def __call__(self) -> datetime:
        ...
