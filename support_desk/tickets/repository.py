from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Sequence

from sqlalchemy import false, func, update
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel, select

from packages.db.models import NotificationTable, TicketMessageTable, TicketTable

from .models import (
    LinkedEntityType,
    Notification,
    SortOrder,
    Ticket,
    TicketFilter,
    TicketMessage,
    TicketPriority,
    TicketSortField,
)
from .state import ActorType, TicketStatus


class TicketRepository:
    """Persistence helper wrapping the `support_tickets` table."""

    _UPDATABLE_FIELDS = frozenset(
        {"status", "priority", "assigned_admin_id", "last_message_at", "updated_at", "subject", "is_deleted"}
    )

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        engine: AsyncEngine | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._engine: AsyncEngine | None = engine

    async def ensure_schema(self) -> None:
        if self._engine is None:
            raise RuntimeError("Session factory is not bound to an async engine")
        async with self._engine.begin() as connection:
            await connection.run_sync(SQLModel.metadata.create_all)

    async def create(self, ticket: Ticket) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                session.add(
                    TicketTable(
                        id=ticket.id,
                        actor_type=ticket.actor_type.value,
                        actor_id=ticket.actor_id,
                        subject=ticket.subject,
                        linked_entity_type=ticket.linked_entity_type.value if ticket.linked_entity_type else None,
                        linked_entity_id=ticket.linked_entity_id,
                        status=ticket.status.value,
                        priority=ticket.priority.value,
                        assigned_admin_id=ticket.assigned_admin_id,
                        last_message_at=ticket.last_message_at,
                        is_deleted=ticket.is_deleted,
                        created_at=ticket.created_at,
                        updated_at=ticket.updated_at,
                    )
                )

    async def find_by_id(self, ticket_id: str) -> Ticket | None:
        async with self._session_factory() as session:
            row = await session.get(TicketTable, ticket_id)
            if row is None or row.is_deleted:
                return None
            return self._table_to_ticket(row)

    async def update_by_id(self, ticket_id: str, fields: Mapping[str, Any]) -> bool:
        unknown = set(fields) - self._UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update ticket fields: {sorted(unknown)}")
        values = {name: value.value if isinstance(value, Enum) else value for name, value in fields.items()}
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    update(TicketTable)
                    .where(TicketTable.id == ticket_id, TicketTable.is_deleted == false())
                    .values(**values)
                )
        return bool(result.rowcount)

    async def find_by_actor(self, actor_type: ActorType, actor_id: str) -> Sequence[Ticket]:
        return await self._find(TicketTable.actor_type == actor_type.value, TicketTable.actor_id == actor_id)

    async def find_by_status(self, status: TicketStatus) -> Sequence[Ticket]:
        return await self._find(TicketTable.status == status.value)

    async def find_by_actor_type(self, actor_type: ActorType) -> Sequence[Ticket]:
        return await self._find(TicketTable.actor_type == actor_type.value)

    async def find_by_assigned_admin(self, admin_id: str) -> Sequence[Ticket]:
        return await self._find(TicketTable.assigned_admin_id == admin_id)

    async def find_all_with_filters(self, query: TicketFilter) -> tuple[Sequence[Ticket], int]:
        """Filter, sort and slice in the database; return the page and the filtered total."""

        if query.actor_ids is not None and not query.actor_ids:
            return [], 0

        conditions = self._filter_conditions(query)
        if query.sort_by == TicketSortField.CREATED_AT:
            sort_key = TicketTable.created_at
        else:
            sort_key = func.coalesce(TicketTable.last_message_at, TicketTable.created_at)
        if query.sort_order == SortOrder.ASC:
            ordering = (sort_key.asc(), TicketTable.id.asc())
        else:
            ordering = (sort_key.desc(), TicketTable.id.desc())

        async with self._session_factory() as session:
            total = (
                await session.execute(select(func.count()).select_from(TicketTable).where(*conditions))
            ).scalar_one()
            result = await session.execute(
                select(TicketTable).where(*conditions).order_by(*ordering).offset(query.offset).limit(query.limit)
            )
            rows = result.scalars().all()
        return [self._table_to_ticket(row) for row in rows], int(total)

    async def _find(self, *conditions: Any) -> Sequence[Ticket]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(TicketTable)
                .where(TicketTable.is_deleted == false(), *conditions)
                .order_by(TicketTable.created_at.desc())
            )
            return [self._table_to_ticket(row) for row in result.scalars().all()]

    @staticmethod
    def _filter_conditions(query: TicketFilter) -> list[Any]:
        conditions: list[Any] = [TicketTable.is_deleted == false()]
        if query.status is not None:
            conditions.append(TicketTable.status == query.status.value)
        if query.actor_type is not None:
            conditions.append(TicketTable.actor_type == query.actor_type.value)
        if query.assigned_admin_id is not None:
            conditions.append(TicketTable.assigned_admin_id == query.assigned_admin_id)
        if query.actor_ids is not None:
            conditions.append(TicketTable.actor_id.in_(list(query.actor_ids)))
        return conditions

    @staticmethod
    def _table_to_ticket(row: TicketTable) -> Ticket:
        return Ticket(
            id=row.id,
            actor_type=ActorType(row.actor_type),
            actor_id=row.actor_id,
            subject=row.subject,
            status=TicketStatus(row.status),
            priority=TicketPriority(row.priority),
            linked_entity_type=LinkedEntityType(row.linked_entity_type) if row.linked_entity_type else None,
            linked_entity_id=row.linked_entity_id,
            assigned_admin_id=row.assigned_admin_id,
            last_message_at=_ensure_datetime(row.last_message_at) if row.last_message_at else None,
            is_deleted=bool(row.is_deleted),
            created_at=_ensure_datetime(row.created_at),
            updated_at=_ensure_datetime(row.updated_at),
        )


class TicketMessageRepository:
    """Persistence helper wrapping the `support_ticket_messages` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create(self, message: TicketMessage) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                session.add(
                    TicketMessageTable(
                        id=message.id,
                        ticket_id=message.ticket_id,
                        sender_type=message.sender_type.value,
                        sender_id=message.sender_id,
                        content=message.content,
                        is_deleted=message.is_deleted,
                        created_at=message.created_at,
                        updated_at=message.updated_at,
                    )
                )

    async def find_by_ticket_id(self, ticket_id: str) -> Sequence[TicketMessage]:
        async with self._session_factory() as session:
            result = await session.execute(self._thread_query(ticket_id))
            return [self._table_to_message(row) for row in result.scalars().all()]

    async def find_by_ticket_id_paginated(self, ticket_id: str, page: int, limit: int) -> Sequence[TicketMessage]:
        async with self._session_factory() as session:
            result = await session.execute(
                self._thread_query(ticket_id).offset((page - 1) * limit).limit(limit)
            )
            return [self._table_to_message(row) for row in result.scalars().all()]

    async def count_by_ticket_id(self, ticket_id: str) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                select(func.count())
                .select_from(TicketMessageTable)
                .where(TicketMessageTable.ticket_id == ticket_id, TicketMessageTable.is_deleted == false())
            )
            return int(result.scalar_one())

    @staticmethod
    def _thread_query(ticket_id: str):
        return (
            select(TicketMessageTable)
            .where(TicketMessageTable.ticket_id == ticket_id, TicketMessageTable.is_deleted == false())
            .order_by(TicketMessageTable.created_at.asc(), TicketMessageTable.id.asc())
        )

    @staticmethod
    def _table_to_message(row: TicketMessageTable) -> TicketMessage:
        return TicketMessage(
            id=row.id,
            ticket_id=row.ticket_id,
            sender_type=ActorType(row.sender_type),
            sender_id=row.sender_id,
            content=row.content,
            is_deleted=bool(row.is_deleted),
            created_at=_ensure_datetime(row.created_at),
            updated_at=_ensure_datetime(row.updated_at),
        )


class NotificationRepository:
    """Stores in-app notifications; used as the default notification sender."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def send(self, notification: Notification) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                session.add(
                    NotificationTable(
                        user_id=notification.user_id,
                        type=notification.type.value,
                        title=notification.title,
                        message=notification.message,
                        is_read=False,
                        created_at=datetime.now(timezone.utc),
                    )
                )

    async def list_for_user(self, user_id: str) -> Sequence[NotificationTable]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(NotificationTable)
                .where(NotificationTable.user_id == user_id)
                .order_by(NotificationTable.created_at.asc())
            )
            return list(result.scalars().all())


def _ensure_datetime(value: datetime | None) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    raise TypeError("Expected datetime value from database")
