"""Read-only SQL lookups for the records tickets refer to."""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import func, true
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from packages.db.models import DriverTable, QuoteTable, ReservationTable, UserTable

from .models import Actor, UserRole


class UserRepository:
    """Platform accounts; name search covers regular users only."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_by_id(self, user_id: str) -> Actor | None:
        async with self._session_factory() as session:
            row = await session.get(UserTable, user_id)
            return self._to_actor(row) if row is not None else None

    async def find_by_role(self, role: UserRole) -> Sequence[Actor]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(UserTable)
                .where(UserTable.role == role.value, UserTable.is_active == true())
                .order_by(UserTable.created_at.asc())
            )
            return [self._to_actor(row) for row in result.scalars().all()]

    async def search_by_name(self, query: str, *, limit: int) -> Sequence[Actor]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(UserTable)
                .where(
                    UserTable.role == UserRole.USER.value,
                    func.lower(UserTable.full_name).contains(query.lower(), autoescape=True),
                )
                .order_by(UserTable.full_name.asc())
                .limit(limit)
            )
            return [self._to_actor(row) for row in result.scalars().all()]

    @staticmethod
    def _to_actor(row: UserTable) -> Actor:
        try:
            role = UserRole(row.role)
        except ValueError:
            role = UserRole.USER
        return Actor(id=row.id, full_name=row.full_name, role=role)


class DriverRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_by_id(self, driver_id: str) -> Actor | None:
        async with self._session_factory() as session:
            row = await session.get(DriverTable, driver_id)
            return Actor(id=row.id, full_name=row.full_name) if row is not None else None

    async def search_by_name(self, query: str, *, limit: int) -> Sequence[Actor]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(DriverTable)
                .where(func.lower(DriverTable.full_name).contains(query.lower(), autoescape=True))
                .order_by(DriverTable.full_name.asc())
                .limit(limit)
            )
            return [Actor(id=row.id, full_name=row.full_name) for row in result.scalars().all()]


class QuoteRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_number(self, entity_id: str) -> str | None:
        async with self._session_factory() as session:
            row = await session.get(QuoteTable, entity_id)
            return row.quote_number if row is not None else None


class ReservationRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_number(self, entity_id: str) -> str | None:
        async with self._session_factory() as session:
            row = await session.get(ReservationTable, entity_id)
            return row.reservation_number if row is not None else None
