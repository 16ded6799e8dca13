"""SQLModel table definitions for the support desk data layer."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    """Return a timezone aware UTC timestamp."""

    return datetime.now(timezone.utc)


def _uuid_str() -> str:
    """Generate a random UUID string."""

    return str(uuid.uuid4())


class TicketTable(SQLModel, table=True):
    """Support tickets opened by end users and drivers."""

    __tablename__ = "support_tickets"
    __table_args__ = (
        Index("ix_support_tickets_actor", "actor_type", "actor_id"),
        Index("ix_support_tickets_assignee_status", "assigned_admin_id", "status"),
        Index("ix_support_tickets_linked_entity", "linked_entity_type", "linked_entity_id"),
    )

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    actor_type: str = Field(sa_column=Column(String(20), nullable=False))
    actor_id: str = Field(sa_column=Column(String(64), nullable=False))
    subject: str = Field(sa_column=Column(String(200), nullable=False))
    linked_entity_type: str | None = Field(default=None, sa_column=Column(String(20), nullable=True))
    linked_entity_id: str | None = Field(default=None, sa_column=Column(String(64), nullable=True))
    status: str = Field(sa_column=Column(String(50), nullable=False, index=True))
    priority: str = Field(default="medium", sa_column=Column(String(20), nullable=False, default="medium"))
    assigned_admin_id: str | None = Field(default=None, sa_column=Column(String(64), nullable=True))
    last_message_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True, index=True)
    )
    is_deleted: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class TicketMessageTable(SQLModel, table=True):
    """Append-only conversation entries belonging to a ticket."""

    __tablename__ = "support_ticket_messages"
    __table_args__ = (Index("ix_support_ticket_messages_thread", "ticket_id", "created_at"),)

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    ticket_id: str = Field(
        sa_column=Column(String(36), ForeignKey("support_tickets.id", ondelete="CASCADE"), nullable=False)
    )
    sender_type: str = Field(sa_column=Column(String(20), nullable=False))
    sender_id: str = Field(sa_column=Column(String(64), nullable=False))
    content: str = Field(sa_column=Column(Text, nullable=False))
    is_deleted: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class UserTable(SQLModel, table=True):
    """Platform accounts: end users and administrators."""

    __tablename__ = "users"

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    full_name: str = Field(sa_column=Column(String(255), nullable=False))
    email: str | None = Field(default=None, sa_column=Column(String(255), nullable=True, unique=True))
    role: str = Field(default="user", sa_column=Column(String(20), nullable=False, index=True))
    is_active: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, default=True))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class DriverTable(SQLModel, table=True):
    """Driver accounts, kept apart from regular users."""

    __tablename__ = "drivers"

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    full_name: str = Field(sa_column=Column(String(255), nullable=False))
    email: str | None = Field(default=None, sa_column=Column(String(255), nullable=True, unique=True))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class QuoteTable(SQLModel, table=True):
    """Quotes a ticket may reference; only the display number is used here."""

    __tablename__ = "quotes"

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    quote_number: str = Field(sa_column=Column(String(50), nullable=False, unique=True))


class ReservationTable(SQLModel, table=True):
    """Reservations a ticket may reference; only the display number is used here."""

    __tablename__ = "reservations"

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    reservation_number: str = Field(sa_column=Column(String(50), nullable=False, unique=True))


class NotificationTable(SQLModel, table=True):
    """In-app notifications delivered to users."""

    __tablename__ = "notifications"

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    user_id: str = Field(sa_column=Column(String(64), nullable=False, index=True))
    type: str = Field(sa_column=Column(String(50), nullable=False))
    title: str = Field(sa_column=Column(String(255), nullable=False))
    message: str = Field(sa_column=Column(Text, nullable=False))
    is_read: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
