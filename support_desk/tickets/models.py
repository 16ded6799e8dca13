from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Sequence

from .state import ActorType, TicketStatus


class TicketPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class LinkedEntityType(str, Enum):
    """External records a ticket can point at for context."""

    QUOTE = "quote"
    RESERVATION = "reservation"


class UserRole(str, Enum):
    ADMIN = "admin"
    USER = "user"


class NotificationType(str, Enum):
    TICKET_CREATED = "ticket_created"
    TICKET_ASSIGNED_TO_ADMIN = "ticket_assigned_to_admin"
    TICKET_STATUS_CHANGED = "ticket_status_changed"


class TicketSortField(str, Enum):
    LAST_MESSAGE_AT = "lastMessageAt"
    CREATED_AT = "createdAt"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(slots=True)
class Ticket:
    """Aggregate representing a support ticket entry."""

    id: str
    actor_type: ActorType
    actor_id: str
    subject: str
    status: TicketStatus
    priority: TicketPriority
    created_at: datetime
    updated_at: datetime
    linked_entity_type: LinkedEntityType | None = None
    linked_entity_id: str | None = None
    assigned_admin_id: str | None = None
    last_message_at: datetime | None = None
    is_deleted: bool = False

    def is_actor(self, requester_id: str) -> bool:
        return self.actor_id == requester_id


@dataclass(slots=True)
class TicketMessage:
    """Individual message belonging to a ticket thread."""

    id: str
    ticket_id: str
    sender_type: ActorType
    sender_id: str
    content: str
    created_at: datetime
    updated_at: datetime
    is_deleted: bool = False


@dataclass(slots=True)
class Actor:
    """User or driver record as seen by the ticketing core."""

    id: str
    full_name: str
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


@dataclass(slots=True)
class Notification:
    """Event addressed to a single recipient."""

    user_id: str
    type: NotificationType
    title: str
    message: str


@dataclass(slots=True)
class TicketDetail:
    """Ticket snapshot enriched with its linked entity's display number."""

    ticket: Ticket
    linked_entity_number: str | None = None


@dataclass(slots=True)
class CreatedTicket:
    ticket: Ticket
    message: TicketMessage


@dataclass(slots=True)
class AdminTicketSummary:
    """Ticket row of the administrator listing, with the actor's name attached."""

    ticket: Ticket
    actor_name: str


@dataclass(slots=True)
class TicketFilter:
    """Store-level query: filters, matched actor ids, sort and page window."""

    status: TicketStatus | None = None
    actor_type: ActorType | None = None
    assigned_admin_id: str | None = None
    actor_ids: Sequence[str] | None = None
    sort_by: TicketSortField = TicketSortField.LAST_MESSAGE_AT
    sort_order: SortOrder = SortOrder.DESC
    page: int = 1
    limit: int = 20

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(slots=True)
class Pagination:
    page: int
    limit: int
    total: int
    total_pages: int


@dataclass(slots=True)
class AdminTicketPage:
    tickets: Sequence[AdminTicketSummary]
    pagination: Pagination


@dataclass(slots=True)
class MessagePage:
    """One page of a ticket thread."""

    items: Sequence[TicketMessage]
    total: int
    page: int
    limit: int
    has_more: bool = field(init=False)

    def __post_init__(self) -> None:
        self.has_more = self.page * self.limit < self.total
