"""Support ticket domain: lifecycle, access rules, messaging and admin triage."""

from .access import AccessPolicy, ActorResolver, Requester
from .enrichment import ActorNameResolver, LinkedEntityResolver
from .errors import (
    AdminNotFoundError,
    ErrorKind,
    NotAnAdminError,
    TicketAccessDeniedError,
    TicketNotFoundError,
    TicketServiceError,
    TicketValidationError,
)
from .messages import MessageThread
from .models import (
    AdminTicketPage,
    CreatedTicket,
    MessagePage,
    Ticket,
    TicketDetail,
    TicketMessage,
)
from .notifications import NotificationDispatcher
from .query import AdminQueryEngine
from .service import TicketService
from .state import ActorType, TicketLifecycle, TicketStatus

__all__ = [
    "AccessPolicy",
    "ActorNameResolver",
    "ActorResolver",
    "ActorType",
    "AdminNotFoundError",
    "AdminQueryEngine",
    "AdminTicketPage",
    "CreatedTicket",
    "ErrorKind",
    "LinkedEntityResolver",
    "MessagePage",
    "MessageThread",
    "NotAnAdminError",
    "NotificationDispatcher",
    "Requester",
    "Ticket",
    "TicketAccessDeniedError",
    "TicketDetail",
    "TicketLifecycle",
    "TicketMessage",
    "TicketNotFoundError",
    "TicketService",
    "TicketServiceError",
    "TicketStatus",
    "TicketValidationError",
]
