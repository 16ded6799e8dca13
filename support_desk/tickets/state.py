from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TicketStatus(str, Enum):
    """Supported states for a ticket's lifecycle."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class ActorType(str, Enum):
    """Closed set of parties that can appear on a ticket."""

    END_USER = "user"
    DRIVER = "driver"
    ADMIN = "admin"


TICKET_ACTOR_TYPES: frozenset[ActorType] = frozenset({ActorType.END_USER, ActorType.DRIVER})


@dataclass(frozen=True, slots=True)
class StatusNotice:
    """Message owed to a ticket's actor after a status change."""

    title: str
    message: str


class TicketLifecycle:
    """Rules governing status and assignment changes.

    Administrators may move a ticket to any status; there is no transition
    graph. The lifecycle only decides the initial state, the automatic
    advance on assignment and which changes are announced to the actor.
    """

    _CLOSING_NOTICES: dict[TicketStatus, tuple[str, str]] = {
        TicketStatus.RESOLVED: ("Resolved", "Your support ticket has been resolved."),
        TicketStatus.REJECTED: ("Rejected", "Your support ticket has been rejected."),
    }

    @classmethod
    def initial_state(cls) -> TicketStatus:
        return TicketStatus.OPEN

    @classmethod
    def status_after_assignment(cls, current: TicketStatus) -> TicketStatus:
        if current == TicketStatus.OPEN:
            return TicketStatus.IN_PROGRESS
        return current

    @classmethod
    def status_notice(
        cls,
        *,
        actor_type: ActorType,
        previous: TicketStatus,
        new: TicketStatus,
        subject: str,
    ) -> StatusNotice | None:
        """Return the notification owed to the actor, if any.

        Only end users hear about closing transitions, and only when the
        status actually changed.
        """

        if previous == new:
            return None
        if actor_type != ActorType.END_USER:
            return None
        notice = cls._CLOSING_NOTICES.get(new)
        if notice is None:
            return None
        label, message = notice
        return StatusNotice(title=f"Ticket {label}: {subject}", message=message)
