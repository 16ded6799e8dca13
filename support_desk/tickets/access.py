from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from .errors import AdminNotFoundError, NotAnAdminError, TicketAccessDeniedError
from .models import Actor, Ticket, UserRole
from .ports import UserDirectory
from .state import ActorType

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Requester:
    """Caller of an operation, resolved once per request."""

    id: str
    is_admin: bool
    exists: bool
    name: str | None = None


class ActorResolver:
    """Look up the requester's role in the user directory."""

    def __init__(self, users: UserDirectory) -> None:
        self._users = users

    async def resolve(self, requester_id: str) -> Requester:
        # An unknown requester is simply not an admin; the access check decides.
        actor = await self._users.find_by_id(requester_id)
        if actor is None:
            return Requester(id=requester_id, is_admin=False, exists=False)
        return Requester(id=requester_id, is_admin=actor.is_admin, exists=True, name=actor.full_name)

    async def list_admins(self) -> Sequence[Actor]:
        return await self._users.find_by_role(UserRole.ADMIN)

    async def resolve_admin(self, admin_id: str) -> Actor:
        """Return the target administrator of an assignment, which must exist."""

        actor = await self._users.find_by_id(admin_id)
        if actor is None:
            logger.warning("Attempt to assign ticket to non-existent admin: %s", admin_id)
            raise AdminNotFoundError(admin_id)
        if not actor.is_admin:
            logger.warning("Attempt to assign ticket to user who is not an admin: %s", admin_id)
            raise NotAnAdminError(admin_id)
        return actor


class AccessPolicy:
    """Single authorization rule: administrators or the ticket's own actor."""

    @staticmethod
    def role_on(ticket: Ticket, requester: Requester) -> ActorType | None:
        """Return the role the requester plays on ``ticket``, or ``None``."""

        if requester.is_admin:
            return ActorType.ADMIN
        if ticket.is_actor(requester.id):
            return ticket.actor_type
        return None

    @classmethod
    def can_access(cls, ticket: Ticket, requester: Requester) -> bool:
        return cls.role_on(ticket, requester) is not None

    @classmethod
    def ensure_can_access(cls, ticket: Ticket, requester: Requester, *, action: str) -> ActorType:
        role = cls.role_on(ticket, requester)
        if role is None:
            logger.warning("User %s attempted to %s ticket %s without permission", requester.id, action, ticket.id)
            raise TicketAccessDeniedError()
        return role

    @staticmethod
    def ensure_admin(requester: Requester, *, action: str) -> None:
        if not requester.is_admin:
            logger.warning("Non-admin user %s attempted to %s", requester.id, action)
            raise TicketAccessDeniedError("Administrator role required")

    @staticmethod
    def ensure_actor(requester: Requester, actor_id: str, *, action: str) -> None:
        """Only the actor itself, or an admin acting on its behalf, passes."""

        if requester.id == actor_id or requester.is_admin:
            return
        logger.warning("User %s attempted to %s for actor %s", requester.id, action, actor_id)
        raise TicketAccessDeniedError()
