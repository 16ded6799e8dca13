"""Best-effort lookups that decorate responses with optional data.

Each helper returns either :class:`Resolved` or :class:`Ignorable`; callers
take the value or fall back to a default and carry on. Lookup failures are
logged here and never propagate.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Generic, Iterable, Mapping, TypeVar, Union

from .models import LinkedEntityType, Ticket
from .ports import DriverDirectory, EntityNumberLookup, UserDirectory
from .state import ActorType

logger = logging.getLogger(__name__)

T = TypeVar("T")

UNKNOWN_ACTOR_NAMES: Mapping[ActorType, str] = {
    ActorType.END_USER: "Unknown User",
    ActorType.DRIVER: "Unknown Driver",
    ActorType.ADMIN: "Unknown",
}


@dataclass(frozen=True)
class Resolved(Generic[T]):
    value: T

    def value_or(self, default: T) -> T:
        return self.value


@dataclass(frozen=True)
class Ignorable:
    """Lookup that produced nothing usable; the caller proceeds with a default."""

    reason: str

    def value_or(self, default: T) -> T:
        return default


Enrichment = Union[Resolved[T], Ignorable]


class LinkedEntityResolver:
    """Fetch the human-readable number of a ticket's quote or reservation."""

    def __init__(self, *, quotes: EntityNumberLookup, reservations: EntityNumberLookup) -> None:
        self._lookups: dict[LinkedEntityType, EntityNumberLookup] = {
            LinkedEntityType.QUOTE: quotes,
            LinkedEntityType.RESERVATION: reservations,
        }

    async def resolve(self, ticket: Ticket) -> Enrichment[str]:
        if ticket.linked_entity_type is None or not ticket.linked_entity_id:
            return Ignorable("no linked entity")
        lookup = self._lookups[ticket.linked_entity_type]
        try:
            number = await lookup.find_number(ticket.linked_entity_id)
        except Exception as exc:
            logger.warning("Failed to fetch linked entity number for ticket %s: %s", ticket.id, exc, exc_info=True)
            return Ignorable(f"lookup failed: {exc}")
        if number is None:
            return Ignorable("linked entity not found")
        return Resolved(number)

    async def resolve_many(self, tickets: Iterable[Ticket]) -> list[str | None]:
        results = await asyncio.gather(*(self.resolve(ticket) for ticket in tickets))
        return [result.value_or(None) for result in results]


class ActorNameResolver:
    """Batch-resolve display names for the distinct actors of a page of tickets."""

    def __init__(self, *, users: UserDirectory, drivers: DriverDirectory) -> None:
        self._directories: dict[ActorType, UserDirectory | DriverDirectory] = {
            ActorType.END_USER: users,
            ActorType.DRIVER: drivers,
        }

    async def resolve(self, actor_type: ActorType, actor_id: str) -> Enrichment[str]:
        directory = self._directories.get(actor_type)
        if directory is None:
            return Ignorable(f"no directory for {actor_type.value}")
        try:
            actor = await directory.find_by_id(actor_id)
        except Exception as exc:
            logger.warning("%s lookup failed for ticket actor %s: %s", actor_type.value, actor_id, exc, exc_info=True)
            return Ignorable(f"lookup failed: {exc}")
        if actor is None:
            logger.warning("%s not found for ticket actor: %s", actor_type.value, actor_id)
            return Ignorable("actor not found")
        return Resolved(actor.full_name)

    async def resolve_names(self, tickets: Iterable[Ticket]) -> dict[tuple[ActorType, str], str]:
        keys = list(dict.fromkeys((ticket.actor_type, ticket.actor_id) for ticket in tickets))
        results = await asyncio.gather(*(self.resolve(actor_type, actor_id) for actor_type, actor_id in keys))
        return {
            key: result.value_or(UNKNOWN_ACTOR_NAMES[key[0]])
            for key, result in zip(keys, results)
        }
