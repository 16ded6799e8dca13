"""Administrator triage over the whole ticket set.

Filtering, sorting and slicing are delegated to the ticket store in a single
query; only the returned page is enriched in memory with actor names.
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

from opentelemetry import trace

from .access import AccessPolicy, ActorResolver
from .enrichment import ActorNameResolver
from .models import (
    AdminTicketPage,
    AdminTicketSummary,
    Pagination,
    SortOrder,
    TicketFilter,
    TicketSortField,
)
from .ports import DriverDirectory, TicketStore, UserDirectory
from .state import ActorType, TicketStatus
from .validation import (
    MAX_PAGE_SIZE,
    clamp_limit,
    clamp_page,
    clean_search,
    parse_enum,
    parse_optional_enum,
    parse_ticket_actor_type,
    require_id,
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

DEFAULT_ADMIN_PAGE_SIZE = 20
DEFAULT_SEARCH_LIMIT = 100


class AdminQueryEngine:
    """Filter, search, sort and paginate tickets for administrators."""

    def __init__(
        self,
        tickets: TicketStore,
        *,
        users: UserDirectory,
        drivers: DriverDirectory,
        resolver: ActorResolver,
        names: ActorNameResolver | None = None,
        policy: AccessPolicy | None = None,
        default_page_size: int = DEFAULT_ADMIN_PAGE_SIZE,
        search_limit: int = DEFAULT_SEARCH_LIMIT,
        max_page_size: int = MAX_PAGE_SIZE,
    ) -> None:
        self._tickets = tickets
        self._users = users
        self._drivers = drivers
        self._resolver = resolver
        self._names = names or ActorNameResolver(users=users, drivers=drivers)
        self._policy = policy or AccessPolicy()
        self._default_page_size = default_page_size
        self._search_limit = search_limit
        self._max_page_size = max_page_size

    async def list_tickets(
        self,
        requester_id: str,
        *,
        status: TicketStatus | str | None = None,
        actor_type: ActorType | str | None = None,
        assigned_admin_id: str | None = None,
        search: str | None = None,
        page: int | None = None,
        limit: int | None = None,
        sort_by: TicketSortField | str | None = None,
        sort_order: SortOrder | str | None = None,
    ) -> AdminTicketPage:
        requester_id = require_id(requester_id, "INVALID_REQUESTER_ID")
        query = TicketFilter(
            status=parse_optional_enum(TicketStatus, status, "INVALID_STATUS"),
            actor_type=parse_ticket_actor_type(actor_type) if actor_type else None,
            assigned_admin_id=assigned_admin_id.strip() if assigned_admin_id and assigned_admin_id.strip() else None,
            sort_by=parse_enum(TicketSortField, sort_by or TicketSortField.LAST_MESSAGE_AT, "INVALID_SORT_BY"),
            sort_order=parse_enum(SortOrder, sort_order or SortOrder.DESC, "INVALID_SORT_ORDER"),
            page=clamp_page(page),
            limit=clamp_limit(limit, default=self._default_page_size, maximum=self._max_page_size),
        )
        cleaned_search = clean_search(search)

        requester = await self._resolver.resolve(requester_id)
        self._policy.ensure_admin(requester, action="list all tickets")

        with tracer.start_as_current_span("support.admin_ticket_query") as span:
            span.set_attribute("support.page", query.page)
            span.set_attribute("support.limit", query.limit)
            span.set_attribute("support.search", cleaned_search is not None)

            if cleaned_search is not None:
                query.actor_ids = await self._match_actor_ids(cleaned_search, query.actor_type)

            tickets, total = await self._tickets.find_all_with_filters(query)
            names = await self._names.resolve_names(tickets)
            span.set_attribute("support.total", total)

        logger.info(
            "Admin tickets list: returning %d tickets out of %d total (page %d, status=%s, actorType=%s, "
            "assignedAdminId=%s, search=%s)",
            len(tickets),
            total,
            query.page,
            query.status.value if query.status else "all",
            query.actor_type.value if query.actor_type else "all",
            query.assigned_admin_id or "all",
            cleaned_search or "none",
        )

        summaries = [
            AdminTicketSummary(ticket=ticket, actor_name=names[(ticket.actor_type, ticket.actor_id)])
            for ticket in tickets
        ]
        pagination = Pagination(
            page=query.page,
            limit=query.limit,
            total=total,
            total_pages=math.ceil(total / query.limit),
        )
        return AdminTicketPage(tickets=summaries, pagination=pagination)

    async def _match_actor_ids(self, search: str, actor_type: ActorType | None) -> list[str]:
        """Collect actor ids whose display name matches ``search``.

        Each directory is queried independently; a failing directory is logged
        and contributes no ids.
        """

        matched: list[str] = []
        if actor_type in (None, ActorType.END_USER):
            matched.extend(await self._search_directory("users", self._users, search))
        if actor_type in (None, ActorType.DRIVER):
            matched.extend(await self._search_directory("drivers", self._drivers, search))
        return list(dict.fromkeys(matched))

    async def _search_directory(
        self, label: str, directory: UserDirectory | DriverDirectory, search: str
    ) -> Sequence[str]:
        try:
            actors = await directory.search_by_name(search, limit=self._search_limit)
        except Exception:
            logger.warning("Error searching %s by name", label, exc_info=True)
            return []
        return [actor.id for actor in actors]
