from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from support_desk.tickets import AdminQueryEngine, MessageThread, TicketService


def _from_state(request: Request, attribute: str, label: str):
    component = getattr(request.app.state, attribute, None)
    if component is None:
        raise HTTPException(status_code=503, detail=f"{label} is not configured")
    return component


async def get_ticket_service(request: Request) -> TicketService:
    return _from_state(request, "ticket_service", "Ticket service")


async def get_message_thread(request: Request) -> MessageThread:
    return _from_state(request, "message_thread", "Ticket messaging")


async def get_admin_query_engine(request: Request) -> AdminQueryEngine:
    return _from_state(request, "admin_query_engine", "Admin ticket query")


TicketServiceDep = Annotated[TicketService, Depends(get_ticket_service)]
MessageThreadDep = Annotated[MessageThread, Depends(get_message_thread)]
AdminQueryDep = Annotated[AdminQueryEngine, Depends(get_admin_query_engine)]
