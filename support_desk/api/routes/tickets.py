from __future__ import annotations

from datetime import datetime
from typing import NoReturn

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field

from support_desk.dependencies.auth import CurrentIdentity
from support_desk.dependencies.tickets import AdminQueryDep, MessageThreadDep, TicketServiceDep
from support_desk.tickets.errors import ErrorKind, TicketServiceError
from support_desk.tickets.models import (
    AdminTicketPage,
    LinkedEntityType,
    MessagePage,
    TicketDetail,
    TicketPriority,
)
from support_desk.tickets.state import ActorType, TicketStatus

router = APIRouter(prefix="/support/tickets", tags=["support-tickets"])

_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.BUSINESS_RULE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
}


class TicketCreateRequest(BaseModel):
    actor_type: str
    subject: str
    content: str
    actor_id: str | None = None
    linked_entity_type: str | None = None
    linked_entity_id: str | None = None
    priority: str | None = None


class TicketStatusRequest(BaseModel):
    status: str


class TicketAssignRequest(BaseModel):
    admin_id: str


class MessageCreateRequest(BaseModel):
    content: str


class TicketResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    actor_type: ActorType
    actor_id: str
    subject: str
    status: TicketStatus
    priority: TicketPriority
    linked_entity_type: LinkedEntityType | None
    linked_entity_id: str | None
    assigned_admin_id: str | None
    last_message_at: datetime | None
    created_at: datetime
    updated_at: datetime


class TicketDetailResponse(TicketResponse):
    linked_entity_number: str | None = None


class AdminTicketResponse(TicketResponse):
    actor_name: str


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    ticket_id: str
    sender_type: ActorType
    sender_id: str
    content: str
    created_at: datetime


class CreatedTicketResponse(BaseModel):
    ticket: TicketResponse
    message: MessageResponse


class PaginationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    page: int
    limit: int
    total: int
    total_pages: int


class AdminTicketListResponse(BaseModel):
    tickets: list[AdminTicketResponse]
    pagination: PaginationResponse


class MessageListResponse(BaseModel):
    messages: list[MessageResponse]
    total: int
    page: int
    limit: int
    has_more: bool = Field(description="Whether another page exists after this one")


def _raise_http(exc: TicketServiceError) -> NoReturn:
    raise HTTPException(
        status_code=_STATUS_BY_KIND[exc.kind],
        detail={"code": exc.code, "message": exc.message},
    ) from exc


def _to_detail_response(detail: TicketDetail) -> TicketDetailResponse:
    base = TicketResponse.model_validate(detail.ticket)
    return TicketDetailResponse(**base.model_dump(), linked_entity_number=detail.linked_entity_number)


def _to_admin_list_response(page: AdminTicketPage) -> AdminTicketListResponse:
    tickets = [
        AdminTicketResponse(
            **TicketResponse.model_validate(summary.ticket).model_dump(), actor_name=summary.actor_name
        )
        for summary in page.tickets
    ]
    return AdminTicketListResponse(tickets=tickets, pagination=PaginationResponse.model_validate(page.pagination))


def _to_message_list_response(page: MessagePage) -> MessageListResponse:
    return MessageListResponse(
        messages=[MessageResponse.model_validate(item) for item in page.items],
        total=page.total,
        page=page.page,
        limit=page.limit,
        has_more=page.has_more,
    )


@router.post("", response_model=CreatedTicketResponse, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    payload: TicketCreateRequest,
    identity: CurrentIdentity,
    service: TicketServiceDep,
) -> CreatedTicketResponse:
    try:
        created = await service.create_ticket(
            identity.user_id,
            actor_type=payload.actor_type,
            subject=payload.subject,
            content=payload.content,
            actor_id=payload.actor_id,
            linked_entity_type=payload.linked_entity_type,
            linked_entity_id=payload.linked_entity_id,
            priority=payload.priority,
        )
    except TicketServiceError as exc:
        _raise_http(exc)
    return CreatedTicketResponse(
        ticket=TicketResponse.model_validate(created.ticket),
        message=MessageResponse.model_validate(created.message),
    )


@router.get("", response_model=AdminTicketListResponse)
async def list_tickets(
    identity: CurrentIdentity,
    engine: AdminQueryDep,
    status_filter: str | None = Query(default=None, alias="status"),
    actor_type: str | None = Query(default=None),
    assigned_admin_id: str | None = Query(default=None),
    search: str | None = Query(default=None),
    page: int | None = Query(default=None),
    limit: int | None = Query(default=None),
    sort_by: str | None = Query(default=None),
    sort_order: str | None = Query(default=None),
) -> AdminTicketListResponse:
    try:
        result = await engine.list_tickets(
            identity.user_id,
            status=status_filter,
            actor_type=actor_type,
            assigned_admin_id=assigned_admin_id,
            search=search,
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
        )
    except TicketServiceError as exc:
        _raise_http(exc)
    return _to_admin_list_response(result)


@router.get("/mine", response_model=list[TicketDetailResponse])
async def list_my_tickets(
    identity: CurrentIdentity,
    service: TicketServiceDep,
    actor_type: str = Query(default=ActorType.END_USER.value),
) -> list[TicketDetailResponse]:
    try:
        details = await service.list_actor_tickets(identity.user_id, actor_type)
    except TicketServiceError as exc:
        _raise_http(exc)
    return [_to_detail_response(detail) for detail in details]


@router.get("/{ticket_id}", response_model=TicketDetailResponse)
async def get_ticket(ticket_id: str, identity: CurrentIdentity, service: TicketServiceDep) -> TicketDetailResponse:
    try:
        detail = await service.get_ticket(ticket_id, identity.user_id)
    except TicketServiceError as exc:
        _raise_http(exc)
    return _to_detail_response(detail)


@router.patch("/{ticket_id}/status", response_model=TicketDetailResponse)
async def update_ticket_status(
    ticket_id: str,
    payload: TicketStatusRequest,
    identity: CurrentIdentity,
    service: TicketServiceDep,
) -> TicketDetailResponse:
    try:
        detail = await service.update_status(ticket_id, identity.user_id, payload.status)
    except TicketServiceError as exc:
        _raise_http(exc)
    return _to_detail_response(detail)


@router.patch("/{ticket_id}/assign", response_model=TicketDetailResponse)
async def assign_ticket(
    ticket_id: str,
    payload: TicketAssignRequest,
    identity: CurrentIdentity,
    service: TicketServiceDep,
) -> TicketDetailResponse:
    try:
        detail = await service.assign_to_admin(ticket_id, identity.user_id, payload.admin_id)
    except TicketServiceError as exc:
        _raise_http(exc)
    return _to_detail_response(detail)


@router.post("/{ticket_id}/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def add_message(
    ticket_id: str,
    payload: MessageCreateRequest,
    identity: CurrentIdentity,
    thread: MessageThreadDep,
) -> MessageResponse:
    try:
        message = await thread.add_message(ticket_id, identity.user_id, payload.content)
    except TicketServiceError as exc:
        _raise_http(exc)
    return MessageResponse.model_validate(message)


@router.get("/{ticket_id}/messages", response_model=MessageListResponse)
async def list_messages(
    ticket_id: str,
    identity: CurrentIdentity,
    thread: MessageThreadDep,
    page: int | None = Query(default=None),
    limit: int | None = Query(default=None),
) -> MessageListResponse:
    try:
        result = await thread.list_messages(ticket_id, identity.user_id, page=page, limit=limit)
    except TicketServiceError as exc:
        _raise_http(exc)
    return _to_message_list_response(result)
