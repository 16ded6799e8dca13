from __future__ import annotations

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from support_desk.tickets.errors import (
    AdminNotFoundError,
    ErrorKind,
    NotAnAdminError,
    TicketAccessDeniedError,
    TicketNotFoundError,
    TicketValidationError,
)
from support_desk.tickets.models import LinkedEntityType, NotificationType, TicketPriority
from support_desk.tickets.state import ActorType, TicketStatus


@pytest.mark.asyncio
async def test_create_ticket_opens_with_first_message_and_notifies_admins(desk, notifications):
    created = await desk.service.create_ticket(
        "user-1", actor_type="user", subject="  Billing issue ", content=" Help "
    )

    ticket = created.ticket
    assert ticket.status == TicketStatus.OPEN
    assert ticket.subject == "Billing issue"
    assert ticket.priority == TicketPriority.MEDIUM
    assert ticket.actor_id == "user-1"
    assert ticket.last_message_at == ticket.created_at
    assert created.message.content == "Help"
    assert created.message.sender_type == ActorType.END_USER
    assert created.message.ticket_id == ticket.id

    sent = notifications(desk.sender)
    assert sorted(n.user_id for n in sent) == ["admin-1", "admin-2"]
    assert all(n.type == NotificationType.TICKET_CREATED for n in sent)
    assert sent[0].title == "New ticket created: Billing issue"
    assert sent[0].message == "A new ticket has been created by user"


@pytest.mark.asyncio
async def test_create_ticket_survives_single_admin_notification_failure(desk):
    desk.sender.send = AsyncMock(side_effect=[RuntimeError("smtp down"), None])

    created = await desk.service.create_ticket("user-1", actor_type="user", subject="Late", content="Where?")

    assert created.ticket.status == TicketStatus.OPEN
    assert desk.sender.send.await_count == 2


@pytest.mark.asyncio
async def test_create_ticket_survives_admin_listing_failure(desk):
    desk.users.find_by_role = AsyncMock(side_effect=RuntimeError("directory offline"))

    created = await desk.service.create_ticket("driver-1", actor_type="driver", subject="Late", content="Where?")

    assert created.ticket.actor_type == ActorType.DRIVER
    desk.sender.send.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("kwargs", "code"),
    [
        ({"subject": "   "}, "INVALID_SUBJECT"),
        ({"subject": "x" * 201}, "SUBJECT_TOO_LONG"),
        ({"content": ""}, "INVALID_CONTENT"),
        ({"content": "x" * 10_001}, "CONTENT_TOO_LONG"),
        ({"actor_type": "admin"}, "INVALID_ACTOR_TYPE"),
        ({"actor_type": "robot"}, "INVALID_ACTOR_TYPE"),
        ({"priority": "critical"}, "INVALID_PRIORITY"),
        ({"linked_entity_id": "quote-9"}, "INVALID_LINKED_ENTITY"),
        ({"linked_entity_type": "invoice", "linked_entity_id": "x"}, "INVALID_LINKED_ENTITY_TYPE"),
        ({"linked_entity_type": "quote", "linked_entity_id": 42}, "INVALID_LINKED_ENTITY_ID"),
    ],
)
async def test_create_ticket_rejects_bad_input_before_store_access(desk, kwargs, code):
    arguments = {"actor_type": "user", "subject": "Billing issue", "content": "Help"}
    arguments.update(kwargs)

    with pytest.raises(TicketValidationError) as exc:
        await desk.service.create_ticket("user-1", **arguments)

    assert exc.value.code == code
    assert exc.value.kind == ErrorKind.VALIDATION
    desk.tickets.create.assert_not_awaited()
    desk.users.find_by_id.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_ticket_keeps_linked_entity_and_priority(desk):
    created = await desk.service.create_ticket(
        "user-1",
        actor_type="user",
        subject="Quote question",
        content="Is VAT included?",
        linked_entity_type="quote",
        linked_entity_id="quote-9",
        priority="urgent",
    )

    assert created.ticket.linked_entity_type == LinkedEntityType.QUOTE
    assert created.ticket.linked_entity_id == "quote-9"
    assert created.ticket.priority == TicketPriority.URGENT


@pytest.mark.asyncio
async def test_admin_may_create_ticket_on_behalf_of_actor(desk):
    created = await desk.service.create_ticket(
        "admin-1", actor_type="user", actor_id="user-2", subject="Phoned in", content="Customer called"
    )

    assert created.ticket.actor_id == "user-2"
    assert created.message.sender_id == "user-2"


@pytest.mark.asyncio
async def test_non_admin_cannot_create_ticket_for_someone_else(desk):
    with pytest.raises(TicketAccessDeniedError):
        await desk.service.create_ticket(
            "user-1", actor_type="user", actor_id="user-2", subject="Spoof", content="Spoof"
        )

    desk.tickets.create.assert_not_awaited()


@pytest.mark.asyncio
async def test_get_ticket_allows_actor_and_admin_with_linked_number(desk, make_ticket):
    desk.tickets.add(make_ticket(linked_entity_type=LinkedEntityType.RESERVATION, linked_entity_id="res-1"))

    as_actor = await desk.service.get_ticket("ticket-1", "user-1")
    as_admin = await desk.service.get_ticket("ticket-1", "admin-2")

    assert as_actor.linked_entity_number == "R-2002"
    assert as_admin.ticket.id == "ticket-1"
    desk.reservations.find_number.assert_awaited_with("res-1")


@pytest.mark.asyncio
async def test_get_ticket_forbids_other_non_admin(desk, make_ticket):
    desk.tickets.add(make_ticket())

    with pytest.raises(TicketAccessDeniedError) as exc:
        await desk.service.get_ticket("ticket-1", "user-2")

    assert exc.value.kind == ErrorKind.FORBIDDEN


@pytest.mark.asyncio
async def test_get_ticket_unknown_requester_is_forbidden_not_an_error(desk, make_ticket):
    desk.tickets.add(make_ticket())

    with pytest.raises(TicketAccessDeniedError):
        await desk.service.get_ticket("ticket-1", "ghost")


@pytest.mark.asyncio
async def test_get_ticket_missing_ticket_is_not_found(desk):
    with pytest.raises(TicketNotFoundError) as exc:
        await desk.service.get_ticket("missing", "user-2")

    assert exc.value.kind == ErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_get_ticket_survives_linked_entity_lookup_failure(desk, make_ticket):
    desk.tickets.add(make_ticket(linked_entity_type=LinkedEntityType.QUOTE, linked_entity_id="quote-1"))
    desk.quotes.find_number = AsyncMock(side_effect=RuntimeError("quotes offline"))

    detail = await desk.service.get_ticket("ticket-1", "user-1")

    assert detail.linked_entity_number is None


@pytest.mark.asyncio
async def test_list_actor_tickets_returns_own_tickets_newest_first(desk, make_ticket):
    first = make_ticket(id="t-old")
    second = make_ticket(
        id="t-new",
        created_at=first.created_at + timedelta(hours=1),
        linked_entity_type=LinkedEntityType.QUOTE,
        linked_entity_id="quote-1",
    )
    desk.tickets.add(first)
    desk.tickets.add(second)
    desk.tickets.add(make_ticket(id="t-other", actor_id="user-2"))

    details = await desk.service.list_actor_tickets("user-1", "user")

    assert [detail.ticket.id for detail in details] == ["t-new", "t-old"]
    assert [detail.linked_entity_number for detail in details] == ["Q-1001", None]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("current", "expected"),
    [
        (TicketStatus.OPEN, TicketStatus.IN_PROGRESS),
        (TicketStatus.IN_PROGRESS, TicketStatus.IN_PROGRESS),
        (TicketStatus.RESOLVED, TicketStatus.RESOLVED),
        (TicketStatus.REJECTED, TicketStatus.REJECTED),
    ],
)
async def test_assign_advances_only_open_tickets(desk, make_ticket, notifications, current, expected):
    desk.tickets.add(make_ticket(status=current))

    detail = await desk.service.assign_to_admin("ticket-1", "admin-1", "admin-2")

    assert detail.ticket.status == expected
    assert detail.ticket.assigned_admin_id == "admin-2"
    sent = notifications(desk.sender)
    assert len(sent) == 1
    assert sent[0].user_id == "admin-2"
    assert sent[0].type == NotificationType.TICKET_ASSIGNED_TO_ADMIN
    assert sent[0].message == "A ticket has been assigned to you by Ada Admin"


@pytest.mark.asyncio
async def test_assign_distinguishes_missing_admin_from_non_admin(desk, make_ticket):
    desk.tickets.add(make_ticket())

    with pytest.raises(AdminNotFoundError) as missing:
        await desk.service.assign_to_admin("ticket-1", "admin-1", "nobody")
    with pytest.raises(NotAnAdminError) as not_admin:
        await desk.service.assign_to_admin("ticket-1", "admin-1", "user-2")

    assert missing.value.kind == ErrorKind.NOT_FOUND
    assert not_admin.value.kind == ErrorKind.BUSINESS_RULE
    desk.tickets.update_by_id.assert_not_awaited()


@pytest.mark.asyncio
async def test_actor_cannot_assign_or_change_status_of_own_ticket(desk, make_ticket):
    desk.tickets.add(make_ticket())

    with pytest.raises(TicketAccessDeniedError):
        await desk.service.assign_to_admin("ticket-1", "user-1", "admin-1")
    with pytest.raises(TicketAccessDeniedError):
        await desk.service.update_status("ticket-1", "user-1", "resolved")

    desk.tickets.update_by_id.assert_not_awaited()


@pytest.mark.asyncio
async def test_non_admin_mutation_is_forbidden_even_for_missing_ticket(desk):
    with pytest.raises(TicketAccessDeniedError):
        await desk.service.update_status("missing", "user-2", "resolved")


@pytest.mark.asyncio
async def test_mutation_treats_vanished_ticket_as_not_found(desk, make_ticket):
    desk.tickets.add(make_ticket())
    original = desk.tickets.find_by_id.side_effect
    calls = {"count": 0}

    async def vanish_on_reload(ticket_id):
        calls["count"] += 1
        if calls["count"] > 1:
            return None
        return await original(ticket_id)

    desk.tickets.find_by_id.side_effect = vanish_on_reload

    with pytest.raises(TicketNotFoundError):
        await desk.service.update_status("ticket-1", "admin-1", "in_progress")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "title", "message"),
    [
        ("resolved", "Ticket Resolved: Refund not received", "Your support ticket has been resolved."),
        ("rejected", "Ticket Rejected: Refund not received", "Your support ticket has been rejected."),
    ],
)
async def test_closing_status_notifies_end_user_once(desk, make_ticket, notifications, status, title, message):
    desk.tickets.add(make_ticket(status=TicketStatus.IN_PROGRESS))

    detail = await desk.service.update_status("ticket-1", "admin-1", status)

    assert detail.ticket.status == TicketStatus(status)
    sent = notifications(desk.sender)
    assert len(sent) == 1
    assert sent[0].user_id == "user-1"
    assert sent[0].type == NotificationType.TICKET_STATUS_CHANGED
    assert sent[0].title == title
    assert sent[0].message == message


@pytest.mark.asyncio
async def test_driver_tickets_and_non_closing_statuses_do_not_notify(desk, make_ticket):
    desk.tickets.add(make_ticket(actor_type=ActorType.DRIVER, actor_id="driver-1"))
    desk.tickets.add(make_ticket(id="ticket-2"))

    await desk.service.update_status("ticket-1", "admin-1", "resolved")
    await desk.service.update_status("ticket-2", "admin-1", "in_progress")
    await desk.service.update_status("ticket-2", "admin-1", "open")

    desk.sender.send.assert_not_awaited()


@pytest.mark.asyncio
async def test_any_status_may_follow_any_other(desk, make_ticket):
    desk.tickets.add(make_ticket(status=TicketStatus.RESOLVED))

    detail = await desk.service.update_status("ticket-1", "admin-1", "open")

    assert detail.ticket.status == TicketStatus.OPEN


@pytest.mark.asyncio
async def test_repeated_identical_status_is_a_silent_no_op(desk, make_ticket, notifications):
    desk.tickets.add(make_ticket(status=TicketStatus.IN_PROGRESS))

    await desk.service.update_status("ticket-1", "admin-1", "resolved")
    before = await desk.service.get_ticket("ticket-1", "admin-1")
    desk.tickets.update_by_id.reset_mock()

    again = await desk.service.update_status("ticket-1", "admin-1", "resolved")
    after = await desk.service.get_ticket("ticket-1", "admin-1")

    assert len(notifications(desk.sender)) == 1
    desk.tickets.update_by_id.assert_not_awaited()
    assert again.ticket == before.ticket
    assert after.ticket == before.ticket


@pytest.mark.asyncio
async def test_update_status_rejects_unknown_status(desk, make_ticket):
    desk.tickets.add(make_ticket())

    with pytest.raises(TicketValidationError) as exc:
        await desk.service.update_status("ticket-1", "admin-1", "closed")

    assert exc.value.code == "INVALID_STATUS"


@pytest.mark.asyncio
async def test_full_lifecycle_notifies_admins_assignee_and_actor(desk, notifications):
    created = await desk.service.create_ticket("user-1", actor_type="user", subject="Billing issue", content="Help")
    ticket_id = created.ticket.id

    assigned = await desk.service.assign_to_admin(ticket_id, "admin-1", "admin-2")
    resolved = await desk.service.update_status(ticket_id, "admin-2", "resolved")
    await desk.service.update_status(ticket_id, "admin-2", "resolved")

    assert assigned.ticket.status == TicketStatus.IN_PROGRESS
    assert resolved.ticket.status == TicketStatus.RESOLVED
    kinds = [(n.type, n.user_id) for n in notifications(desk.sender)]
    assert kinds.count((NotificationType.TICKET_CREATED, "admin-1")) == 1
    assert kinds.count((NotificationType.TICKET_CREATED, "admin-2")) == 1
    assert kinds.count((NotificationType.TICKET_ASSIGNED_TO_ADMIN, "admin-2")) == 1
    assert kinds.count((NotificationType.TICKET_STATUS_CHANGED, "user-1")) == 1
    assert len(kinds) == 4
