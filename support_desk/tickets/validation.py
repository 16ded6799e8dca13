"""Input checks shared by the ticket operations.

Every helper raises :class:`TicketValidationError` and runs before any store
access, so malformed requests never reach the repositories.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, TypeVar

from .errors import TicketValidationError
from .state import TICKET_ACTOR_TYPES, ActorType

MAX_SUBJECT_LENGTH = 200
MAX_CONTENT_LENGTH = 10_000
MAX_SEARCH_LENGTH = 200
MAX_PAGE_SIZE = 100

E = TypeVar("E", bound=Enum)


def require_id(value: Any, code: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise TicketValidationError("A non-empty identifier is required", code=code)
    return value.strip()


def clean_subject(subject: Any) -> str:
    if not isinstance(subject, str) or not subject.strip():
        raise TicketValidationError("Subject is required", code="INVALID_SUBJECT")
    cleaned = subject.strip()
    if len(cleaned) > MAX_SUBJECT_LENGTH:
        raise TicketValidationError(
            f"Subject must be {MAX_SUBJECT_LENGTH} characters or less", code="SUBJECT_TOO_LONG"
        )
    return cleaned


def clean_content(content: Any) -> str:
    if not isinstance(content, str) or not content.strip():
        raise TicketValidationError("Message content is required", code="INVALID_CONTENT")
    cleaned = content.strip()
    if len(cleaned) > MAX_CONTENT_LENGTH:
        raise TicketValidationError(
            f"Message content must be {MAX_CONTENT_LENGTH} characters or less", code="CONTENT_TOO_LONG"
        )
    return cleaned


def parse_enum(enum_type: type[E], value: Any, code: str) -> E:
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError as exc:
        raise TicketValidationError(f"Invalid value {value!r}", code=code) from exc


def parse_optional_enum(enum_type: type[E], value: Any, code: str) -> E | None:
    if value is None or value == "":
        return None
    return parse_enum(enum_type, value, code)


def clean_search(search: str | None) -> str | None:
    if search is None:
        return None
    cleaned = search.strip()
    if not cleaned:
        return None
    if len(cleaned) > MAX_SEARCH_LENGTH:
        raise TicketValidationError(
            f"Search query must be {MAX_SEARCH_LENGTH} characters or less", code="SEARCH_TOO_LONG"
        )
    return cleaned


def clamp_page(page: int | None) -> int:
    return max(1, int(page or 1))


def clamp_limit(limit: int | None, *, default: int, maximum: int = MAX_PAGE_SIZE) -> int:
    return max(1, min(maximum, int(limit or default)))


def check_page_window(page: int, limit: int, *, maximum: int = MAX_PAGE_SIZE) -> None:
    if page < 1:
        raise TicketValidationError("Page must be greater than 0", code="INVALID_PAGE")
    if limit < 1 or limit > maximum:
        raise TicketValidationError(f"Limit must be between 1 and {maximum}", code="INVALID_LIMIT")


def parse_ticket_actor_type(value: Any) -> ActorType:
    actor_type = parse_enum(ActorType, value, "INVALID_ACTOR_TYPE")
    if actor_type not in TICKET_ACTOR_TYPES:
        raise TicketValidationError("Tickets are opened by users or drivers", code="INVALID_ACTOR_TYPE")
    return actor_type
