from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    BUSINESS_RULE = "business_rule"


class TicketServiceError(RuntimeError):
    """Base error for ticket service issues."""

    kind: ErrorKind = ErrorKind.VALIDATION
    default_code: str = "BAD_REQUEST"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code


class TicketValidationError(TicketServiceError):
    """Raised when input is missing, malformed or oversized."""

    kind = ErrorKind.VALIDATION
    default_code = "BAD_REQUEST"


class TicketNotFoundError(TicketServiceError):
    """Raised when a ticket could not be located."""

    kind = ErrorKind.NOT_FOUND
    default_code = "TICKET_NOT_FOUND"

    def __init__(self, ticket_id: str) -> None:
        super().__init__(f"Ticket {ticket_id} not found")
        self.ticket_id = ticket_id


class AdminNotFoundError(TicketServiceError):
    """Raised when an assignment targets a user that does not exist."""

    kind = ErrorKind.NOT_FOUND
    default_code = "ADMIN_NOT_FOUND"

    def __init__(self, admin_id: str) -> None:
        super().__init__(f"Admin {admin_id} not found")
        self.admin_id = admin_id


class TicketAccessDeniedError(TicketServiceError):
    """Raised when the requester is not allowed to touch the ticket."""

    kind = ErrorKind.FORBIDDEN
    default_code = "FORBIDDEN"

    def __init__(self, message: str = "Access to this ticket is forbidden") -> None:
        super().__init__(message)


class NotAnAdminError(TicketServiceError):
    """Raised when an assignment targets an existing user lacking the admin role."""

    kind = ErrorKind.BUSINESS_RULE
    default_code = "NOT_AN_ADMIN"

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User {user_id} is not an admin")
        self.user_id = user_id
