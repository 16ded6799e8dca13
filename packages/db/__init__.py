"""Database models and utilities."""

from .models import (
    DriverTable,
    NotificationTable,
    QuoteTable,
    ReservationTable,
    TicketMessageTable,
    TicketTable,
    UserTable,
)

__all__ = [
    "DriverTable",
    "NotificationTable",
    "QuoteTable",
    "ReservationTable",
    "TicketMessageTable",
    "TicketTable",
    "UserTable",
]
