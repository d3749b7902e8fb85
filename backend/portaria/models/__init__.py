from .auth import User
from .tickets import Customer, TicketType, Ticket
from .audit import AuditLogEntry

__all__ = [
    'User',
    'Customer', 'TicketType', 'Ticket',
    'AuditLogEntry',
]
