from contextlib import AbstractContextManager
from typing import Protocol

from compliance_tickets.domain.models import NewTicket, Ticket, TicketType, TicketView, User, UserRole


class TicketStore(Protocol):
    def transaction(self) -> AbstractContextManager[None]: ...

    def find_open_tickets(self, ticket_type: TicketType, company_id: int) -> list[Ticket]: ...

    def find_users(self, company_id: int, role: UserRole) -> list[User]: ...

    def create_ticket(self, new_ticket: NewTicket) -> Ticket: ...

    def resolve_all_except(self, ticket_id: int, company_id: int | None = None) -> int: ...

    def list_tickets(self, with_relations: bool = True) -> list[TicketView]: ...
