import itertools
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from compliance_tickets.domain.models import (
    Company,
    NewTicket,
    Ticket,
    TicketStatus,
    TicketType,
    TicketView,
    User,
    UserRole,
)
from compliance_tickets.domain.ports import TicketStore

logger = logging.getLogger(__name__)


class MemoryTicketStore(TicketStore):
    """
    Process-local store used for local runs and tests.

    `transaction()` holds a re-entrant lock for the whole block, so two create workflows
    for the same company cannot interleave their read-check-write steps. If the block
    raises, tickets are restored to the snapshot taken when it started.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._companies: dict[int, Company] = {}
        self._users: dict[int, User] = {}
        self._tickets: dict[int, Ticket] = {}
        self._ticket_ids = itertools.count(1)
        self._user_ids = itertools.count(1)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            snapshot = {ticket_id: ticket.model_copy() for ticket_id, ticket in self._tickets.items()}
            try:
                yield
            except BaseException:
                logger.debug("Rolling back ticket changes")
                self._tickets = snapshot
                raise

    def add_company(self, company_id: int, name: str = "") -> Company:
        with self._lock:
            company = Company(id=company_id, name=name or f"Company {company_id}")
            self._companies[company.id] = company
            return company

    def add_user(
        self,
        company_id: int,
        role: UserRole,
        name: str = "",
        created_at: datetime | None = None,
    ) -> User:
        with self._lock:
            user = User(
                id=next(self._user_ids),
                company_id=company_id,
                role=role,
                name=name,
                created_at=created_at or datetime.now(timezone.utc),
            )
            self._users[user.id] = user
            return user

    def find_open_tickets(self, ticket_type: TicketType, company_id: int) -> list[Ticket]:
        with self._lock:
            found = [
                ticket
                for ticket in self._tickets.values()
                if ticket.type == ticket_type
                and ticket.company_id == company_id
                and ticket.status == TicketStatus.OPEN
            ]
        found.sort(key=lambda t: (t.created_at, t.id), reverse=True)
        return [ticket.model_copy() for ticket in found]

    def find_users(self, company_id: int, role: UserRole) -> list[User]:
        with self._lock:
            found = [user for user in self._users.values() if user.company_id == company_id and user.role == role]
        return sorted(found, key=lambda u: (u.created_at, u.id), reverse=True)

    def create_ticket(self, new_ticket: NewTicket) -> Ticket:
        with self._lock:
            ticket = Ticket(id=next(self._ticket_ids), **new_ticket.model_dump())
            self._tickets[ticket.id] = ticket
            return ticket.model_copy()

    def resolve_all_except(self, ticket_id: int, company_id: int | None = None) -> int:
        count = 0
        with self._lock:
            for ticket in self._tickets.values():
                if ticket.id == ticket_id or ticket.status != TicketStatus.OPEN:
                    continue
                if company_id is not None and ticket.company_id != company_id:
                    continue
                ticket.status = TicketStatus.RESOLVED
                count += 1
        return count

    def list_tickets(self, with_relations: bool = True) -> list[TicketView]:
        with self._lock:
            views = []
            for ticket in sorted(self._tickets.values(), key=lambda t: t.id):
                view = TicketView(**ticket.model_dump())
                if with_relations:
                    view.company = self._companies.get(ticket.company_id)
                    view.assignee = self._users.get(ticket.assignee_id)
                views.append(view)
            return views
