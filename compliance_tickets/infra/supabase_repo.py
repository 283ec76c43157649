import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from supabase import create_client, Client

from compliance_tickets.core.errors import ConflictingOpenTicket, RepositoryError
from compliance_tickets.domain.models import (
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

_UNIQUE_VIOLATION = "23505"
_TICKET_RELATIONS = "*, company:companies(*), assignee:users(*)"


class SupabaseTicketRepository(TicketStore):
    """
    Tickets, users and companies in Supabase tables.

    PostgREST runs every request in its own transaction, so the create workflow cannot be
    wrapped in one. `transaction()` compensates instead: tickets inserted inside the block are
    deleted again if the block raises. The one-open-ticket rule is enforced by the database:

        create unique index tickets_one_open_address_change
            on tickets (company_id, type)
            where status = 'open' and type = 'registrationAddressChange';

    A unique violation on insert is reported as ConflictingOpenTicket.
    """

    def __init__(self, supabase_url: str, supabase_service_role_key: str) -> None:
        self._client: Client = create_client(supabase_url, supabase_service_role_key)
        # Ids inserted by the current thread's open transaction block.
        self._local = threading.local()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        outer = getattr(self._local, "inserted", None)
        inserted: list[int] = []
        self._local.inserted = inserted
        try:
            yield
        except BaseException:
            self._discard_tickets(inserted)
            raise
        finally:
            self._local.inserted = outer

    def _discard_tickets(self, ticket_ids: list[int]) -> None:
        if not ticket_ids:
            return
        logger.warning("Rolling back ticket(s) %s after a failed workflow", ticket_ids)
        try:
            self._client.table("tickets").delete().in_("id", ticket_ids).execute()
        except Exception:
            # The workflow's own error is re-raised by the caller.
            logger.exception("Supabase rollback of tickets %s failed", ticket_ids)

    def find_open_tickets(self, ticket_type: TicketType, company_id: int) -> list[Ticket]:
        try:
            resp = (
                self._client.table("tickets")
                .select("*")
                .eq("company_id", company_id)
                .eq("type", ticket_type.value)
                .eq("status", TicketStatus.OPEN.value)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            logger.exception("Supabase open ticket query failed")
            raise RepositoryError("Failed to query open tickets in Supabase") from e

        return [Ticket.model_validate(row) for row in _rows(resp)]

    def find_users(self, company_id: int, role: UserRole) -> list[User]:
        try:
            resp = (
                self._client.table("users")
                .select("*")
                .eq("company_id", company_id)
                .eq("role", role.value)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            logger.exception("Supabase user query failed")
            raise RepositoryError("Failed to query users in Supabase") from e

        return [User.model_validate(row) for row in _rows(resp)]

    def create_ticket(self, new_ticket: NewTicket) -> Ticket:
        try:
            resp = self._client.table("tickets").insert(new_ticket.model_dump(mode="json")).execute()
        except Exception as e:
            if getattr(e, "code", None) == _UNIQUE_VIOLATION:
                raise ConflictingOpenTicket(
                    f"Cannot create a ticket for company {new_ticket.company_id} because there is already "
                    f"an open {new_ticket.type.value} ticket",
                    company_id=new_ticket.company_id,
                    ticket_type=new_ticket.type.value,
                ) from e
            logger.exception("Supabase insert failed")
            raise RepositoryError("Failed to create ticket in Supabase") from e

        rows = _rows(resp)
        if not rows:
            raise RepositoryError("Supabase insert returned no ticket")
        ticket = Ticket.model_validate(rows[0])

        inserted = getattr(self._local, "inserted", None)
        if inserted is not None:
            inserted.append(ticket.id)
        return ticket

    def resolve_all_except(self, ticket_id: int, company_id: int | None = None) -> int:
        try:
            query = (
                self._client.table("tickets")
                .update({"status": TicketStatus.RESOLVED.value})
                .neq("id", ticket_id)
                .eq("status", TicketStatus.OPEN.value)
            )
            if company_id is not None:
                query = query.eq("company_id", company_id)
            resp = query.execute()
        except Exception as e:
            logger.exception("Supabase bulk resolve failed")
            raise RepositoryError("Failed to resolve tickets in Supabase") from e

        return len(_rows(resp))

    def list_tickets(self, with_relations: bool = True) -> list[TicketView]:
        columns = _TICKET_RELATIONS if with_relations else "*"
        try:
            resp = self._client.table("tickets").select(columns).order("id").execute()
        except Exception as e:
            logger.exception("Supabase ticket listing failed")
            raise RepositoryError("Failed to list tickets in Supabase") from e

        return [TicketView.model_validate(row) for row in _rows(resp)]


def _rows(resp: Any) -> list[dict[str, Any]]:
    return getattr(resp, "data", None) or []
