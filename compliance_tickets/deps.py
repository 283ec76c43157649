from functools import lru_cache

from compliance_tickets.core.config import settings
from compliance_tickets.core.errors import ExternalServiceError
from compliance_tickets.domain.ports import TicketStore
from compliance_tickets.infra.memory_store import MemoryTicketStore
from compliance_tickets.services.ticket_service import TicketService


@lru_cache(maxsize=1)
def get_ticket_store() -> TicketStore:
    if settings.ticket_store == "supabase":
        if not settings.supabase_url or not settings.supabase_service_role_key:
            raise ExternalServiceError(
                "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required for TICKET_STORE=supabase"
            )

        from compliance_tickets.infra.supabase_repo import SupabaseTicketRepository

        return SupabaseTicketRepository(settings.supabase_url, settings.supabase_service_role_key)

    return MemoryTicketStore()


def get_ticket_service() -> TicketService:
    return TicketService(store=get_ticket_store(), strike_off_scope=settings.strike_off_scope)
