import logging
from typing import Literal

from compliance_tickets.core.errors import ConflictingOpenTicket, TicketRuleError
from compliance_tickets.domain.models import NewTicket, Ticket, TicketStatus, TicketType, TicketView, User, UserRole
from compliance_tickets.domain.ports import TicketStore
from compliance_tickets.domain.rules import (
    AssignmentPolicy,
    no_eligible_assignee,
    parse_ticket_type,
    policy_for,
    resolve_category,
    select_assignee,
    ticket_label,
)

logger = logging.getLogger(__name__)

StrikeOffScope = Literal["company", "global"]


class TicketService:
    """
    Orchestrates the use-case:
    - validate the ticket type and the company's open tickets
    - derive the single assignee from the company's staffing
    - persist the ticket and apply its side effects (strike off resolves the rest)
    """

    def __init__(self, store: TicketStore, strike_off_scope: StrikeOffScope = "company") -> None:
        self._store = store
        self._strike_off_scope = strike_off_scope

    def create(self, ticket_type: object, company_id: int) -> Ticket:
        parsed_type = parse_ticket_type(ticket_type)
        category = resolve_category(parsed_type)
        policy = policy_for(parsed_type)

        with self._store.transaction():
            try:
                if policy.unique_open:
                    self._ensure_no_open_ticket(parsed_type, company_id)
                assignee, role = self._find_assignee(parsed_type, company_id, policy)
            except TicketRuleError as e:
                logger.warning("Rejected %s ticket for company %s: %s", parsed_type.value, company_id, e)
                raise

            ticket = self._store.create_ticket(
                NewTicket(
                    type=parsed_type,
                    category=category,
                    company_id=company_id,
                    assignee_id=assignee.id,
                    status=TicketStatus.OPEN,
                )
            )
            logger.info(
                "Created %s ticket %s for company %s assigned to user %s (%s)",
                parsed_type.value,
                ticket.id,
                company_id,
                assignee.id,
                role.value,
            )

            if policy.supersedes_others:
                scope_company = company_id if self._strike_off_scope == "company" else None
                resolved = self._store.resolve_all_except(ticket.id, scope_company)
                logger.info("Ticket %s resolved %d other open ticket(s)", ticket.id, resolved)

        return ticket

    def list_tickets(self) -> list[TicketView]:
        return self._store.list_tickets(with_relations=True)

    def _ensure_no_open_ticket(self, ticket_type: TicketType, company_id: int) -> None:
        if self._store.find_open_tickets(ticket_type, company_id):
            raise ConflictingOpenTicket(
                f"Cannot create a ticket for company {company_id} because there is already "
                f"an open ticket for {ticket_label(ticket_type)}",
                company_id=company_id,
                ticket_type=ticket_type.value,
            )

    def _find_assignee(
        self, ticket_type: TicketType, company_id: int, policy: AssignmentPolicy
    ) -> tuple[User, UserRole]:
        for role in policy.roles:
            candidates = self._store.find_users(company_id, role)
            if not candidates:
                logger.debug("Company %s has no %s; trying next pool", company_id, role.value)
                continue
            assignee = select_assignee(
                candidates, policy, company_id=company_id, ticket_type=ticket_type, role=role
            )
            return assignee, role

        raise no_eligible_assignee(company_id=company_id, ticket_type=ticket_type, roles=policy.roles)
