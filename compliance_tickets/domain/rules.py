from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Final

from compliance_tickets.core.errors import AmbiguousAssignee, InvalidTicketType, NoEligibleAssignee
from compliance_tickets.domain.models import TicketCategory, TicketType, User, UserRole


class Selection(StrEnum):
    MOST_RECENT = "most_recent"
    SOLE = "sole"


@dataclass(frozen=True)
class AssignmentPolicy:
    """
    How a ticket type finds its assignee:
    - roles: candidate pools, tried in order; the next pool is only consulted when the current one is empty
    - selection: how one user is picked from a non-empty pool
    - unique_open: at most one open ticket of this type per company
    - supersedes_others: creating it resolves the other open tickets
    """

    roles: tuple[UserRole, ...]
    selection: Selection
    unique_open: bool = False
    supersedes_others: bool = False


CATEGORY_BY_TYPE: Final[dict[TicketType, TicketCategory]] = {
    TicketType.MANAGEMENT_REPORT: TicketCategory.ACCOUNTING,
    TicketType.REGISTRATION_ADDRESS_CHANGE: TicketCategory.CORPORATE,
    TicketType.STRIKE_OFF: TicketCategory.MANAGEMENT,
}

LABEL_BY_TYPE: Final[dict[TicketType, str]] = {
    TicketType.MANAGEMENT_REPORT: "management report",
    TicketType.REGISTRATION_ADDRESS_CHANGE: "registration address change",
    TicketType.STRIKE_OFF: "strike off",
}

ROLE_LABELS: Final[dict[UserRole, str]] = {
    UserRole.DIRECTOR: "director",
    UserRole.CORPORATE_SECRETARY: "corporate secretary",
    UserRole.ACCOUNTANT: "accountant",
}

POLICY_BY_TYPE: Final[dict[TicketType, AssignmentPolicy]] = {
    TicketType.MANAGEMENT_REPORT: AssignmentPolicy(
        roles=(UserRole.ACCOUNTANT,),
        selection=Selection.MOST_RECENT,
    ),
    TicketType.REGISTRATION_ADDRESS_CHANGE: AssignmentPolicy(
        roles=(UserRole.CORPORATE_SECRETARY, UserRole.DIRECTOR),
        selection=Selection.SOLE,
        unique_open=True,
    ),
    TicketType.STRIKE_OFF: AssignmentPolicy(
        roles=(UserRole.DIRECTOR,),
        selection=Selection.SOLE,
        supersedes_others=True,
    ),
}


def _require_exhaustive(name: str, mapping: Mapping, keys: type[StrEnum]) -> None:
    missing = [member.value for member in keys if member not in mapping]
    if missing:
        raise RuntimeError(f"{name} has no entry for: {', '.join(missing)}")


_require_exhaustive("CATEGORY_BY_TYPE", CATEGORY_BY_TYPE, TicketType)
_require_exhaustive("LABEL_BY_TYPE", LABEL_BY_TYPE, TicketType)
_require_exhaustive("POLICY_BY_TYPE", POLICY_BY_TYPE, TicketType)
_require_exhaustive("ROLE_LABELS", ROLE_LABELS, UserRole)


def _valid_types() -> list[str]:
    return [ticket_type.value for ticket_type in TicketType]


def parse_ticket_type(value: object) -> TicketType:
    if isinstance(value, TicketType):
        return value
    try:
        return TicketType(value)
    except (ValueError, TypeError) as e:
        raise InvalidTicketType(value, _valid_types()) from e


def resolve_category(ticket_type: object) -> TicketCategory:
    return CATEGORY_BY_TYPE[parse_ticket_type(ticket_type)]


def ticket_label(ticket_type: TicketType) -> str:
    return LABEL_BY_TYPE[ticket_type]


def policy_for(ticket_type: TicketType) -> AssignmentPolicy:
    return POLICY_BY_TYPE[ticket_type]


def _recency_key(user: User) -> tuple:
    return (user.created_at, user.id)


def pick_most_recent(candidates: Sequence[User]) -> User:
    """Newest user by creation time; equal timestamps fall back to the higher id."""
    if not candidates:
        raise ValueError("pick_most_recent needs at least one candidate")
    return max(candidates, key=_recency_key)


def _roles_text(roles: Sequence[UserRole]) -> str:
    return " or ".join(ROLE_LABELS[role] for role in roles)


def no_eligible_assignee(*, company_id: int, ticket_type: TicketType, roles: Sequence[UserRole]) -> NoEligibleAssignee:
    return NoEligibleAssignee(
        f"Cannot find user with role {_roles_text(roles)} in company {company_id} "
        f"to create a {ticket_label(ticket_type)} ticket",
        company_id=company_id,
        ticket_type=ticket_type.value,
        role=",".join(role.value for role in roles),
    )


def pick_sole(candidates: Sequence[User], *, company_id: int, ticket_type: TicketType, role: UserRole) -> User:
    if not candidates:
        raise no_eligible_assignee(company_id=company_id, ticket_type=ticket_type, roles=(role,))
    if len(candidates) > 1:
        raise AmbiguousAssignee(
            f"Cannot create a {ticket_label(ticket_type)} ticket for company {company_id} "
            f"because there are multiple users with role {ROLE_LABELS[role]}",
            company_id=company_id,
            ticket_type=ticket_type.value,
            role=role.value,
        )
    return candidates[0]


def select_assignee(
    candidates: Sequence[User],
    policy: AssignmentPolicy,
    *,
    company_id: int,
    ticket_type: TicketType,
    role: UserRole,
) -> User:
    if not candidates:
        raise no_eligible_assignee(company_id=company_id, ticket_type=ticket_type, roles=(role,))
    if policy.selection is Selection.MOST_RECENT:
        return pick_most_recent(candidates)
    return pick_sole(candidates, company_id=company_id, ticket_type=ticket_type, role=role)
