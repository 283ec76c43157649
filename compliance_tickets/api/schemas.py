from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from compliance_tickets.domain.models import (
    Company,
    Ticket,
    TicketCategory,
    TicketStatus,
    TicketType,
    TicketView,
    User,
    UserRole,
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateTicketRequest(_CamelModel):
    # Left unvalidated so any unknown value, string or not, reaches the rule engine as InvalidTicketType.
    type: Any = Field(..., description="managementReport | registrationAddressChange | strikeOff")
    company_id: int = Field(..., description="Company the ticket is raised for")


class TicketResponse(_CamelModel):
    id: int
    type: TicketType
    company_id: int
    assignee_id: int
    status: TicketStatus
    category: TicketCategory

    @staticmethod
    def from_ticket(ticket: Ticket) -> "TicketResponse":
        return TicketResponse(
            id=ticket.id,
            type=ticket.type,
            company_id=ticket.company_id,
            assignee_id=ticket.assignee_id,
            status=ticket.status,
            category=ticket.category,
        )


class CompanyResponse(_CamelModel):
    id: int
    name: str


class UserResponse(_CamelModel):
    id: int
    company_id: int
    role: UserRole
    name: str


class TicketDetailResponse(TicketResponse):
    company: CompanyResponse | None = None
    assignee: UserResponse | None = None

    @staticmethod
    def from_view(view: TicketView) -> "TicketDetailResponse":
        return TicketDetailResponse(
            id=view.id,
            type=view.type,
            company_id=view.company_id,
            assignee_id=view.assignee_id,
            status=view.status,
            category=view.category,
            company=_company(view.company),
            assignee=_user(view.assignee),
        )


def _company(company: Company | None) -> CompanyResponse | None:
    if company is None:
        return None
    return CompanyResponse(id=company.id, name=company.name)


def _user(user: User | None) -> UserResponse | None:
    if user is None:
        return None
    return UserResponse(id=user.id, company_id=user.company_id, role=user.role, name=user.name)
