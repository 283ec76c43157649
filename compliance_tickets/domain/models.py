from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TicketType(StrEnum):
    MANAGEMENT_REPORT = "managementReport"
    REGISTRATION_ADDRESS_CHANGE = "registrationAddressChange"
    STRIKE_OFF = "strikeOff"


class TicketCategory(StrEnum):
    ACCOUNTING = "accounting"
    CORPORATE = "corporate"
    MANAGEMENT = "management"


class TicketStatus(StrEnum):
    OPEN = "open"
    RESOLVED = "resolved"


class UserRole(StrEnum):
    DIRECTOR = "director"
    CORPORATE_SECRETARY = "corporateSecretary"
    ACCOUNTANT = "accountant"


class Company(BaseModel):
    id: int
    name: str
    created_at: datetime = Field(default_factory=_utcnow)


class User(BaseModel):
    id: int
    company_id: int
    role: UserRole
    name: str = ""
    created_at: datetime = Field(default_factory=_utcnow)


class NewTicket(BaseModel):
    """Fields the rule engine decides; the store adds id and timestamp."""

    type: TicketType
    category: TicketCategory
    company_id: int
    assignee_id: int
    status: TicketStatus = TicketStatus.OPEN


class Ticket(NewTicket):
    id: int
    created_at: datetime = Field(default_factory=_utcnow)


class TicketView(Ticket):
    company: Company | None = None
    assignee: User | None = None
