class AppError(Exception):
    """Base app exception."""

    kind: str = "AppError"


class ValidationError(AppError):
    kind = "ValidationError"


class ExternalServiceError(AppError):
    kind = "ExternalServiceError"


class NotFoundError(AppError):
    kind = "NotFoundError"


class RepositoryError(AppError):
    kind = "RepositoryError"


class InvalidTicketType(ValidationError):
    kind = "InvalidTicketType"

    def __init__(self, ticket_type: object, valid_types: list[str]) -> None:
        self.ticket_type = ticket_type
        self.valid_types = valid_types
        super().__init__(
            f"Ticket type {ticket_type} is not valid. Valid types are: {', '.join(valid_types)}"
        )


class TicketRuleError(AppError):
    """A company's staffing or open tickets do not allow the ticket to be created."""

    kind = "TicketRuleError"

    def __init__(self, message: str, *, company_id: int, ticket_type: str, role: str | None = None) -> None:
        self.company_id = company_id
        self.ticket_type = ticket_type
        self.role = role
        super().__init__(message)


class ConflictingOpenTicket(TicketRuleError):
    kind = "ConflictingOpenTicket"


class AmbiguousAssignee(TicketRuleError):
    kind = "AmbiguousAssignee"


class NoEligibleAssignee(TicketRuleError):
    kind = "NoEligibleAssignee"
