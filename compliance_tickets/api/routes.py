from fastapi import APIRouter, Depends, status

from compliance_tickets.api.schemas import CreateTicketRequest, TicketDetailResponse, TicketResponse
from compliance_tickets.deps import get_ticket_service
from compliance_tickets.services.ticket_service import TicketService

router = APIRouter()


@router.get("/health", tags=["health"])
def health():
    return {"status": "ok"}


@router.get("/api/v1/tickets", response_model=list[TicketDetailResponse], tags=["tickets"])
def list_tickets(svc: TicketService = Depends(get_ticket_service)):
    return [TicketDetailResponse.from_view(view) for view in svc.list_tickets()]


@router.post(
    "/api/v1/tickets",
    response_model=TicketResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["tickets"],
)
def create_ticket(
    payload: CreateTicketRequest,
    svc: TicketService = Depends(get_ticket_service),
):
    ticket = svc.create(payload.type, payload.company_id)
    return TicketResponse.from_ticket(ticket)
