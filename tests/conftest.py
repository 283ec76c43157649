"""Shared pytest fixtures."""
from datetime import datetime, timedelta, timezone

import pytest

from compliance_tickets.domain.models import User, UserRole
from compliance_tickets.infra.memory_store import MemoryTicketStore
from compliance_tickets.services.ticket_service import TicketService

COMPANY_ID = 1
OTHER_COMPANY_ID = 2

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def store():
    """Memory store with two empty companies."""
    store = MemoryTicketStore()
    store.add_company(COMPANY_ID, "Acme Pte. Ltd.")
    store.add_company(OTHER_COMPANY_ID, "Globex Pte. Ltd.")
    return store


@pytest.fixture
def service(store):
    return TicketService(store)


@pytest.fixture
def make_user():
    """Build a detached User for the pure rule functions."""

    def _make(user_id: int, role: UserRole = UserRole.ACCOUNTANT, minutes: int = 0) -> User:
        return User(
            id=user_id,
            company_id=COMPANY_ID,
            role=role,
            created_at=BASE_TIME + timedelta(minutes=minutes),
        )

    return _make
