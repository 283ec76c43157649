"""
Tests for the Supabase store against a fake PostgREST query builder.
"""

from types import SimpleNamespace

import pytest

from compliance_tickets.core.errors import ConflictingOpenTicket, RepositoryError
from compliance_tickets.domain.models import NewTicket, TicketCategory, TicketStatus, TicketType, UserRole
from compliance_tickets.infra import supabase_repo
from compliance_tickets.infra.supabase_repo import SupabaseTicketRepository
from compliance_tickets.services.ticket_service import TicketService


class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.calls = []

    def __getattr__(self, name):
        def record(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self

        return record

    def execute(self):
        self.client.executed.append(self)
        if self.client.error is not None:
            raise self.client.error
        if any(name in self.client.fail_on for name, _, _ in self.calls):
            raise FakeAPIError("57014")
        return SimpleNamespace(data=self.client.table_rows.get(self.table, self.client.rows))


class FakeClient:
    def __init__(self):
        self.rows = []
        self.table_rows = {}
        self.fail_on = set()
        self.error = None
        self.executed = []

    def table(self, name):
        return FakeQuery(self, name)


class FakeAPIError(Exception):
    def __init__(self, code):
        super().__init__(f"postgres error {code}")
        self.code = code


@pytest.fixture
def client(monkeypatch):
    fake = FakeClient()
    monkeypatch.setattr(supabase_repo, "create_client", lambda url, key: fake)
    return fake


@pytest.fixture
def repo(client):
    return SupabaseTicketRepository("https://example.supabase.co", "service-key")


def _ticket_row(ticket_id=10, **overrides):
    row = {
        "id": ticket_id,
        "type": "strikeOff",
        "category": "management",
        "company_id": 1,
        "assignee_id": 3,
        "status": "open",
        "created_at": "2024-05-01T10:00:00+00:00",
    }
    row.update(overrides)
    return row


def _new_ticket():
    return NewTicket(
        type=TicketType.STRIKE_OFF,
        category=TicketCategory.MANAGEMENT,
        company_id=1,
        assignee_id=3,
    )


def test_find_users_filters_and_orders(repo, client):
    client.rows = [{"id": 3, "company_id": 1, "role": "director", "name": "Grace", "created_at": "2024-01-01T00:00:00Z"}]

    users = repo.find_users(1, UserRole.DIRECTOR)

    assert [u.id for u in users] == [3]
    query = client.executed[0]
    assert query.table == "users"
    assert ("eq", ("company_id", 1), {}) in query.calls
    assert ("eq", ("role", "director"), {}) in query.calls
    assert ("order", ("created_at",), {"desc": True}) in query.calls


def test_find_open_tickets_queries_open_status(repo, client):
    client.rows = [_ticket_row(type="registrationAddressChange", category="corporate")]

    tickets = repo.find_open_tickets(TicketType.REGISTRATION_ADDRESS_CHANGE, 1)

    assert tickets[0].type == TicketType.REGISTRATION_ADDRESS_CHANGE
    assert ("eq", ("status", "open"), {}) in client.executed[0].calls


def test_create_ticket_returns_inserted_row(repo, client):
    client.rows = [_ticket_row()]

    ticket = repo.create_ticket(_new_ticket())

    assert ticket.id == 10
    name, args, _ = client.executed[0].calls[0]
    assert name == "insert"
    assert args[0]["type"] == "strikeOff"
    assert args[0]["status"] == "open"


def test_create_ticket_maps_unique_violation_to_conflict(repo, client):
    client.error = FakeAPIError("23505")

    with pytest.raises(ConflictingOpenTicket):
        repo.create_ticket(_new_ticket())


def test_create_ticket_wraps_other_failures(repo, client):
    client.error = FakeAPIError("08006")

    with pytest.raises(RepositoryError):
        repo.create_ticket(_new_ticket())


def test_create_ticket_without_returned_row_fails(repo, client):
    client.rows = []

    with pytest.raises(RepositoryError):
        repo.create_ticket(_new_ticket())


def test_resolve_all_except_scoped_to_company(repo, client):
    client.rows = [_ticket_row(1, status="resolved"), _ticket_row(2, status="resolved")]

    count = repo.resolve_all_except(10, company_id=1)

    calls = client.executed[0].calls
    assert count == 2
    assert ("update", ({"status": TicketStatus.RESOLVED.value},), {}) in calls
    assert ("neq", ("id", 10), {}) in calls
    assert ("eq", ("company_id", 1), {}) in calls


def test_resolve_all_except_global(repo, client):
    repo.resolve_all_except(10)

    names = [call[1][0] for call in client.executed[0].calls if call[0] == "eq"]
    assert "company_id" not in names


def test_list_tickets_embeds_relations(repo, client):
    client.rows = [
        _ticket_row(
            company={"id": 1, "name": "Acme"},
            assignee={"id": 3, "company_id": 1, "role": "director", "name": "Grace"},
        )
    ]

    views = repo.list_tickets()

    assert views[0].company.name == "Acme"
    assert views[0].assignee.role == UserRole.DIRECTOR
    assert client.executed[0].calls[0] == ("select", ("*, company:companies(*), assignee:users(*)",), {})


def test_query_failure_is_wrapped(repo, client):
    client.error = RuntimeError("connection reset")

    with pytest.raises(RepositoryError):
        repo.find_users(1, UserRole.ACCOUNTANT)


def _deletes(client):
    return [query for query in client.executed if query.calls and query.calls[0][0] == "delete"]


def test_failed_strike_off_removes_inserted_ticket(repo, client):
    client.table_rows = {
        "users": [{"id": 3, "company_id": 1, "role": "director", "created_at": "2024-01-01T00:00:00Z"}],
        "tickets": [_ticket_row(10)],
    }
    client.fail_on = {"update"}

    with pytest.raises(RepositoryError):
        TicketService(repo).create(TicketType.STRIKE_OFF, 1)

    deletes = _deletes(client)
    assert len(deletes) == 1
    assert ("in_", ("id", [10]), {}) in deletes[0].calls


def test_successful_transaction_keeps_inserted_ticket(repo, client):
    client.rows = [_ticket_row(10)]

    with repo.transaction():
        ticket = repo.create_ticket(_new_ticket())
        repo.resolve_all_except(ticket.id, company_id=1)

    assert _deletes(client) == []


def test_failed_rollback_still_raises_original_error(repo, client):
    client.rows = [_ticket_row(10)]
    client.fail_on = {"update", "delete"}

    with pytest.raises(RepositoryError, match="resolve"):
        with repo.transaction():
            ticket = repo.create_ticket(_new_ticket())
            repo.resolve_all_except(ticket.id)

    assert len(_deletes(client)) == 1


def test_insert_outside_transaction_is_not_tracked(repo, client):
    client.rows = [_ticket_row(10)]
    repo.create_ticket(_new_ticket())

    with pytest.raises(RuntimeError):
        with repo.transaction():
            raise RuntimeError("abort")

    assert _deletes(client) == []
