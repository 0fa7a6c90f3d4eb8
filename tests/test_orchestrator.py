"""
Tests for the flows in gigledger.orchestrator.

The flows run against the real resource APIs and BackendClient, with
FakeHttpSession answering the requests.
"""

import asyncio
from decimal import Decimal

import pytest

from gigledger.audit import AuditLogger
from gigledger.board import BoardState
from gigledger.models import (
    AuditEventType,
    FailureKind,
    Gig,
    GigStatus,
    LoginForm,
    Milestone,
    MilestoneDraft,
    RequestResult,
    TransactionDraft,
    TransactionType,
)
from gigledger.orchestrator import (
    AuthFlow,
    CalendarFlow,
    DashboardFlow,
    GigBoardFlow,
    LedgerFlow,
    create_app_components,
)
from gigledger.scope import ScopeRegistry, ViewScope
from gigledger.services.backend import (
    GigApi,
    MilestoneApi,
    RatesApi,
    TransactionApi,
    UserApi,
)
from gigledger.services.session import InMemorySessionStore, SessionContext, SessionError
from gigledger.validation import TransactionCsvValidator

from conftest import FakeResponse, ReadOnlySessionStore


class RecordingAuditLogger(AuditLogger):
    """Keeps events in memory instead of writing them."""

    def __init__(self):
        super().__init__()
        self.events = []

    def log(self, event):
        self.events.append(event)
        return True

    @property
    def event_types(self):
        return [event.event_type for event in self.events]


TRANSACTIONS = [
    {"_id": "t1", "type": "credit", "amount": 100, "createdAt": "2024-03-01T10:00:00Z"},
    {"_id": "t2", "type": "debit", "amount": 30, "category": "Rent", "createdAt": "2024-03-05T10:00:00Z"},
]

GIGS = [
    {"_id": "g1", "title": "Website", "clientName": "Acme", "status": "Open"},
    {"_id": "g2", "title": "Logo", "status": "In Progress"},
]


@pytest.fixture
def audit():
    return RecordingAuditLogger()


@pytest.fixture
def ledger_flow(client, audit):
    return LedgerFlow(
        TransactionApi(client),
        RatesApi(client),
        validator=TransactionCsvValidator(max_size_bytes=1024 * 1024),
        audit_logger=audit,
        tax_percentage=Decimal("3"),
    )


@pytest.fixture
def board_flow(client, audit):
    return GigBoardFlow(GigApi(client), MilestoneApi(client), audit_logger=audit, max_concurrency=2)


@pytest.fixture
def ledger_routes(http):
    http.route("GET", "/balances/user", FakeResponse(200, {"balance": 70}))
    http.route("GET", "/transactions/user", FakeResponse(200, TRANSACTIONS))
    return http


@pytest.fixture
def board_routes(http):
    http.route("GET", "/gigs/user", FakeResponse(200, GIGS))
    http.route("GET", "/milestones/gig/g1", FakeResponse(200, [
        {"_id": "m1", "title": "Design", "paymentAmount": 200, "dueDate": "2024-05-01"},
        {"_id": "m2", "title": "Build", "paymentAmount": 300, "status": "Done", "dueDate": "2024-05-20"},
    ]))
    http.route("GET", "/milestones/gig/g2", FakeResponse(200, []))
    return http


class TestAuthFlow:
    """Tests for sign in, account and sign out."""

    def test_login_stores_session(self, client, http, audit):
        context = SessionContext(InMemorySessionStore())
        flow = AuthFlow(context, UserApi(client), audit)
        http.route("POST", "/users/login", FakeResponse(200, {
            "token": "fresh",
            "user": {"_id": "u5", "username": "sam"},
        }))
        result = asyncio.run(flow.login(LoginForm(email="sam@example.com", password="pw")))
        assert result.ok
        assert result.data.user_id == "u5"
        assert context.token == "fresh"
        assert AuditEventType.USER_SIGNED_IN in audit.event_types

    def test_failed_login_keeps_user_signed_out(self, client, http, audit):
        context = SessionContext(InMemorySessionStore())
        flow = AuthFlow(context, UserApi(client), audit)
        http.route("POST", "/users/login", FakeResponse(401, {"message": "Invalid credentials"}))
        result = asyncio.run(flow.login(LoginForm(email="sam@example.com", password="bad")))
        assert result.failure == FailureKind.UNAUTHORIZED
        assert result.message == "Invalid credentials"
        assert not context.is_authenticated
        assert audit.event_types == [AuditEventType.REQUEST_FAILED]

    def test_complete_oauth(self, client, audit):
        context = SessionContext(InMemorySessionStore())
        flow = AuthFlow(context, UserApi(client), audit)
        flow.complete_oauth({"token": "g-token", "userId": "u8"})
        assert context.user_id == "u8"
        assert audit.event_types == [AuditEventType.OAUTH_COMPLETED]

    def test_incomplete_oauth_raises(self, client, audit):
        flow = AuthFlow(SessionContext(InMemorySessionStore()), UserApi(client), audit)
        with pytest.raises(SessionError):
            flow.complete_oauth({"token": "g-token"})
        assert audit.events == []

    def test_update_account_refreshes_stored_user(self, client, http, session_context, audit):
        flow = AuthFlow(session_context, UserApi(client), audit)
        http.route("PUT", "/users/u1", FakeResponse(200, {
            "_id": "u1", "username": "maya.k", "email": "k@example.com",
        }))
        result = asyncio.run(flow.update_account("maya.k", "k@example.com"))
        assert result.ok
        assert session_context.username == "maya.k"

    def test_delete_account_signs_out(self, client, http, session_context, audit):
        flow = AuthFlow(session_context, UserApi(client), audit)
        http.route("DELETE", "/users/u1", FakeResponse(200, {"message": "deleted"}))
        assert asyncio.run(flow.delete_account()).ok
        assert not session_context.is_authenticated

    def test_refresh_profile(self, client, http, session_context, audit):
        flow = AuthFlow(session_context, UserApi(client), audit)
        http.route("GET", "/users/me", FakeResponse(200, {"_id": "u1", "username": "maya", "email": "m@x.io"}))
        asyncio.run(flow.refresh_profile())
        assert session_context.user.email == "m@x.io"

    def test_sign_out(self, client, session_context, audit):
        flow = AuthFlow(session_context, UserApi(client), audit)
        assert flow.sign_out().ok
        assert not session_context.is_authenticated
        assert audit.event_types == [AuditEventType.USER_SIGNED_OUT]

    def test_login_with_unwritable_session_store_fails_cleanly(self, client, http, audit):
        context = SessionContext(ReadOnlySessionStore())
        flow = AuthFlow(context, UserApi(client), audit)
        http.route("POST", "/users/login", FakeResponse(200, {
            "token": "fresh",
            "user": {"_id": "u5", "username": "sam"},
        }))
        result = asyncio.run(flow.login(LoginForm(email="sam@example.com", password="pw")))
        assert result.failure == FailureKind.STORAGE
        assert result.user_message == "Could not update the saved session on this device."
        assert not context.is_authenticated
        assert audit.event_types == [AuditEventType.SYSTEM_ERROR]
        assert audit.events[0].details == {"operation": "login"}

    def test_sign_out_with_unwritable_session_store_stays_signed_in(self, client, audit):
        context = SessionContext(ReadOnlySessionStore({"token": "abc", "userId": "u1"}))
        flow = AuthFlow(context, UserApi(client), audit)
        result = flow.sign_out()
        assert result.failure == FailureKind.STORAGE
        assert context.is_authenticated
        assert audit.event_types == [AuditEventType.SYSTEM_ERROR]


class TestLedgerFlow:
    """Tests for loading, saving and importing transactions."""

    def test_load_snapshot(self, ledger_flow, ledger_routes):
        delivered = []
        result = asyncio.run(ledger_flow.load(on_result=delivered.append))
        assert result.ok
        snapshot = result.data
        assert snapshot.balance == Decimal("70")
        assert [t.id for t in snapshot.transactions] == ["t2", "t1"]
        assert delivered == [snapshot]

    def test_load_failure_is_not_delivered(self, ledger_flow, http, audit):
        http.route("GET", "/balances/user", FakeResponse(500, {"message": "db down"}))
        http.route("GET", "/transactions/user", FakeResponse(200, TRANSACTIONS))
        delivered = []
        result = asyncio.run(ledger_flow.load(on_result=delivered.append))
        assert result.failure == FailureKind.SERVER_ERROR
        assert delivered == []
        assert AuditEventType.REQUEST_FAILED in audit.event_types

    def test_closed_scope_discards_result(self, ledger_flow, ledger_routes):
        scope = ViewScope("transactions")
        scope.close()
        delivered = []
        result = asyncio.run(ledger_flow.load(scope=scope, on_result=delivered.append))
        assert result.ok
        assert delivered == []

    def test_rejected_csv_is_never_uploaded(self, ledger_flow, http, audit):
        content = b"amount,type\n50,credit\n-1,debit\n"
        validation, result = asyncio.run(
            ledger_flow.import_csv(content, "march.csv", "text/csv")
        )
        assert validation.error_rows == [3]
        assert result.failure == FailureKind.VALIDATION
        assert result.message.startswith("Row 3:")
        assert http.calls == []
        assert audit.event_types == [AuditEventType.CSV_IMPORT_REJECTED]

    def test_valid_csv_is_uploaded_unchanged_then_reloaded(self, ledger_flow, ledger_routes, audit):
        http = ledger_routes
        http.route("POST", "/transactions/uploadCSV", FakeResponse(200, {"message": "2 imported"}))
        content = b"amount,type\n50,credit\n12,debit\n"
        validation, result = asyncio.run(
            ledger_flow.import_csv(content, "march.csv", "text/csv")
        )
        assert validation.is_valid
        assert result.ok
        upload = http.calls_to("POST", "/transactions/uploadCSV")
        assert len(upload) == 1
        assert upload[0].kwargs["files"]["file"] == ("march.csv", content, "text/csv")
        assert http.calls_to("GET", "/transactions/user")
        assert AuditEventType.CSV_IMPORT_COMPLETED in audit.event_types

    def test_save_credit_sends_tax_and_reloads(self, ledger_flow, ledger_routes):
        http = ledger_routes
        http.route("POST", "/transactions", FakeResponse(201, {"_id": "t3"}))
        draft = TransactionDraft(type=TransactionType.CREDIT, amount=Decimal("200"))
        result = asyncio.run(ledger_flow.save_transaction(draft))
        assert result.ok
        body = http.calls_to("POST", "/transactions")[0].kwargs["json"]
        assert body["tax"] == 6.0
        assert body["taxPercentage"] == 3.0
        assert len(http.calls_to("GET", "/balances/user")) == 1

    def test_update_uses_put(self, ledger_flow, ledger_routes):
        http = ledger_routes
        http.route("PUT", "/transactions/t1", FakeResponse(200, {"_id": "t1"}))
        draft = TransactionDraft(type=TransactionType.DEBIT, amount=Decimal("20"))
        asyncio.run(ledger_flow.save_transaction(draft, transaction_id="t1"))
        assert http.calls_to("PUT", "/transactions/t1")[0].kwargs["json"]["tax"] == 0.0

    def test_failed_save_does_not_reload(self, ledger_flow, http):
        http.route("POST", "/transactions", FakeResponse(400, {"message": "Amount is required"}))
        draft = TransactionDraft(amount=Decimal("5"))
        result = asyncio.run(ledger_flow.save_transaction(draft))
        assert result.failure == FailureKind.CLIENT_ERROR
        assert http.calls_to("GET", "/balances/user") == []

    def test_delete_reloads(self, ledger_flow, ledger_routes):
        http = ledger_routes
        http.route("DELETE", "/transactions/t1", FakeResponse(200, {"message": "deleted"}))
        result = asyncio.run(ledger_flow.delete_transaction("t1"))
        assert result.ok
        assert http.calls_to("GET", "/transactions/user")

    def test_export_follows_snapshot_order(self, ledger_flow, ledger_routes):
        snapshot = asyncio.run(ledger_flow.load()).data
        lines = ledger_flow.export_csv(snapshot).decode("utf-8").splitlines()
        assert lines[1].split(",")[1] == "debit"
        assert lines[2].split(",")[1] == "credit"

    def test_download_report(self, ledger_flow, http, audit):
        http.route("GET", "/transactions/report", FakeResponse(200, content=b"%PDF-1.7"))
        result = asyncio.run(ledger_flow.download_report())
        assert result.data == b"%PDF-1.7"
        assert AuditEventType.REPORT_DOWNLOADED in audit.event_types


class StaticGigApi:
    def __init__(self, gigs):
        self.gigs = gigs

    async def list(self):
        return RequestResult.success(self.gigs)


class SlowMilestoneApi:
    """Counts how many milestone fetches run at the same time."""

    def __init__(self):
        self.active = 0
        self.peak = 0
        self.fetched = []

    async def list_for_gig(self, gig_id):
        self.active += 1
        self.peak = max(self.peak, self.active)
        await asyncio.sleep(0.01)
        self.active -= 1
        self.fetched.append(gig_id)
        return RequestResult.success([Milestone(id=f"m-{gig_id}", gig_id=gig_id)])


class TestGigBoardFlow:
    """Tests for the board workspace and drag-and-drop."""

    def test_load_workspace(self, board_flow, board_routes):
        delivered = []
        result = asyncio.run(board_flow.load_workspace(on_result=delivered.append))
        board = result.data
        assert [g.id for g in board.gigs] == ["g1", "g2"]
        assert [m.id for m in board.milestones_for("g1")] == ["m1", "m2"]
        assert board.milestones_for("g2") == []
        assert delivered == [board]

    def test_failed_milestones_of_one_gig_give_empty_list(self, board_flow, board_routes):
        board_routes.route("GET", "/milestones/gig/g2", FakeResponse(500, {"message": "boom"}))
        board = asyncio.run(board_flow.load_workspace()).data
        assert board.milestones["g2"] == []
        assert len(board.milestones["g1"]) == 2

    def test_failed_gig_list_fails_the_load(self, board_flow, http):
        http.route("GET", "/gigs/user", FakeResponse(503, {"message": "maintenance"}))
        result = asyncio.run(board_flow.load_workspace())
        assert result.failure == FailureKind.SERVER_ERROR

    def test_milestone_fetches_are_bounded(self):
        gigs = [Gig(id=f"g{i}") for i in range(6)]
        milestones = SlowMilestoneApi()
        flow = GigBoardFlow(StaticGigApi(gigs), milestones, RecordingAuditLogger(), max_concurrency=2)
        board = asyncio.run(flow.load_workspace()).data
        assert milestones.peak == 2
        assert sorted(milestones.fetched) == [g.id for g in gigs]
        assert board.milestones_for("g5")[0].id == "m-g5"

    def test_move_is_optimistic_then_saved(self, board_flow, http, audit):
        http.route("PUT", "/gigs/g1", FakeResponse(200, {}))
        board = BoardState([Gig.model_validate(g) for g in GIGS])
        delivered = []
        new_board, result = asyncio.run(
            board_flow.move_gig(board, "g1", "Completed", on_result=delivered.append)
        )
        assert result.ok
        assert new_board.gig("g1").status == GigStatus.COMPLETED
        assert delivered == [new_board]
        assert http.calls_to("PUT", "/gigs/g1")[0].kwargs["json"] == {"status": "Completed"}
        assert AuditEventType.GIG_MOVED in audit.event_types

    def test_move_leaves_unreadable_due_date_alone(self, board_flow, http):
        """Only the status is sent, so a due date we could not parse is never overwritten."""
        http.route("PUT", "/gigs/g1", FakeResponse(200, {}))
        board = BoardState([Gig.model_validate({"_id": "g1", "title": "Site", "status": "Open", "dueDate": "TBD"})])
        asyncio.run(board_flow.move_gig(board, "g1", "Completed"))
        assert http.calls_to("PUT", "/gigs/g1")[0].kwargs["json"] == {"status": "Completed"}

    def test_noop_move_sends_nothing(self, board_flow, http):
        board = BoardState([Gig.model_validate(g) for g in GIGS])
        delivered = []
        new_board, result = asyncio.run(
            board_flow.move_gig(board, "g2", "InProgress", on_result=delivered.append)
        )
        assert new_board is board
        assert result.ok
        assert http.calls == []
        assert delivered == []

    def test_failed_move_is_reconciled_from_backend(self, board_flow, board_routes, audit):
        board_routes.route("PUT", "/gigs/g1", FakeResponse(500, {"message": "write failed"}))
        board = BoardState([Gig.model_validate(g) for g in GIGS])
        delivered = []
        new_board, result = asyncio.run(
            board_flow.move_gig(board, "g1", "Archived", on_result=delivered.append)
        )
        assert result.failure == FailureKind.SERVER_ERROR
        assert new_board.gig("g1").status == GigStatus.OPEN
        assert len(new_board.milestones_for("g1")) == 2
        assert [b.gig("g1").status for b in delivered] == [GigStatus.ARCHIVED, GigStatus.OPEN]
        assert AuditEventType.BOARD_RECONCILED in audit.event_types

    def test_failed_move_and_failed_refetch_restores_board(self, board_flow, http):
        http.route("PUT", "/gigs/g1", FakeResponse(500, {"message": "write failed"}))
        http.route("GET", "/gigs/user", FakeResponse(500, {"message": "read failed"}))
        board = BoardState([Gig.model_validate(g) for g in GIGS])
        delivered = []
        new_board, result = asyncio.run(
            board_flow.move_gig(board, "g1", "Archived", on_result=delivered.append)
        )
        assert not result.ok
        assert new_board is board
        assert delivered[-1] is board

    def test_toggle_milestone_done(self, board_flow, board_routes):
        board_routes.route("PUT", "/milestones/m1", FakeResponse(200, {}))
        milestone = Milestone.model_validate({
            "_id": "m1",
            "title": "Design",
            "paymentAmount": 200,
            "startDate": "2024-05-01",
            "dueDate": "next week",
        })
        result = asyncio.run(board_flow.toggle_milestone_done(milestone))
        assert result.ok
        assert board_routes.calls_to("PUT", "/milestones/m1")[0].kwargs["json"] == {"status": "Done"}

    def test_toggle_gig_complete(self, board_flow, board_routes):
        board_routes.route("PUT", "/gigs/g1", FakeResponse(200, {}))
        asyncio.run(board_flow.toggle_gig_complete(Gig.model_validate(GIGS[0])))
        assert board_routes.calls_to("PUT", "/gigs/g1")[0].kwargs["json"] == {"status": "Completed"}

    def test_save_milestone_creates_under_gig(self, board_flow, board_routes):
        board_routes.route("POST", "/milestones/gig/g2", FakeResponse(201, {"_id": "m9", "title": "Draft"}))
        result = asyncio.run(board_flow.save_milestone("g2", MilestoneDraft(title="Draft")))
        assert result.ok
        assert board_routes.calls_to("POST", "/milestones/gig/g2")
        assert len(board_routes.calls_to("GET", "/gigs/user")) == 1

    def test_failed_delete_does_not_reload(self, board_flow, http):
        http.route("DELETE", "/gigs/g1", FakeResponse(404, {"message": "Gig not found"}))
        result = asyncio.run(board_flow.delete_gig("g1"))
        assert result.failure == FailureKind.NOT_FOUND
        assert http.calls_to("GET", "/gigs/user") == []


class TestCalendarAndDashboard:
    """Tests for the calendar and dashboard flows."""

    def test_calendar_index(self, client, board_flow, board_routes, audit):
        flow = CalendarFlow(board_flow, MilestoneApi(client), audit)
        index = asyncio.run(flow.load_index()).data
        assert index.highlighted_days() == ["2024-05-01", "2024-05-20"]
        assert index.gig_id_for("m2") == "g1"

    def test_download_invoice(self, client, board_flow, http, audit):
        http.route("GET", "/milestones/m1/invoice", FakeResponse(200, content=b"%PDF"))
        flow = CalendarFlow(board_flow, MilestoneApi(client), audit)
        result = asyncio.run(flow.download_invoice("m1", "Acme", "Maya"))
        assert result.data == b"%PDF"
        assert AuditEventType.INVOICE_DOWNLOADED in audit.event_types

    def test_dashboard(self, client, board_flow, ledger_routes, board_routes, audit):
        flow = DashboardFlow(TransactionApi(client), board_flow, audit)
        summary = asyncio.run(flow.load()).data
        assert summary.balance == Decimal("70")
        assert summary.total_credits == Decimal("100")
        assert summary.pending_payouts == Decimal("200")
        assert summary.gig_status_counts["Open"] == 1
        assert summary.top_gigs[0].gig_id == "g1"

    def test_dashboard_failure(self, client, board_flow, ledger_routes, http, audit):
        http.route("GET", "/gigs/user", FakeResponse(401, {"message": "expired"}))
        result = asyncio.run(DashboardFlow(TransactionApi(client), board_flow, audit).load())
        assert result.failure == FailureKind.UNAUTHORIZED


class TestWiring:
    """Tests for scopes and the component factory."""

    def test_reopening_a_view_closes_its_previous_scope(self):
        registry = ScopeRegistry()
        first = registry.open("board")
        second = registry.open("board")
        assert not first.is_active
        assert second.is_active
        assert registry.get("board") is second
        registry.close_all()
        assert not second.is_active

    def test_create_app_components(self, session_context, client):
        components = create_app_components(session=session_context, client=client)
        assert components.session is session_context
        assert components.client is client
        assert components.auth_flow.session is session_context


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
