"""
Main Orchestrator for GigLedger

This module ties together all the components and defines the
end-to-end flows for:
1. Auth (register, login, OAuth callback, account edits, sign out)
2. Ledger (load, save, delete, CSV import, PDF report, CSV export, rates)
3. Gig board (load, drag-and-drop, gig/milestone CRUD, toggles)
4. Calendar (milestone index, milestone edits, invoices)
5. Dashboard (overview figures)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Input is validated before any request is made
- Every backend call returns a RequestResult, failures are logged once here
- Loads deliver their results only to a view scope that is still open
- A failed board move is reconciled by refetching, never patched

Views only render what these flows return.
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Callable, Mapping, NamedTuple, Optional
from uuid import UUID

import structlog

from gigledger.audit import AuditLogger, create_correlation_id
from gigledger.board import BoardState, toggled_gig_status, toggled_milestone_status
from gigledger.config import get_settings
from gigledger.models.audit import AuditEventType
from gigledger.models.gigs import Gig, GigDraft, Milestone, MilestoneDraft
from gigledger.models.imports import CsvValidationResult
from gigledger.models.ledger import LedgerSnapshot, TransactionDraft
from gigledger.models.results import FailureKind, RequestResult
from gigledger.models.user import AuthSession, LoginForm, RegistrationForm
from gigledger.queries import (
    MilestoneCalendarIndex,
    build_dashboard_summary,
    sort_newest_first,
    transactions_to_csv,
)
from gigledger.scope import ViewScope
from gigledger.services.backend import (
    BackendClient,
    GigApi,
    MilestoneApi,
    RatesApi,
    TransactionApi,
    UserApi,
)
from gigledger.services.session import JsonFileSessionStore, SessionContext, SessionStoreError
from gigledger.validation import TransactionCsvValidator


logger = structlog.get_logger("gigledger.orchestrator")

ResultSink = Callable[[object], None]


def _deliver(
    scope: Optional[ViewScope],
    on_result: Optional[ResultSink],
    result: RequestResult,
) -> None:
    """Hand a successful load to the view, unless the view has gone away."""
    if on_result is None or not result.ok:
        return
    if scope is None:
        on_result(result.data)
    else:
        scope.apply(on_result, result.data)


def _log_failure(
    audit_logger: AuditLogger,
    operation: str,
    result: RequestResult,
    correlation_id: Optional[UUID] = None,
) -> None:
    if result.ok:
        return
    audit_logger.log_request_failed(
        operation=operation,
        failure=result.failure.value if result.failure else "unknown",
        error_message=result.message,
        status_code=result.status_code,
        correlation_id=correlation_id,
    )


def _storage_failure(
    audit_logger: AuditLogger,
    operation: str,
    error: SessionStoreError,
) -> RequestResult:
    audit_logger.log_error("session_store", str(error), details={"operation": operation})
    return RequestResult.failed(
        FailureKind.STORAGE,
        "Could not update the saved session on this device.",
    )


class AuthFlow:
    """
    Orchestrates sign in, sign out and account management.

    The SessionContext is the only thing that stores session state; this
    flow decides when to call it.
    """

    def __init__(
        self,
        session: SessionContext,
        users: UserApi,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._session = session
        self._users = users
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def session(self) -> SessionContext:
        return self._session

    def oauth_url(self) -> str:
        return self._users.oauth_url()

    async def register(self, form: RegistrationForm) -> RequestResult:
        result = await self._users.register(form)
        if not result.ok:
            _log_failure(self._audit_logger, "register", result)
            return result
        user_id = ""
        if isinstance(result.data, dict):
            user_id = str(result.data.get("_id") or result.data.get("id") or "")
        self._audit_logger.log_account_changed(AuditEventType.USER_REGISTERED, user_id)
        return result

    async def login(self, form: LoginForm) -> RequestResult:
        """
        Password login. On success the session is stored.

        Returns:
            RequestResult whose data is the new AuthSession
        """
        result = await self._users.login(form)
        if not result.ok:
            _log_failure(self._audit_logger, "login", result)
            return result
        try:
            session = self._session.sign_in(result.data)
        except SessionStoreError as e:
            return _storage_failure(self._audit_logger, "login", e)
        self._audit_logger.log_signed_in(session.user_id, "password")
        return RequestResult.success(session, status_code=result.status_code)

    def complete_oauth(self, query_params: Mapping) -> AuthSession:
        """
        Finish Google sign in from the callback's query parameters.

        Raises:
            SessionError: If token or userId is missing
        """
        session = self._session.complete_oauth(query_params)
        self._audit_logger.log_signed_in(session.user_id, "oauth")
        return session

    async def refresh_profile(self) -> RequestResult:
        """Fetch /users/me and keep the stored user record current."""
        result = await self._users.me()
        if result.ok:
            self._session.update_user(result.data)
        else:
            _log_failure(self._audit_logger, "users.me", result)
        return result

    async def load_account(self) -> RequestResult:
        result = await self._users.get(self._session.user_id or "")
        _log_failure(self._audit_logger, "users.get", result)
        return result

    async def update_account(self, username: str, email: str) -> RequestResult:
        user_id = self._session.user_id or ""
        result = await self._users.update(user_id, username, email)
        if result.ok:
            self._session.update_user(result.data)
            self._audit_logger.log_account_changed(AuditEventType.ACCOUNT_UPDATED, user_id)
        else:
            _log_failure(self._audit_logger, "users.update", result)
        return result

    async def delete_account(self) -> RequestResult:
        """Delete the account; on success the session is cleared too."""
        user_id = self._session.user_id or ""
        result = await self._users.delete(user_id)
        if result.ok:
            self._audit_logger.log_account_changed(AuditEventType.ACCOUNT_DELETED, user_id)
            try:
                self._session.sign_out()
            except SessionStoreError as e:
                return _storage_failure(self._audit_logger, "delete_account", e)
        else:
            _log_failure(self._audit_logger, "users.delete", result)
        return result

    def sign_out(self) -> RequestResult:
        """Clear the stored session. A failed clear leaves the user signed in."""
        user_id = self._session.user_id
        try:
            self._session.sign_out()
        except SessionStoreError as e:
            return _storage_failure(self._audit_logger, "sign_out", e)
        self._audit_logger.log_signed_out(user_id)
        return RequestResult.success()


class LedgerFlow:
    """
    Orchestrates the transaction ledger.

    Every successful change is followed by a full reload of balance and
    transactions, since the backend recomputes the balance.
    """

    def __init__(
        self,
        transactions: TransactionApi,
        rates: RatesApi,
        validator: Optional[TransactionCsvValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        tax_percentage: Optional[Decimal] = None,
    ):
        self._transactions = transactions
        self._rates = rates
        self._validator = validator or TransactionCsvValidator()
        self._audit_logger = audit_logger or AuditLogger()
        if tax_percentage is None:
            tax_percentage = Decimal(str(get_settings().app.default_tax_percentage))
        self._tax_percentage = tax_percentage

    @property
    def tax_percentage(self) -> Decimal:
        return self._tax_percentage

    async def load(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        scope: Optional[ViewScope] = None,
        on_result: Optional[ResultSink] = None,
    ) -> RequestResult:
        """
        Load balance and transactions concurrently.

        Returns:
            RequestResult whose data is a LedgerSnapshot
        """
        balance_result, list_result = await asyncio.gather(
            self._transactions.balance(),
            self._transactions.list(start_date, end_date),
        )
        for operation, part in (("balance", balance_result), ("transactions.list", list_result)):
            if not part.ok:
                _log_failure(self._audit_logger, operation, part)
                return part

        result = RequestResult.success(LedgerSnapshot(
            balance=balance_result.data.balance,
            transactions=sort_newest_first(list_result.data),
        ))
        _deliver(scope, on_result, result)
        return result

    async def save_transaction(
        self,
        draft: TransactionDraft,
        transaction_id: Optional[str] = None,
        scope: Optional[ViewScope] = None,
        on_result: Optional[ResultSink] = None,
    ) -> RequestResult:
        """Create (no id) or update a transaction, then reload."""
        correlation_id = create_correlation_id()
        if transaction_id:
            result = await self._transactions.update(transaction_id, draft, self._tax_percentage)
        else:
            result = await self._transactions.create(draft, self._tax_percentage)
        if not result.ok:
            _log_failure(self._audit_logger, "transactions.save", result, correlation_id)
            return result

        saved_id = transaction_id
        if saved_id is None and isinstance(result.data, dict):
            saved_id = result.data.get("_id") or result.data.get("id")
        self._audit_logger.log_saved(
            AuditEventType.TRANSACTION_SAVED,
            "transaction",
            str(saved_id) if saved_id else None,
            correlation_id,
            details={"type": draft.type.value, "amount": str(draft.amount)},
        )
        return await self.load(scope=scope, on_result=on_result)

    async def delete_transaction(
        self,
        transaction_id: str,
        scope: Optional[ViewScope] = None,
        on_result: Optional[ResultSink] = None,
    ) -> RequestResult:
        result = await self._transactions.delete(transaction_id)
        if not result.ok:
            _log_failure(self._audit_logger, "transactions.delete", result)
            return result
        self._audit_logger.log_saved(
            AuditEventType.TRANSACTION_DELETED, "transaction", transaction_id
        )
        return await self.load(scope=scope, on_result=on_result)

    async def import_csv(
        self,
        content: bytes,
        filename: str,
        mime_type: Optional[str],
        scope: Optional[ViewScope] = None,
        on_result: Optional[ResultSink] = None,
    ) -> tuple[CsvValidationResult, RequestResult]:
        """
        Validate a CSV and, only if it is valid, upload it and reload.

        Returns:
            (validation, result). On a rejected file `result` is a
            VALIDATION failure and nothing was sent.
        """
        correlation_id = create_correlation_id()
        validation = self._validator.validate(content, filename, mime_type)
        if not validation.is_valid:
            self._audit_logger.log_import_rejected(
                filename=filename,
                error_rows=validation.error_rows,
                message=validation.error_message or "",
                correlation_id=correlation_id,
            )
            return validation, RequestResult.failed(
                FailureKind.VALIDATION, validation.error_message or "Invalid CSV file"
            )

        upload = await self._transactions.upload_csv(filename, content, mime_type or "text/csv")
        if not upload.ok:
            _log_failure(self._audit_logger, "transactions.uploadCSV", upload, correlation_id)
            return validation, upload

        self._audit_logger.log_import_completed(
            filename, validation.data_row_count, correlation_id
        )
        return validation, await self.load(scope=scope, on_result=on_result)

    async def download_report(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> RequestResult:
        """PDF report for a date range. Data is the PDF bytes."""
        result = await self._transactions.report(start_date, end_date)
        if result.ok:
            self._audit_logger.log_document_downloaded(
                AuditEventType.REPORT_DOWNLOADED, None, len(result.data or b"")
            )
        else:
            _log_failure(self._audit_logger, "transactions.report", result)
        return result

    def export_csv(self, snapshot: LedgerSnapshot) -> bytes:
        return transactions_to_csv(snapshot.transactions)

    async def load_rates(self) -> RequestResult:
        result = await self._rates.get()
        _log_failure(self._audit_logger, "rates", result)
        return result


class GigBoardFlow:
    """
    Orchestrates the gig board.

    Flow for a drag-and-drop:
    1. Apply the new status locally and show it
    2. PUT the gig
    3. On failure, refetch the whole board and show that instead
    """

    def __init__(
        self,
        gigs: GigApi,
        milestones: MilestoneApi,
        audit_logger: Optional[AuditLogger] = None,
        max_concurrency: Optional[int] = None,
    ):
        self._gigs = gigs
        self._milestones = milestones
        self._audit_logger = audit_logger or AuditLogger()
        self._max_concurrency = max_concurrency or get_settings().app.milestone_fetch_concurrency

    async def load_workspace(
        self,
        scope: Optional[ViewScope] = None,
        on_result: Optional[ResultSink] = None,
    ) -> RequestResult:
        """
        Load all gigs, then the milestones of each gig.

        Milestone lists are fetched with bounded concurrency. A gig whose
        milestones fail to load gets an empty list; the others are kept.

        Returns:
            RequestResult whose data is a BoardState
        """
        gigs_result = await self._gigs.list()
        if not gigs_result.ok:
            _log_failure(self._audit_logger, "gigs.list", gigs_result)
            return gigs_result

        gigs: list[Gig] = gigs_result.data
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def fetch(gig: Gig) -> tuple[str, list[Milestone]]:
            async with semaphore:
                result = await self._milestones.list_for_gig(gig.id)
            if not result.ok:
                logger.warning(
                    "milestones_unavailable",
                    gig_id=gig.id,
                    failure=result.failure.value if result.failure else None,
                )
                return gig.id, []
            return gig.id, result.data

        pairs = await asyncio.gather(*(fetch(gig) for gig in gigs if gig.id))
        result = RequestResult.success(BoardState(gigs, dict(pairs)))
        _deliver(scope, on_result, result)
        return result

    async def move_gig(
        self,
        board: BoardState,
        gig_id: str,
        target_column,
        scope: Optional[ViewScope] = None,
        on_result: Optional[ResultSink] = None,
    ) -> tuple[BoardState, RequestResult]:
        """
        Handle a card drop.

        `on_result` receives the optimistic board right away and, if the
        save fails, the refetched board afterwards.

        Returns:
            (board, result). A no-op returns the same board and a
            successful empty result without any request.
        """
        moved_board, moved = board.drop(gig_id, target_column)
        if moved is None:
            return board, RequestResult.success(None)

        correlation_id = create_correlation_id()
        from_status = board.gig(gig_id).status.value
        _deliver(scope, on_result, RequestResult.success(moved_board))

        result = await self._gigs.update(gig_id, {"status": moved.status.value})
        if result.ok:
            self._audit_logger.log_gig_moved(
                gig_id, from_status, moved.status.value, correlation_id
            )
            return moved_board, result

        _log_failure(self._audit_logger, "gigs.update", result, correlation_id)
        self._audit_logger.log_board_reconciled(result.message or "update failed", correlation_id)
        refetched = await self.load_workspace(scope=scope, on_result=on_result)
        if refetched.ok:
            return refetched.data, result
        _deliver(scope, on_result, RequestResult.success(board))
        return board, result

    async def _then_reload(
        self,
        operation: str,
        result: RequestResult,
        scope: Optional[ViewScope],
        on_result: Optional[ResultSink],
    ) -> RequestResult:
        if not result.ok:
            _log_failure(self._audit_logger, operation, result)
            return result
        return await self.load_workspace(scope=scope, on_result=on_result)

    async def save_gig(
        self,
        draft: GigDraft,
        gig_id: Optional[str] = None,
        scope: Optional[ViewScope] = None,
        on_result: Optional[ResultSink] = None,
    ) -> RequestResult:
        """Create (no id) or update a gig, then reload the board."""
        if gig_id:
            result = await self._gigs.update(gig_id, draft.to_payload())
        else:
            result = await self._gigs.create(draft)
        if result.ok:
            saved = result.data.id if isinstance(result.data, Gig) else gig_id
            self._audit_logger.log_saved(AuditEventType.GIG_SAVED, "gig", saved)
        return await self._then_reload("gigs.save", result, scope, on_result)

    async def delete_gig(
        self,
        gig_id: str,
        scope: Optional[ViewScope] = None,
        on_result: Optional[ResultSink] = None,
    ) -> RequestResult:
        result = await self._gigs.delete(gig_id)
        if result.ok:
            self._audit_logger.log_saved(AuditEventType.GIG_DELETED, "gig", gig_id)
        return await self._then_reload("gigs.delete", result, scope, on_result)

    async def toggle_gig_complete(
        self,
        gig: Gig,
        scope: Optional[ViewScope] = None,
        on_result: Optional[ResultSink] = None,
    ) -> RequestResult:
        """Completed <-> Open."""
        status = toggled_gig_status(gig)
        result = await self._gigs.update(gig.id, {"status": status.value})
        if result.ok:
            self._audit_logger.log_gig_moved(gig.id, gig.status.value, status.value)
        return await self._then_reload("gigs.toggle", result, scope, on_result)

    async def save_milestone(
        self,
        gig_id: str,
        draft: MilestoneDraft,
        milestone_id: Optional[str] = None,
        scope: Optional[ViewScope] = None,
        on_result: Optional[ResultSink] = None,
    ) -> RequestResult:
        """Create a milestone under a gig (no id) or update one, then reload."""
        if milestone_id:
            result = await self._milestones.update(milestone_id, draft.to_payload())
        else:
            result = await self._milestones.create(gig_id, draft)
        if result.ok:
            saved = result.data.id if isinstance(result.data, Milestone) else milestone_id
            self._audit_logger.log_saved(
                AuditEventType.MILESTONE_SAVED, "milestone", saved, details={"gig_id": gig_id}
            )
        return await self._then_reload("milestones.save", result, scope, on_result)

    async def delete_milestone(
        self,
        milestone_id: str,
        scope: Optional[ViewScope] = None,
        on_result: Optional[ResultSink] = None,
    ) -> RequestResult:
        result = await self._milestones.delete(milestone_id)
        if result.ok:
            self._audit_logger.log_saved(AuditEventType.MILESTONE_DELETED, "milestone", milestone_id)
        return await self._then_reload("milestones.delete", result, scope, on_result)

    async def toggle_milestone_done(
        self,
        milestone: Milestone,
        scope: Optional[ViewScope] = None,
        on_result: Optional[ResultSink] = None,
    ) -> RequestResult:
        """Done <-> To Do."""
        payload = {"status": toggled_milestone_status(milestone).value}
        result = await self._milestones.update(milestone.id, payload)
        if result.ok:
            self._audit_logger.log_saved(
                AuditEventType.MILESTONE_SAVED, "milestone", milestone.id,
                details={"status": payload["status"]},
            )
        return await self._then_reload("milestones.toggle", result, scope, on_result)


class CalendarFlow:
    """Milestones by due date, with edit, delete and invoice download."""

    def __init__(
        self,
        board_flow: GigBoardFlow,
        milestones: MilestoneApi,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._board_flow = board_flow
        self._milestones = milestones
        self._audit_logger = audit_logger or AuditLogger()

    async def load_index(
        self,
        scope: Optional[ViewScope] = None,
        on_result: Optional[ResultSink] = None,
    ) -> RequestResult:
        """Data is a MilestoneCalendarIndex over every gig's milestones."""
        workspace = await self._board_flow.load_workspace()
        result = workspace.map(lambda board: MilestoneCalendarIndex(board.milestones))
        _deliver(scope, on_result, result)
        return result

    async def update_milestone(
        self,
        milestone_id: str,
        draft: MilestoneDraft,
        scope: Optional[ViewScope] = None,
        on_result: Optional[ResultSink] = None,
    ) -> RequestResult:
        result = await self._milestones.update(milestone_id, draft.to_payload())
        if not result.ok:
            _log_failure(self._audit_logger, "milestones.update", result)
            return result
        self._audit_logger.log_saved(AuditEventType.MILESTONE_SAVED, "milestone", milestone_id)
        return await self.load_index(scope=scope, on_result=on_result)

    async def delete_milestone(
        self,
        milestone_id: str,
        scope: Optional[ViewScope] = None,
        on_result: Optional[ResultSink] = None,
    ) -> RequestResult:
        result = await self._milestones.delete(milestone_id)
        if not result.ok:
            _log_failure(self._audit_logger, "milestones.delete", result)
            return result
        self._audit_logger.log_saved(AuditEventType.MILESTONE_DELETED, "milestone", milestone_id)
        return await self.load_index(scope=scope, on_result=on_result)

    async def download_invoice(
        self,
        milestone_id: str,
        client_name: str,
        freelancer_name: str,
    ) -> RequestResult:
        """Invoice PDF for one milestone. Data is the PDF bytes."""
        result = await self._milestones.invoice(milestone_id, client_name, freelancer_name)
        if result.ok:
            self._audit_logger.log_document_downloaded(
                AuditEventType.INVOICE_DOWNLOADED, milestone_id, len(result.data or b"")
            )
        else:
            _log_failure(self._audit_logger, "milestones.invoice", result)
        return result


class DashboardFlow:
    """Loads everything the overview page needs in one go."""

    def __init__(
        self,
        transactions: TransactionApi,
        board_flow: GigBoardFlow,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._transactions = transactions
        self._board_flow = board_flow
        self._audit_logger = audit_logger or AuditLogger()

    async def load(
        self,
        rate: Decimal = Decimal("1"),
        scope: Optional[ViewScope] = None,
        on_result: Optional[ResultSink] = None,
    ) -> RequestResult:
        """
        Balance, transactions and the board, fetched concurrently.

        Returns:
            RequestResult whose data is a DashboardSummary
        """
        balance_result, list_result, board_result = await asyncio.gather(
            self._transactions.balance(),
            self._transactions.list(),
            self._board_flow.load_workspace(),
        )
        for operation, part in (
            ("balance", balance_result),
            ("transactions.list", list_result),
            ("gigs.list", board_result),
        ):
            if not part.ok:
                _log_failure(self._audit_logger, f"dashboard.{operation}", part)
                return part

        board: BoardState = board_result.data
        result = RequestResult.success(build_dashboard_summary(
            transactions=list_result.data,
            gigs=board.gigs,
            milestones_by_gig=board.milestones,
            balance=balance_result.data.balance,
            rate=rate,
        ))
        _deliver(scope, on_result, result)
        return result


class AppComponents(NamedTuple):
    session: SessionContext
    auth_flow: AuthFlow
    ledger_flow: LedgerFlow
    board_flow: GigBoardFlow
    calendar_flow: CalendarFlow
    dashboard_flow: DashboardFlow
    client: BackendClient


def create_app_components(
    session: Optional[SessionContext] = None,
    client: Optional[BackendClient] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        session: Session to use. Defaults to one persisted in the
                 session file from settings.
        client: Backend client. Defaults to one reading the session's token.

    Returns:
        AppComponents with every flow wired to the same session and client
    """
    settings = get_settings()
    if session is None:
        session = SessionContext(JsonFileSessionStore(settings.app.session_file))
    if client is None:
        client = BackendClient(token_provider=lambda: session.token)

    audit_logger = AuditLogger()

    users = UserApi(client)
    transactions = TransactionApi(client)
    gigs = GigApi(client)
    milestones = MilestoneApi(client)
    rates = RatesApi(client)

    board_flow = GigBoardFlow(
        gigs=gigs,
        milestones=milestones,
        audit_logger=audit_logger,
    )

    return AppComponents(
        session=session,
        auth_flow=AuthFlow(session, users, audit_logger),
        ledger_flow=LedgerFlow(transactions, rates, audit_logger=audit_logger),
        board_flow=board_flow,
        calendar_flow=CalendarFlow(board_flow, milestones, audit_logger),
        dashboard_flow=DashboardFlow(transactions, board_flow, audit_logger),
        client=client,
    )
