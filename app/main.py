"""
Streamlit Frontend for GigLedger

The interface a freelancer uses to track money and gigs: the ledger,
spending by category, the gig board, the milestone calendar and an
overview dashboard.

DESIGN PRINCIPLES:
1. Every page renders only what a flow returned
2. Failed requests show a clear banner, the page keeps working
3. Invalid input is reported before anything is sent
4. A page's load results are only stored while that page is open

Each page render opens a fresh ViewScope; the previous render's scope is
closed, so late results from an abandoned render are dropped.
"""

import asyncio
from datetime import date
from decimal import Decimal

import plotly.express as px
import plotly.graph_objects as go
import streamlit as st
from pydantic import ValidationError

from gigledger.audit import configure_logging
from gigledger.config import get_settings, validate_all_settings
from gigledger.models import (
    ALL_CATEGORIES,
    GigDraft,
    GigStatus,
    LoginForm,
    MilestoneDraft,
    MilestoneStatus,
    RegistrationForm,
    TransactionDraft,
    TransactionType,
    UnknownCurrencyError,
)
from gigledger.orchestrator import AppComponents, create_app_components
from gigledger.queries import (
    category_options,
    category_totals,
    daily_history,
    filter_by_date_range,
    group_by_category,
)
from gigledger.scope import ScopeRegistry
from gigledger.services.session import SessionError


# Page configuration
st.set_page_config(
    page_title="GigLedger",
    page_icon="💼",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .success-box {
        padding: 16px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 10px 0;
    }
    .error-box {
        padding: 16px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


PAGES = [
    "📊 Dashboard",
    "💸 Transactions",
    "🥧 Expense Summary",
    "🗂️ Gig Board",
    "📅 Calendar",
    "👤 Account",
    "⚙️ Settings",
]


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    configure_logging()
    return create_app_components()


def scopes() -> ScopeRegistry:
    if "scopes" not in st.session_state:
        st.session_state.scopes = ScopeRegistry()
    return st.session_state.scopes


def store(key: str):
    """Sink that writes a load result into session state."""
    def write(value):
        st.session_state[key] = value
    return write


def show_failure(result, title: str = "Something went wrong"):
    st.markdown(f"""
    <div class="error-box">
        <h4>⚠️ {title}</h4>
        <p>{result.user_message}</p>
    </div>
    """, unsafe_allow_html=True)


def money(amount, code: str = "USD") -> str:
    return f"{code} {Decimal(amount):,.2f}"


def current_rate(app: AppComponents) -> tuple[str, Decimal]:
    """Selected display currency and its rate against USD."""
    if "rates" not in st.session_state:
        result = run_async(app.ledger_flow.load_rates())
        st.session_state.rates = result.data if result.ok else None

    rates = st.session_state.rates
    if rates is None:
        return "USD", Decimal("1")

    default = get_settings().app.display_currency
    codes = rates.codes
    code = st.sidebar.selectbox(
        "Display currency",
        options=codes,
        index=codes.index(default) if default in codes else codes.index("USD"),
    )
    try:
        return code, rates.rate_for(code)
    except UnknownCurrencyError as e:
        st.sidebar.warning(str(e))
        return "USD", Decimal("1")


def main():
    """Main application entry point."""
    app = get_components()

    if not app.session.is_authenticated:
        render_sign_in_page(app)
        return

    st.sidebar.title("💼 GigLedger")
    st.sidebar.markdown(f"Signed in as **{app.session.username or 'User'}**")
    st.sidebar.markdown("---")

    page = st.sidebar.radio("Navigate to:", PAGES, index=0)
    code, rate = current_rate(app)

    st.sidebar.markdown("---")
    if st.sidebar.button("🚪 Sign out"):
        signed_out = app.auth_flow.sign_out()
        if signed_out.ok:
            scopes().close_all()
            st.session_state.clear()
            st.rerun()
        st.sidebar.error(signed_out.user_message)

    # Route to appropriate page
    if page == "📊 Dashboard":
        render_dashboard_page(app, code, rate)
    elif page == "💸 Transactions":
        render_transactions_page(app, code, rate)
    elif page == "🥧 Expense Summary":
        render_expense_summary_page(app)
    elif page == "🗂️ Gig Board":
        render_board_page(app)
    elif page == "📅 Calendar":
        render_calendar_page(app)
    elif page == "👤 Account":
        render_account_page(app)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_sign_in_page(app: AppComponents):
    """Login, registration and the Google OAuth callback."""
    params = st.query_params
    if "token" in params or "userId" in params:
        try:
            app.auth_flow.complete_oauth(params.to_dict())
        except SessionError as e:
            st.error(f"Google sign in failed: {e}")
        else:
            st.query_params.clear()
            st.rerun()

    st.title("💼 GigLedger")
    st.markdown("Track gigs, milestones and money in one place.")

    st.link_button("🌐 Continue with Google", app.auth_flow.oauth_url())
    st.markdown("---")

    login_tab, register_tab = st.tabs(["Login", "Register"])

    with login_tab:
        with st.form("login"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Login", type="primary")
        if submitted:
            try:
                form = LoginForm(email=email, password=password)
            except ValidationError:
                st.error("Please enter a valid email and password.")
            else:
                result = run_async(app.auth_flow.login(form))
                if result.ok:
                    st.rerun()
                else:
                    st.error(result.message or "Login failed")

    with register_tab:
        with st.form("register"):
            username = st.text_input("Username")
            reg_email = st.text_input("Email", key="register_email")
            reg_password = st.text_input("Password", type="password", key="register_password")
            submitted = st.form_submit_button("Register", type="primary")
        if submitted:
            try:
                form = RegistrationForm(username=username, email=reg_email, password=reg_password)
            except ValidationError as e:
                st.error(f"Please check the form: {e.errors()[0]['msg']}")
            else:
                result = run_async(app.auth_flow.register(form))
                if result.ok:
                    st.success("Registration successful! You can log in now.")
                else:
                    st.error(result.message or "Registration failed")


def render_dashboard_page(app: AppComponents, code: str, rate: Decimal):
    st.title(f"📊 Welcome, {app.session.username or 'User'}")
    st.markdown("Balances, gig health and transaction activity at a glance.")

    scope = scopes().open("dashboard")
    with st.spinner("Loading your overview..."):
        result = run_async(app.dashboard_flow.load(rate, scope, store("dashboard")))
    if not result.ok:
        show_failure(result, "Unable to load dashboard data right now")
        return
    summary = st.session_state.dashboard

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Balance", money(summary.balance))
    col2.metric("Credits", money(summary.total_credits))
    col3.metric("Debits", money(summary.total_debits))
    col4.metric("Pending payouts", money(summary.pending_payouts))
    st.markdown(f"Net change: **{money(summary.net_change)}**")

    st.markdown("### Gigs by status")
    status_cols = st.columns(len(summary.gig_status_counts))
    for col, (status, count) in zip(status_cols, summary.gig_status_counts.items()):
        col.metric(status, count)

    left, right = st.columns(2)
    with left:
        st.markdown("### Upcoming milestones")
        if not summary.upcoming_milestones:
            st.info("No milestones with a due date.")
        for entry in summary.upcoming_milestones:
            m = entry.milestone
            st.markdown(
                f"- **{m.title or 'Milestone'}** ({entry.gig_title}) "
                f"due {m.due_day} · {m.status.value} · {money(m.payment_amount)}"
            )
        st.markdown("### Top gigs")
        for gig in summary.top_gigs:
            st.markdown(f"- **{gig.title}** for {gig.client}: {money(gig.total)}")

    with right:
        st.markdown("### Latest transactions")
        if not summary.latest_transactions:
            st.info("No transactions yet.")
        for t in summary.latest_transactions:
            sign = "+" if t.type == TransactionType.CREDIT else "-"
            st.markdown(f"- {t.day or ''} {t.category_name}: {sign}{money(t.amount)}")

    render_history_chart(summary.history, code)


def render_history_chart(history, code: str):
    st.markdown("### Credits and debits")
    if not history:
        st.info("No activity to chart yet.")
        return
    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=[h.label for h in history],
        y=[float(h.credits) for h in history],
        name="Credits",
        marker_color="#22c55e",
    ))
    fig.add_trace(go.Bar(
        x=[h.label for h in history],
        y=[float(h.debits) for h in history],
        name="Debits",
        marker_color="#e11d48",
    ))
    fig.update_layout(barmode="group", yaxis_title=code)
    st.plotly_chart(fig, use_container_width=True)


def render_transactions_page(app: AppComponents, code: str, rate: Decimal):
    st.title("💸 Transactions")
    flow = app.ledger_flow

    date_range = st.date_input("Date Range", value=(), help="Select a start and end date")
    start = date_range[0] if len(date_range) > 0 else None
    end = date_range[1] if len(date_range) > 1 else None

    scope = scopes().open("transactions")
    result = run_async(flow.load(start, end, scope, store("ledger")))
    if not result.ok:
        show_failure(result, "Failed to load dashboard data")
        return
    snapshot = st.session_state.ledger
    transactions = filter_by_date_range(snapshot.transactions, start, end)

    st.markdown(f'<div class="big-number">{money(snapshot.balance)}</div>', unsafe_allow_html=True)
    st.caption("Current balance (USD)")

    rows = [
        {
            "Date": t.day or "",
            "Type": t.type.value,
            "Category": t.category_name,
            "Description": t.description or "",
            f"Amount ({code})": float(t.amount * rate),
            f"Tax ({code})": float(t.tax * rate),
            f"Total ({code})": float(t.total * rate),
        }
        for t in transactions
    ]
    if rows:
        st.dataframe(rows, use_container_width=True, hide_index=True)
    else:
        st.info("No transactions in this range.")

    render_history_chart(daily_history(transactions, rate), code)

    col1, col2 = st.columns(2)
    with col1:
        st.download_button(
            "⬇️ Export CSV",
            data=flow.export_csv(snapshot.model_copy(update={"transactions": transactions})),
            file_name="transactions.csv",
            mime="text/csv",
        )
    with col2:
        if st.button("📄 Generate PDF report"):
            report = run_async(flow.download_report(start, end))
            if report.ok:
                st.download_button(
                    "⬇️ Download report",
                    data=report.data,
                    file_name="transactions-report.pdf",
                    mime="application/pdf",
                )
            else:
                show_failure(report, "Report failed")

    st.markdown("---")
    render_transaction_form(app, transactions)
    st.markdown("---")
    render_csv_import(app)


def render_transaction_form(app: AppComponents, transactions):
    """Add, edit or delete a transaction."""
    flow = app.ledger_flow
    st.markdown("### Log a transaction")

    by_id = {t.id: t for t in transactions if t.id}
    choice = st.selectbox(
        "Edit existing",
        options=[None] + list(by_id),
        format_func=lambda tid: "New transaction" if tid is None else (
            f"{by_id[tid].day or ''} {by_id[tid].type.value} {by_id[tid].amount} "
            f"{by_id[tid].description or ''}"
        ),
    )
    existing = by_id.get(choice)
    draft = TransactionDraft.from_transaction(existing) if existing else None

    with st.form("transaction"):
        types = list(TransactionType)
        t_type = st.selectbox(
            "Type",
            options=types,
            index=types.index(draft.type) if draft else types.index(TransactionType.DEBIT),
            format_func=lambda t: t.value.title(),
        )
        amount = st.number_input(
            "Amount (USD)",
            min_value=0.0,
            value=float(draft.amount) if draft else 0.0,
            step=1.0,
        )
        category = st.text_input("Category", value=(draft.category or "") if draft else "")
        description = st.text_input("Description", value=(draft.description or "") if draft else "")
        st.caption(f"Credits are taxed at {flow.tax_percentage}%. Debits carry no tax.")
        submitted = st.form_submit_button("💾 Save", type="primary")

    if submitted:
        try:
            new_draft = TransactionDraft(
                type=t_type,
                amount=Decimal(str(amount)),
                category=category or None,
                description=description or None,
            )
        except ValidationError:
            st.error("Amount must be greater than zero.")
        else:
            result = run_async(flow.save_transaction(
                new_draft, choice, scopes().get("transactions"), store("ledger")
            ))
            if result.ok:
                st.rerun()
            show_failure(result, "Could not save the transaction")

    if existing:
        confirm = st.checkbox("Yes, delete this transaction")
        if st.button("🗑️ Delete", disabled=not confirm):
            result = run_async(flow.delete_transaction(
                existing.id, scopes().get("transactions"), store("ledger")
            ))
            if result.ok:
                st.rerun()
            show_failure(result, "Could not delete the transaction")


def render_csv_import(app: AppComponents):
    st.markdown("### Import from CSV")
    st.caption("The file needs `amount` and `type` columns; `category`, `description` "
               "and `taxPercentage` are optional.")
    uploaded = st.file_uploader("Choose a CSV file", type=["csv"])
    if uploaded and st.button("📥 Import", type="primary"):
        validation, result = run_async(app.ledger_flow.import_csv(
            uploaded.getvalue(),
            uploaded.name,
            uploaded.type,
            scopes().get("transactions"),
            store("ledger"),
        ))
        if result.ok:
            st.success(f"Imported {validation.data_row_count} rows from {uploaded.name}.")
            return
        if not validation.is_valid:
            st.error(validation.error_message)
            with st.expander("All problems"):
                for issue in validation.errors:
                    prefix = f"Row {issue.row}: " if issue.row else ""
                    st.markdown(f"- {prefix}{issue.message}")
        else:
            show_failure(result, "Upload failed")


def render_expense_summary_page(app: AppComponents):
    st.title("🥧 Expense Summary")

    scope = scopes().open("summary")
    result = run_async(app.ledger_flow.load(scope=scope, on_result=store("ledger")))
    if not result.ok:
        show_failure(result, "Unable to fetch transactions right now")
        return
    transactions = st.session_state.ledger.transactions

    income_col, expense_col = st.columns(2)
    for col, t_type, label in (
        (income_col, TransactionType.CREDIT, "Income by category"),
        (expense_col, TransactionType.DEBIT, "Expenses by category"),
    ):
        with col:
            st.markdown(f"### {label}")
            totals = category_totals(transactions, t_type)
            if totals:
                fig = px.pie(
                    names=[t.name for t in totals],
                    values=[float(t.value) for t in totals],
                    hole=0.4,
                )
                st.plotly_chart(fig, use_container_width=True)
            else:
                st.info("No data yet for this type.")

            selected = st.selectbox(
                "Category",
                options=category_options(transactions, t_type),
                key=f"filter_{t_type.value}",
            )
            for group in group_by_category(transactions, t_type, selected or ALL_CATEGORIES):
                with st.expander(f"{group.category}: {money(group.total)} ({group.count})"):
                    for t in group.transactions:
                        st.markdown(f"- {t.day or ''} {t.description or ''}: {money(t.amount)}")


def render_board_page(app: AppComponents):
    st.title("🗂️ Gig Board")
    flow = app.board_flow

    scope = scopes().open("board")
    result = run_async(flow.load_workspace(scope, store("board")))
    if not result.ok:
        show_failure(result, "Unable to load gigs")
        return
    board = st.session_state.board

    with st.expander("➕ Add gig"):
        render_gig_form(app, None)

    columns = board.columns()
    for col, (status, gigs) in zip(st.columns(len(columns)), columns.items()):
        with col:
            st.markdown(f"### {status.value} ({len(gigs)})")
            for gig in gigs:
                render_gig_card(app, board, gig)


def render_gig_card(app: AppComponents, board, gig):
    flow = app.board_flow
    with st.container(border=True):
        st.markdown(f"**{gig.display_title}**")
        st.caption(f"{gig.client_name or 'Client'} · {money(gig.total_value)}")

        target = st.selectbox(
            "Move to",
            options=list(GigStatus),
            index=list(GigStatus).index(gig.status),
            format_func=lambda s: s.value,
            key=f"move_{gig.id}",
        )
        if st.button("➡️ Move", key=f"move_btn_{gig.id}", disabled=target == gig.status):
            _, result = run_async(flow.move_gig(
                board, gig.id, target, scopes().get("board"), store("board")
            ))
            if not result.ok:
                show_failure(result, "Move failed, board reloaded")
            else:
                st.rerun()

        done_label = "↩️ Reopen" if gig.status == GigStatus.COMPLETED else "✅ Complete"
        if st.button(done_label, key=f"toggle_{gig.id}"):
            result = run_async(flow.toggle_gig_complete(gig, scopes().get("board"), store("board")))
            if result.ok:
                st.rerun()
            show_failure(result)

        for milestone in board.milestones_for(gig.id):
            mark = "✅" if milestone.is_done else "⬜"
            if st.button(
                f"{mark} {milestone.title or 'Milestone'} ({money(milestone.payment_amount)})",
                key=f"ms_toggle_{milestone.id}",
            ):
                result = run_async(flow.toggle_milestone_done(
                    milestone, scopes().get("board"), store("board")
                ))
                if result.ok:
                    st.rerun()
                show_failure(result)

        with st.expander("Edit"):
            render_gig_form(app, gig)
            st.markdown("**Add milestone**")
            render_milestone_form(app, gig.id, None)
            for milestone in board.milestones_for(gig.id):
                st.markdown(f"**{milestone.title or 'Milestone'}**")
                render_milestone_form(app, gig.id, milestone)
            if st.button("🗑️ Delete gig", key=f"delete_{gig.id}"):
                result = run_async(flow.delete_gig(gig.id, scopes().get("board"), store("board")))
                if result.ok:
                    st.rerun()
                show_failure(result)


def render_gig_form(app: AppComponents, gig):
    key = gig.id if gig else "new"
    draft = GigDraft.from_gig(gig) if gig else None
    with st.form(f"gig_{key}"):
        title = st.text_input("Title", value=draft.title if draft else "")
        description = st.text_area("Description", value=(draft.description or "") if draft else "")
        client = st.text_input("Client Name", value=(draft.client_name or "") if draft else "")
        value = st.number_input(
            "Total Value", min_value=0.0, value=float(draft.total_value) if draft else 0.0
        )
        statuses = list(GigStatus)
        status = st.selectbox(
            "Status",
            options=statuses,
            index=statuses.index(draft.status) if draft else 0,
            format_func=lambda s: s.value,
        )
        due = st.date_input("Due date", value=draft.due_date if draft else None)
        submitted = st.form_submit_button("💾 Save gig")
    if submitted:
        try:
            new_draft = GigDraft(
                title=title,
                description=description or None,
                client_name=client or None,
                total_value=Decimal(str(value)),
                status=status,
                due_date=due,
            )
        except ValidationError:
            st.error("A gig needs a title.")
            return
        result = run_async(app.board_flow.save_gig(
            new_draft, gig.id if gig else None, scopes().get("board"), store("board")
        ))
        if result.ok:
            st.rerun()
        show_failure(result, "Could not save the gig")


def milestone_form_fields(milestone, key: str) -> MilestoneDraft:
    """
    Render milestone inputs and build a draft from them.

    Raises:
        ValidationError: If the values are invalid (e.g. start after due)
    """
    draft = MilestoneDraft.from_milestone(milestone) if milestone else None
    title = st.text_input("Title", value=draft.title if draft else "", key=f"{key}_title")
    description = st.text_area(
        "Description", value=(draft.description or "") if draft else "", key=f"{key}_desc"
    )
    amount = st.number_input(
        "Payment Amount",
        min_value=0.0,
        value=float(draft.payment_amount) if draft else 0.0,
        key=f"{key}_amount",
    )
    statuses = list(MilestoneStatus)
    status = st.selectbox(
        "Status",
        options=statuses,
        index=statuses.index(draft.status) if draft else 0,
        format_func=lambda s: s.value,
        key=f"{key}_status",
    )
    start = st.date_input("Start date", value=draft.start_date if draft else None, key=f"{key}_start")
    stored_due = draft.due_date if draft else None
    # A stored due date before the start must still be shown so it can be fixed.
    due_floor = start if start and not (stored_due and stored_due < start) else None
    due = st.date_input(
        "Due date",
        value=stored_due,
        min_value=due_floor,
        key=f"{key}_due",
    )
    return MilestoneDraft(
        title=title,
        description=description or None,
        payment_amount=Decimal(str(amount)),
        status=status,
        start_date=start,
        due_date=due,
    )


def render_milestone_form(app: AppComponents, gig_id: str, milestone):
    key = f"ms_{milestone.id}" if milestone else f"ms_new_{gig_id}"
    with st.form(key):
        try:
            draft = milestone_form_fields(milestone, key)
        except ValidationError as e:
            draft = None
            error = e.errors()[0]["msg"]
        submitted = st.form_submit_button("💾 Save milestone")
    if not submitted:
        return
    if draft is None:
        st.error(error)
        return
    result = run_async(app.board_flow.save_milestone(
        gig_id, draft, milestone.id if milestone else None, scopes().get("board"), store("board")
    ))
    if result.ok:
        st.rerun()
    show_failure(result, "Could not save the milestone")


def render_calendar_page(app: AppComponents):
    st.title("📅 Milestone Calendar")
    flow = app.calendar_flow

    scope = scopes().open("calendar")
    result = run_async(flow.load_index(scope, store("calendar")))
    if not result.ok:
        show_failure(result, "Unable to load milestones")
        return
    index = st.session_state.calendar

    days = index.highlighted_days()
    if days:
        st.markdown("**Days with milestones:** " + ", ".join(days))
    else:
        st.info("No milestones have a due date yet.")

    selected = st.date_input("Pick a day", value=date.today())
    milestones = index.day(selected)
    st.markdown(f"### {selected.isoformat()}")
    if not milestones:
        st.info("No milestones due on this day.")

    for milestone in milestones:
        with st.container(border=True):
            st.markdown(
                f"**{milestone.title or 'Milestone'}** · {milestone.status.value} · "
                f"{money(milestone.payment_amount)}"
            )
            with st.expander("Edit"):
                key = f"cal_{milestone.id}"
                with st.form(key):
                    try:
                        draft = milestone_form_fields(milestone, key)
                    except ValidationError as e:
                        draft = None
                        error = e.errors()[0]["msg"]
                    submitted = st.form_submit_button("💾 Save")
                if submitted:
                    if draft is None:
                        st.error(error)
                    else:
                        saved = run_async(flow.update_milestone(
                            milestone.id, draft, scopes().get("calendar"), store("calendar")
                        ))
                        if saved.ok:
                            st.rerun()
                        show_failure(saved)

            if st.button("🗑️ Delete", key=f"cal_delete_{milestone.id}"):
                deleted = run_async(flow.delete_milestone(
                    milestone.id, scopes().get("calendar"), store("calendar")
                ))
                if deleted.ok:
                    st.rerun()
                show_failure(deleted)

            with st.expander("🧾 Generate invoice"):
                client_name = st.text_input("Client name", key=f"inv_client_{milestone.id}")
                freelancer_name = st.text_input(
                    "Your name",
                    value=app.session.username or "",
                    key=f"inv_me_{milestone.id}",
                )
                if st.button("Generate", key=f"inv_{milestone.id}"):
                    invoice = run_async(flow.download_invoice(
                        milestone.id, client_name, freelancer_name
                    ))
                    if invoice.ok:
                        st.download_button(
                            "⬇️ Download invoice",
                            data=invoice.data,
                            file_name=f"invoice-{milestone.id}.pdf",
                            mime="application/pdf",
                            key=f"inv_dl_{milestone.id}",
                        )
                    else:
                        show_failure(invoice, "Failed to generate invoice")


def render_account_page(app: AppComponents):
    st.title("👤 Account")

    result = run_async(app.auth_flow.load_account())
    if not result.ok:
        show_failure(result, "Failed to fetch user")
        return
    user = result.data

    with st.form("account"):
        username = st.text_input("Username", value=user.username or "")
        email = st.text_input("Email", value=user.email or "")
        submitted = st.form_submit_button("💾 Update", type="primary")
    if submitted:
        updated = run_async(app.auth_flow.update_account(username, email))
        if updated.ok:
            st.success("User updated successfully")
        else:
            show_failure(updated, "Update failed")

    st.markdown("---")
    confirm = st.checkbox("I understand this deletes my account")
    if st.button("🗑️ Delete account", disabled=not confirm):
        deleted = run_async(app.auth_flow.delete_account())
        if deleted.ok:
            scopes().close_all()
            st.session_state.clear()
            st.rerun()
        show_failure(deleted, "Delete failed")


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")
    status = validate_all_settings()

    for name, key in (("Backend connection", "backend"), ("Application", "app")):
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            st.error(f"❌ {name} - {status.get(f'{key}_error', 'Not configured')}")

    settings = get_settings()
    if status.get("backend"):
        st.markdown(f"**Backend URL:** `{settings.backend.base_url}`")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
