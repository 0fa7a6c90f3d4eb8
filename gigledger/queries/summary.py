"""
Dashboard and History Queries

Deterministic summaries over data already fetched from the backend.
Every figure shown on the overview page is computed here from the
records themselves; nothing is estimated.
"""

from datetime import date, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping, Optional

from gigledger.models.dashboard import DashboardSummary, GigEarnings, UpcomingMilestone
from gigledger.models.gigs import Gig, GigStatus, Milestone
from gigledger.models.ledger import CENT, DailyActivity, Transaction, TransactionType
from gigledger.queries.categories import sort_newest_first


UPCOMING_LIMIT = 5
LATEST_LIMIT = 6
TOP_GIGS_LIMIT = 3


def filter_by_date_range(
    transactions: Iterable[Transaction],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> list[Transaction]:
    """
    Keep transactions whose createdAt day (UTC) is within [start, end].

    Either bound may be None. Undated transactions only survive when no
    bound is given.
    """
    if start is None and end is None:
        return list(transactions)
    kept = []
    for transaction in transactions:
        if transaction.created_at is None:
            continue
        day = transaction.created_at.astimezone(timezone.utc).date()
        if start is not None and day < start:
            continue
        if end is not None and day > end:
            continue
        kept.append(transaction)
    return kept


def total_by_type(transactions: Iterable[Transaction], transaction_type: TransactionType) -> Decimal:
    return sum(
        (t.amount for t in transactions if t.type == transaction_type),
        Decimal("0"),
    )


def daily_history(
    transactions: Iterable[Transaction],
    rate: Decimal = Decimal("1"),
) -> list[DailyActivity]:
    """Credits and debits per day, converted with `rate`, oldest day first."""
    rate = Decimal(str(rate))
    by_day: dict[str, DailyActivity] = {}
    for transaction in transactions:
        key = transaction.day
        if key is None:
            continue
        activity = by_day.setdefault(key, DailyActivity(day=key))
        converted = transaction.amount * rate
        if transaction.type == TransactionType.CREDIT:
            activity.credits += converted
        else:
            activity.debits += converted

    history = []
    for key in sorted(by_day):
        activity = by_day[key]
        history.append(DailyActivity(
            day=key,
            credits=activity.credits.quantize(CENT, rounding=ROUND_HALF_UP),
            debits=activity.debits.quantize(CENT, rounding=ROUND_HALF_UP),
        ))
    return history


def gig_status_counts(gigs: Iterable[Gig]) -> dict[str, int]:
    """Number of gigs per board column, every column present."""
    counts = {status.value: 0 for status in GigStatus}
    for gig in gigs:
        counts[gig.status.value] += 1
    return counts


def upcoming_milestones(
    gigs: Iterable[Gig],
    milestones_by_gig: Mapping[str, list[Milestone]],
    limit: int = UPCOMING_LIMIT,
) -> list[UpcomingMilestone]:
    """Milestones that have a due date, soonest first."""
    entries = [
        UpcomingMilestone(
            milestone=milestone,
            gig_title=gig.display_title,
            gig_status=gig.status,
        )
        for gig in gigs
        for milestone in milestones_by_gig.get(gig.id or "", [])
        if milestone.due_date is not None
    ]
    entries.sort(key=lambda entry: entry.milestone.due_date)
    return entries[:limit]


def pending_payouts(milestones_by_gig: Mapping[str, list[Milestone]]) -> Decimal:
    """Payments still expected: milestones that are not Done."""
    return sum(
        (
            milestone.payment_amount
            for milestones in milestones_by_gig.values()
            for milestone in milestones
            if not milestone.is_done
        ),
        Decimal("0"),
    )


def top_gigs(
    gigs: Iterable[Gig],
    milestones_by_gig: Mapping[str, list[Milestone]],
    limit: int = TOP_GIGS_LIMIT,
) -> list[GigEarnings]:
    earnings = [
        GigEarnings(
            gig_id=gig.id,
            title=gig.display_title,
            client=gig.client_name or "Client",
            total=sum(
                (m.payment_amount for m in milestones_by_gig.get(gig.id or "", [])),
                Decimal("0"),
            ),
        )
        for gig in gigs
    ]
    earnings.sort(key=lambda item: item.total, reverse=True)
    return earnings[:limit]


def build_dashboard_summary(
    transactions: list[Transaction],
    gigs: list[Gig],
    milestones_by_gig: Mapping[str, list[Milestone]],
    balance: Decimal = Decimal("0"),
    rate: Decimal = Decimal("1"),
) -> DashboardSummary:
    """
    Compute the overview page.

    Args:
        transactions: All of the user's transactions (any order)
        gigs: All of the user's gigs
        milestones_by_gig: gig id -> milestones; missing gigs count as none
        balance: Balance reported by the backend
        rate: Exchange rate for the history chart

    Returns:
        DashboardSummary with every figure filled in
    """
    gig_ids = {gig.id for gig in gigs}
    milestones_of_known_gigs = {
        gig_id: milestones
        for gig_id, milestones in milestones_by_gig.items()
        if gig_id in gig_ids
    }
    return DashboardSummary(
        balance=balance,
        total_credits=total_by_type(transactions, TransactionType.CREDIT),
        total_debits=total_by_type(transactions, TransactionType.DEBIT),
        pending_payouts=pending_payouts(milestones_of_known_gigs),
        gig_status_counts=gig_status_counts(gigs),
        upcoming_milestones=upcoming_milestones(gigs, milestones_by_gig),
        latest_transactions=sort_newest_first(transactions)[:LATEST_LIMIT],
        top_gigs=top_gigs(gigs, milestones_by_gig),
        history=daily_history(transactions, rate),
    )