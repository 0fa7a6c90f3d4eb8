"""
Queries Package

Pure, deterministic computations over records fetched from the backend:
category groups, the calendar index, dashboard figures and CSV export.
"""

from gigledger.queries.calendar import MilestoneCalendarIndex
from gigledger.queries.categories import (
    category_options,
    category_totals,
    group_by_category,
    sort_newest_first,
)
from gigledger.queries.export import EXPORT_COLUMNS, transactions_to_csv
from gigledger.queries.summary import (
    build_dashboard_summary,
    daily_history,
    filter_by_date_range,
    gig_status_counts,
    pending_payouts,
    top_gigs,
    upcoming_milestones,
)

__all__ = [
    # Categories
    "category_options",
    "category_totals",
    "group_by_category",
    "sort_newest_first",
    # Calendar
    "MilestoneCalendarIndex",
    # Summary
    "build_dashboard_summary",
    "daily_history",
    "filter_by_date_range",
    "gig_status_counts",
    "pending_payouts",
    "top_gigs",
    "upcoming_milestones",
    # Export
    "EXPORT_COLUMNS",
    "transactions_to_csv",
]
