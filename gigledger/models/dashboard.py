"""Dashboard summary model."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from gigledger.models.gigs import GigStatus, Milestone
from gigledger.models.ledger import DailyActivity, Transaction


class UpcomingMilestone(BaseModel):
    """A milestone with the gig it belongs to, for the upcoming list."""

    milestone: Milestone
    gig_title: str
    gig_status: GigStatus


class GigEarnings(BaseModel):
    """Sum of milestone payments of one gig."""

    gig_id: Optional[str] = None
    title: str
    client: str
    total: Decimal = Decimal("0")


class DashboardSummary(BaseModel):
    """Everything the overview page shows, computed client-side."""

    balance: Decimal = Decimal("0")
    total_credits: Decimal = Decimal("0")
    total_debits: Decimal = Decimal("0")
    pending_payouts: Decimal = Decimal("0")
    gig_status_counts: dict[str, int] = Field(default_factory=dict)
    upcoming_milestones: list[UpcomingMilestone] = Field(default_factory=list)
    latest_transactions: list[Transaction] = Field(default_factory=list)
    top_gigs: list[GigEarnings] = Field(default_factory=list)
    history: list[DailyActivity] = Field(default_factory=list)

    @property
    def net_change(self) -> Decimal:
        return self.total_credits - self.total_debits
