"""
Data Models Package

This package contains all Pydantic models used in GigLedger.
All data exchanged with the backend passes through these schemas.
"""

from gigledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from gigledger.models.dashboard import DashboardSummary, GigEarnings, UpcomingMilestone
from gigledger.models.gigs import (
    Gig,
    GigDraft,
    GigStatus,
    Milestone,
    MilestoneDraft,
    MilestoneStatus,
)
from gigledger.models.imports import CsvIssue, CsvValidationResult
from gigledger.models.ledger import (
    ALL_CATEGORIES,
    UNCATEGORIZED,
    Balance,
    CategoryGroup,
    CategoryTotal,
    DailyActivity,
    ExchangeRates,
    LedgerSnapshot,
    Transaction,
    TransactionDraft,
    TransactionType,
    UnknownCurrencyError,
)
from gigledger.models.results import (
    BackendError,
    BackendRequestError,
    FailureKind,
    RequestResult,
)
from gigledger.models.user import (
    AuthSession,
    LoginForm,
    LoginResponse,
    RegistrationForm,
    User,
)

__all__ = [
    # Ledger models
    "ALL_CATEGORIES",
    "UNCATEGORIZED",
    "Balance",
    "CategoryGroup",
    "CategoryTotal",
    "DailyActivity",
    "ExchangeRates",
    "LedgerSnapshot",
    "Transaction",
    "TransactionDraft",
    "TransactionType",
    "UnknownCurrencyError",
    # Gig models
    "Gig",
    "GigDraft",
    "GigStatus",
    "Milestone",
    "MilestoneDraft",
    "MilestoneStatus",
    # Users
    "AuthSession",
    "LoginForm",
    "LoginResponse",
    "RegistrationForm",
    "User",
    # Import validation
    "CsvIssue",
    "CsvValidationResult",
    # Results
    "BackendError",
    "BackendRequestError",
    "FailureKind",
    "RequestResult",
    # Dashboard
    "DashboardSummary",
    "GigEarnings",
    "UpcomingMilestone",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
