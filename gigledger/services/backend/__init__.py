"""
Backend Services Package

HTTP client for the GigLedger REST backend and the per-resource APIs
built on it.
"""

from gigledger.models.results import BackendError, BackendRequestError
from gigledger.services.backend.client import EXPECT_BYTES, EXPECT_JSON, BackendClient
from gigledger.services.backend.resources import (
    GigApi,
    MilestoneApi,
    RatesApi,
    TransactionApi,
    UserApi,
    parse_items,
)

__all__ = [
    # Client
    "BackendClient",
    "EXPECT_BYTES",
    "EXPECT_JSON",
    # Exceptions
    "BackendError",
    "BackendRequestError",
    # Resources
    "GigApi",
    "MilestoneApi",
    "RatesApi",
    "TransactionApi",
    "UserApi",
    "parse_items",
]
