"""
Audit Models for GigLedger

Every user-visible action is recorded as an audit event. Events go to
the structured local log; the backend keeps the real records.

This provides:
1. A trace of what the user did and what the backend answered
2. Debugging information when a request fails
3. Correlation of the requests that belong to one action
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Session
    USER_REGISTERED = "user_registered"
    USER_SIGNED_IN = "user_signed_in"
    USER_SIGNED_OUT = "user_signed_out"
    OAUTH_COMPLETED = "oauth_completed"
    ACCOUNT_UPDATED = "account_updated"
    ACCOUNT_DELETED = "account_deleted"

    # Ledger
    TRANSACTION_SAVED = "transaction_saved"
    TRANSACTION_DELETED = "transaction_deleted"
    CSV_IMPORT_REJECTED = "csv_import_rejected"
    CSV_IMPORT_COMPLETED = "csv_import_completed"
    REPORT_DOWNLOADED = "report_downloaded"

    # Gigs
    GIG_SAVED = "gig_saved"
    GIG_DELETED = "gig_deleted"
    GIG_MOVED = "gig_moved"
    BOARD_RECONCILED = "board_reconciled"
    MILESTONE_SAVED = "milestone_saved"
    MILESTONE_DELETED = "milestone_deleted"
    INVOICE_DOWNLOADED = "invoice_downloaded"

    # Failures
    REQUEST_FAILED = "request_failed"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What the event is about
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'gig', 'milestone')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Backend id of the entity"
    )
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Ties together the events of one user action"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None
    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_log_dict(), default=str)


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.gig_moved(gig_id, "Open", "Completed", correlation_id)
    """

    @staticmethod
    def user_signed_in(user_id: str, method: str, correlation_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.OAUTH_COMPLETED if method == "oauth"
                else AuditEventType.USER_SIGNED_IN
            ),
            entity_type="user",
            entity_id=user_id,
            correlation_id=correlation_id,
            description=f"User signed in ({method})",
            details={"method": method},
            is_user_action=True,
        )

    @staticmethod
    def user_signed_out(user_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SIGNED_OUT,
            entity_type="user",
            entity_id=user_id,
            description="User signed out",
            is_user_action=True,
        )

    @staticmethod
    def account_changed(
        event_type: AuditEventType,
        user_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type="user",
            entity_id=user_id,
            correlation_id=correlation_id,
            description=event_type.value.replace("_", " ").capitalize(),
            is_user_action=True,
        )

    @staticmethod
    def entity_saved(
        event_type: AuditEventType,
        entity_type: str,
        entity_id: Optional[str],
        correlation_id: Optional[UUID] = None,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} {event_type.value.rsplit('_', 1)[-1]}",
            details=details or {},
            is_user_action=True,
        )

    @staticmethod
    def csv_import_rejected(
        filename: str,
        error_rows: list[int],
        message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CSV_IMPORT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="import",
            correlation_id=correlation_id,
            description=f"CSV import rejected: {filename}",
            details={
                "filename": filename,
                "error_rows": error_rows,
            },
            error_message=message,
            is_user_action=True,
        )

    @staticmethod
    def csv_import_completed(
        filename: str,
        row_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CSV_IMPORT_COMPLETED,
            entity_type="import",
            correlation_id=correlation_id,
            description=f"CSV import uploaded: {filename} ({row_count} rows)",
            details={
                "filename": filename,
                "row_count": row_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def gig_moved(
        gig_id: str,
        from_status: str,
        to_status: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GIG_MOVED,
            entity_type="gig",
            entity_id=gig_id,
            correlation_id=correlation_id,
            description=f"Gig moved from {from_status} to {to_status}",
            details={
                "from_status": from_status,
                "to_status": to_status,
            },
            is_user_action=True,
        )

    @staticmethod
    def board_reconciled(
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BOARD_RECONCILED,
            severity=AuditSeverity.WARNING,
            entity_type="board",
            correlation_id=correlation_id,
            description="Board reloaded from server after a failed update",
            error_message=reason,
        )

    @staticmethod
    def document_downloaded(
        event_type: AuditEventType,
        entity_id: Optional[str],
        size_bytes: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type="document",
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"PDF downloaded ({size_bytes} bytes)",
            details={"size_bytes": size_bytes},
            is_user_action=True,
        )

    @staticmethod
    def request_failed(
        operation: str,
        failure: str,
        error_message: Optional[str],
        status_code: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REQUEST_FAILED,
            severity=AuditSeverity.ERROR,
            description=f"Request failed: {operation}",
            error_message=error_message,
            details={
                "operation": operation,
                "failure": failure,
                "status_code": status_code,
            },
            correlation_id=correlation_id,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
