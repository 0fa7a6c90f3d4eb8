"""
Audit Logger

DESIGN DECISION: Every user action and every failed backend call is
logged. This provides:
1. Traceability of what the user did
2. Debugging capability when the backend misbehaves
3. Correlation IDs to tie together the requests of one action

The audit logger never raises. A broken log must not break a view.
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from gigledger.config import get_settings
from gigledger.models.audit import AuditEvent, AuditEventBuilder, AuditEventType


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: Optional[str] = None) -> None:
    """
    Route stdlib logging (and so structlog) to stderr at the given level.

    Defaults to the level in AppSettings.
    """
    level = level or get_settings().app.log_level
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )


class AuditLogger:
    """
    Central audit logging service.

    Events are written to the structured local log. The backend is the
    system of record, so nothing is persisted here.
    """

    def __init__(self, logger_name: str = "gigledger.audit"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the log write failed.
        """
        log_dict = event.to_log_dict()
        try:
            if event.severity.value == "error":
                self._logger.error("audit_event", **log_dict)
            elif event.severity.value == "warning":
                self._logger.warning("audit_event", **log_dict)
            elif event.severity.value == "debug":
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            return False
        return True

    def log_signed_in(
        self,
        user_id: str,
        method: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a password or OAuth sign in."""
        self.log(AuditEventBuilder.user_signed_in(user_id, method, correlation_id))

    def log_signed_out(self, user_id: Optional[str]) -> None:
        self.log(AuditEventBuilder.user_signed_out(user_id))

    def log_account_changed(
        self,
        event_type: AuditEventType,
        user_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.account_changed(event_type, user_id, correlation_id))

    def log_saved(
        self,
        event_type: AuditEventType,
        entity_type: str,
        entity_id: Optional[str],
        correlation_id: Optional[UUID] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Log a create/update/delete of a transaction, gig or milestone."""
        self.log(AuditEventBuilder.entity_saved(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            details=details,
        ))

    def log_import_rejected(
        self,
        filename: str,
        error_rows: list[int],
        message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.csv_import_rejected(
            filename=filename,
            error_rows=error_rows,
            message=message,
            correlation_id=correlation_id,
        ))

    def log_import_completed(
        self,
        filename: str,
        row_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.csv_import_completed(filename, row_count, correlation_id))

    def log_gig_moved(
        self,
        gig_id: str,
        from_status: str,
        to_status: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.gig_moved(gig_id, from_status, to_status, correlation_id))

    def log_board_reconciled(
        self,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.board_reconciled(reason, correlation_id))

    def log_document_downloaded(
        self,
        event_type: AuditEventType,
        entity_id: Optional[str],
        size_bytes: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.document_downloaded(
            event_type, entity_id, size_bytes, correlation_id
        ))

    def log_request_failed(
        self,
        operation: str,
        failure: str,
        error_message: Optional[str],
        status_code: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a backend call that came back as a failed RequestResult."""
        self.log(AuditEventBuilder.request_failed(
            operation=operation,
            failure=failure,
            error_message=error_message,
            status_code=status_code,
            correlation_id=correlation_id,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a CSV import).
    Pass it through all subsequent operations.
    """
    return uuid4()
