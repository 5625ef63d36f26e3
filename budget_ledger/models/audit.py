"""
Audit Models for Budget Ledger

Every change to the ledger, and every interaction with the documents that
mirror it, produces an audit event. This provides:
1. Traceability of who/what changed a month (user, importer, scheduler)
2. Debugging information when a document write or import fails
3. A record of what the reconciling importer pulled in from hand edits

DESIGN DECISION: Audit events are emitted to the structured log only.
The documents themselves are the user-visible history.
"""

import datetime as dt
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Ledger mutations
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    TRANSACTIONS_LOADED = "transactions_loaded"

    # Month documents
    DOCUMENT_REGENERATED = "document_regenerated"
    DOCUMENT_WRITE_FAILED = "document_write_failed"

    # Reconciliation
    SYNC_COMPLETED = "sync_completed"
    DOCUMENT_IMPORTED = "document_imported"
    DOCUMENT_IMPORT_FAILED = "document_import_failed"

    # Recurring scheduler
    RECURRING_MATERIALIZED = "recurring_materialized"
    RECURRING_STAMPED = "recurring_stamped"

    # Settings document
    SETTINGS_LOADED = "settings_loaded"
    SETTINGS_SAVED = "settings_saved"
    SETTINGS_CORRUPT = "settings_corrupt"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: dt.datetime = Field(
        default_factory=lambda: dt.datetime.now(dt.timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'document', 'recurring')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID (or path, for documents) of the entity"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one sync pass)"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

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


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(txn)
        event = AuditEventBuilder.document_import_failed(path, error, correlation_id)
    """

    @staticmethod
    def transaction_added(
        transaction_id: str,
        date: str,
        amount: str,
        transaction_type: str,
        is_user_action: bool = True,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction added for {date}",
            details={
                "date": date,
                "amount": amount,
                "type": transaction_type,
            },
            is_user_action=is_user_action,
        )

    @staticmethod
    def transaction_updated(
        transaction_id: str,
        changed_fields: list[str],
        moved_from: Optional[str] = None,
    ) -> AuditEvent:
        details: dict[str, Any] = {"changed_fields": changed_fields}
        if moved_from:
            details["moved_from"] = moved_from
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction updated ({len(changed_fields)} fields)",
            details=details,
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(transaction_id: str, date: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction deleted from {date}",
            details={"date": date},
            is_user_action=True,
        )

    @staticmethod
    def document_regenerated(path: str, transaction_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DOCUMENT_REGENERATED,
            severity=AuditSeverity.DEBUG,
            entity_type="document",
            entity_id=path,
            description=f"Month document regenerated: {path}",
            details={"transaction_count": transaction_count},
        )

    @staticmethod
    def document_write_failed(path: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DOCUMENT_WRITE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="document",
            entity_id=path,
            description=f"Failed to write month document: {path}",
            error_message=error_message,
        )

    @staticmethod
    def document_imported(
        path: str,
        parsed: int,
        imported: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DOCUMENT_IMPORTED,
            entity_type="document",
            entity_id=path,
            correlation_id=correlation_id,
            description=f"Imported {imported} of {parsed} rows from {path}",
            details={"parsed": parsed, "imported": imported},
        )

    @staticmethod
    def document_import_failed(
        path: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DOCUMENT_IMPORT_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="document",
            entity_id=path,
            correlation_id=correlation_id,
            description=f"Skipped unreadable document: {path}",
            error_message=error_message,
        )

    @staticmethod
    def sync_completed(
        documents: int,
        imported: int,
        failed: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYNC_COMPLETED,
            correlation_id=correlation_id,
            description=f"Document sync imported {imported} transactions",
            details={
                "documents": documents,
                "imported": imported,
                "failed": failed,
            },
        )

    @staticmethod
    def recurring_materialized(
        rule_id: str,
        rule_name: str,
        date: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_MATERIALIZED,
            entity_type="recurring",
            entity_id=rule_id,
            description=f"Auto-added recurring: {rule_name} for {date[:7]}",
            details={"date": date},
        )

    @staticmethod
    def recurring_stamped(rule_id: str, created_at: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_STAMPED,
            entity_type="recurring",
            entity_id=rule_id,
            description="Legacy recurring rule stamped with a creation date",
            details={"created_at": created_at},
        )

    @staticmethod
    def transactions_loaded(count: int, skipped: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTIONS_LOADED,
            severity=AuditSeverity.WARNING if skipped else AuditSeverity.INFO,
            entity_type="ledger",
            description=f"Loaded {count} persisted transactions",
            details={"count": count, "skipped": skipped},
        )

    @staticmethod
    def settings_loaded(path: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_LOADED,
            entity_type="document",
            entity_id=path,
            description="Settings loaded from document",
        )

    @staticmethod
    def settings_saved(path: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_SAVED,
            entity_type="document",
            entity_id=path,
            description=f"Settings document written ({reason})",
            details={"reason": reason},
        )

    @staticmethod
    def settings_corrupt(path: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_CORRUPT,
            severity=AuditSeverity.WARNING,
            entity_type="document",
            entity_id=path,
            description="Settings document could not be parsed; keeping current settings",
            error_message=error_message,
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
            correlation_id=correlation_id,
            description=f"System error: {error_type}",
            details=details or {},
            error_message=error_message,
        )
