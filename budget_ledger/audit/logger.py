"""
Audit Logger

DESIGN DECISION: Every change to the ledger is logged, whoever made it
(the user, the reconciling importer or the recurring scheduler).
This provides:
1. Complete traceability of what went into each month document
2. Debugging capability when documents and memory drift apart
3. A record of imports from hand-edited documents

The audit logger:
- Is async so it can sit on the same call paths as storage I/O
- Never raises (a failed log line must not fail a mutation)
- Supports correlation IDs to trace one sync pass or one backfill run
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from budget_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


def configure_logging(level: str = "INFO", json: bool = True) -> None:
    """
    Configure stdlib logging and structlog.

    Called once at import with defaults; the orchestrator calls it again
    with the values from `AppSettings`.
    """
    logging.basicConfig(format="%(message)s", stream=sys.stderr)
    logging.getLogger("budget_ledger").setLevel(
        getattr(logging, level.upper(), logging.INFO)
    )
    renderer = (
        structlog.processors.JSONRenderer()
        if json
        else structlog.dev.ConsoleRenderer(colors=False)
    )
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
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Events go to the structured log with a level derived from their severity.
    """

    def __init__(self, logger_name: str = "budget_ledger.audit"):
        self._logger = structlog.get_logger(logger_name)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be written; never raises.
        """
        log_dict = event.to_log_dict()
        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            return False
        return True

    async def log_transaction_added(
        self,
        transaction_id: str,
        date: str,
        amount: str,
        transaction_type: str,
        is_user_action: bool = True,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_added(
            transaction_id=transaction_id,
            date=date,
            amount=amount,
            transaction_type=transaction_type,
            is_user_action=is_user_action,
        ))

    async def log_transaction_updated(
        self,
        transaction_id: str,
        changed_fields: list[str],
        moved_from: Optional[str] = None,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_updated(
            transaction_id=transaction_id,
            changed_fields=changed_fields,
            moved_from=moved_from,
        ))

    async def log_transaction_deleted(self, transaction_id: str, date: str) -> None:
        await self.log(AuditEventBuilder.transaction_deleted(transaction_id, date))

    async def log_document_regenerated(self, path: str, transaction_count: int) -> None:
        await self.log(AuditEventBuilder.document_regenerated(path, transaction_count))

    async def log_document_write_failed(self, path: str, error_message: str) -> None:
        await self.log(AuditEventBuilder.document_write_failed(path, error_message))

    async def log_document_imported(
        self,
        path: str,
        parsed: int,
        imported: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.document_imported(
            path=path,
            parsed=parsed,
            imported=imported,
            correlation_id=correlation_id,
        ))

    async def log_document_import_failed(
        self,
        path: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.document_import_failed(
            path=path,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_sync_completed(
        self,
        documents: int,
        imported: int,
        failed: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.sync_completed(
            documents=documents,
            imported=imported,
            failed=failed,
            correlation_id=correlation_id,
        ))

    async def log_recurring_materialized(
        self,
        rule_id: str,
        rule_name: str,
        date: str,
    ) -> None:
        await self.log(AuditEventBuilder.recurring_materialized(rule_id, rule_name, date))

    async def log_recurring_stamped(self, rule_id: str, created_at: str) -> None:
        await self.log(AuditEventBuilder.recurring_stamped(rule_id, created_at))

    async def log_transactions_loaded(self, count: int, skipped: int) -> None:
        await self.log(AuditEventBuilder.transactions_loaded(count, skipped))

    async def log_settings_loaded(self, path: str) -> None:
        await self.log(AuditEventBuilder.settings_loaded(path))

    async def log_settings_saved(self, path: str, reason: str) -> None:
        await self.log(AuditEventBuilder.settings_saved(path, reason))

    async def log_settings_corrupt(self, path: str, error_message: str) -> None:
        await self.log(AuditEventBuilder.settings_corrupt(path, error_message))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a sync pass or a recurring backfill run.
    """
    return uuid4()
