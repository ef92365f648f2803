"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Complete traceability
2. Debugging capability for best-effort saves that failed
3. User can see history of their interactions

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from lifepath.models.audit import AuditEvent, AuditEventBuilder
from lifepath.services.storage import AuditStorageInterface


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


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_quiz_started(
        self,
        user_id: str,
        total_questions: int,
        correlation_id: UUID,
    ) -> None:
        """Log the start of an onboarding quiz."""
        event = AuditEventBuilder.quiz_started(
            user_id=user_id,
            total_questions=total_questions,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_quiz_completed(
        self,
        user_id: str,
        answer_count: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.quiz_completed(
            user_id=user_id,
            answer_count=answer_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_quiz_skipped(
        self,
        user_id: str,
        position: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.quiz_skipped(
            user_id=user_id,
            position=position,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_quiz_persisted(
        self,
        user_id: str,
        answer_count: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.quiz_persisted(
            user_id=user_id,
            answer_count=answer_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_quiz_persist_failed(
        self,
        user_id: str,
        error_type: str,
        error_message: str,
        correlation_id: UUID,
        stack_trace: Optional[str] = None,
    ) -> None:
        """Log a completion the profile store did not accept."""
        event = AuditEventBuilder.quiz_persist_failed(
            user_id=user_id,
            error_type=error_type,
            error_message=error_message,
            correlation_id=correlation_id,
            stack_trace=stack_trace,
        )
        await self.log(event)

    async def log_dashboard_loaded(
        self,
        user_id: str,
        counts: dict[str, int],
        failed: list[str],
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.dashboard_loaded(
            user_id=user_id,
            counts=counts,
            failed=failed,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_dashboard_fetch_failed(
        self,
        user_id: str,
        collection: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log one collection the dashboard had to do without."""
        event = AuditEventBuilder.dashboard_fetch_failed(
            user_id=user_id,
            collection=collection,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_record_created(
        self,
        user_id: str,
        collection: str,
        record_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.record_created(
            user_id=user_id,
            collection=collection,
            record_id=record_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_record_updated(
        self,
        user_id: str,
        collection: str,
        record_id: UUID,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.record_updated(
            user_id=user_id,
            collection=collection,
            record_id=record_id,
            changes=changes,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_record_deleted(
        self,
        user_id: str,
        collection: str,
        record_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.record_deleted(
            user_id=user_id,
            collection=collection,
            record_id=record_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_save_failed(
        self,
        user_id: str,
        collection: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.save_failed(
            user_id=user_id,
            collection=collection,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_identity_missing(
        self,
        flow: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.identity_missing(
            flow=flow,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a quiz session).
    Pass it through all subsequent operations.
    """
    return uuid4()
