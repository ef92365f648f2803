"""
Audit Models for LifePath

Every significant action in the system is logged for audit purposes.
This provides:
1. Traceability of onboarding and record changes
2. Debugging information when the external backend misbehaves
3. A visible trail for failures the user is never blocked by

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Onboarding quiz
    QUIZ_STARTED = "quiz_started"
    QUIZ_COMPLETED = "quiz_completed"
    QUIZ_SKIPPED = "quiz_skipped"
    QUIZ_PERSISTED = "quiz_persisted"
    QUIZ_PERSIST_FAILED = "quiz_persist_failed"

    # Dashboard
    DASHBOARD_LOADED = "dashboard_loaded"
    DASHBOARD_FETCH_FAILED = "dashboard_fetch_failed"

    # Records
    RECORD_CREATED = "record_created"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"
    SAVE_FAILED = "save_failed"

    # Identity
    IDENTITY_MISSING = "identity_missing"

    # System events
    EXTERNAL_SERVICE_ERROR = "external_service_error"


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

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Who
    user_id: Optional[str] = Field(
        default=None,
        description="User the event happened for"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'quiz', 'goals', 'profile')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one quiz session)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    stack_trace: Optional[str] = None

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
            "user_id": self.user_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, user_id, entity_type,
         entity_id, correlation_id, description, details_json, error_message,
         is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.user_id or "",
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.quiz_started(user_id, total_questions, correlation_id)
        event = AuditEventBuilder.record_created(user_id, "goals", record_id)
    """

    @staticmethod
    def quiz_started(
        user_id: str,
        total_questions: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.QUIZ_STARTED,
            user_id=user_id,
            entity_type="quiz",
            correlation_id=correlation_id,
            description=f"Onboarding quiz started ({total_questions} questions)",
            details={
                "total_questions": total_questions,
            },
            is_user_action=True,
        )

    @staticmethod
    def quiz_completed(
        user_id: str,
        answer_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.QUIZ_COMPLETED,
            user_id=user_id,
            entity_type="quiz",
            correlation_id=correlation_id,
            description=f"Onboarding quiz finished with {answer_count} answers",
            details={
                "answer_count": answer_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def quiz_skipped(
        user_id: str,
        position: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.QUIZ_SKIPPED,
            user_id=user_id,
            entity_type="quiz",
            correlation_id=correlation_id,
            description=f"Onboarding quiz skipped at question {position + 1}",
            details={
                "position": position,
            },
            is_user_action=True,
        )

    @staticmethod
    def quiz_persisted(
        user_id: str,
        answer_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.QUIZ_PERSISTED,
            user_id=user_id,
            entity_type="profile",
            entity_id=user_id,
            correlation_id=correlation_id,
            description="Quiz answers saved to profile",
            details={
                "answer_count": answer_count,
            },
        )

    @staticmethod
    def quiz_persist_failed(
        user_id: str,
        error_type: str,
        error_message: str,
        correlation_id: UUID,
        stack_trace: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.QUIZ_PERSIST_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            entity_type="profile",
            entity_id=user_id,
            correlation_id=correlation_id,
            description="Quiz answers could not be saved; user continued to dashboard",
            error_code=error_type,
            error_message=error_message,
            stack_trace=stack_trace,
        )

    @staticmethod
    def dashboard_loaded(
        user_id: str,
        counts: dict[str, int],
        failed: list[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DASHBOARD_LOADED,
            severity=AuditSeverity.WARNING if failed else AuditSeverity.INFO,
            user_id=user_id,
            entity_type="dashboard",
            correlation_id=correlation_id,
            description=(
                f"Dashboard loaded with {len(failed)} missing collections"
                if failed else "Dashboard loaded"
            ),
            details={
                "counts": counts,
                "failed_collections": failed,
            },
        )

    @staticmethod
    def dashboard_fetch_failed(
        user_id: str,
        collection: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DASHBOARD_FETCH_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            entity_type=collection,
            correlation_id=correlation_id,
            description=f"Could not fetch {collection} for dashboard",
            error_message=error_message,
            details={
                "collection": collection,
            },
        )

    @staticmethod
    def record_created(
        user_id: str,
        collection: str,
        record_id: UUID,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_CREATED,
            user_id=user_id,
            entity_type=collection,
            entity_id=str(record_id),
            correlation_id=correlation_id,
            description=f"Created record in {collection}",
            is_user_action=True,
        )

    @staticmethod
    def record_updated(
        user_id: str,
        collection: str,
        record_id: UUID,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_UPDATED,
            user_id=user_id,
            entity_type=collection,
            entity_id=str(record_id),
            correlation_id=correlation_id,
            description=f"Updated record in {collection}",
            details={
                "changes": changes,
            },
            is_user_action=True,
        )

    @staticmethod
    def record_deleted(
        user_id: str,
        collection: str,
        record_id: UUID,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            user_id=user_id,
            entity_type=collection,
            entity_id=str(record_id),
            correlation_id=correlation_id,
            description=f"Deleted record from {collection}",
            is_user_action=True,
        )

    @staticmethod
    def save_failed(
        user_id: str,
        collection: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            entity_type=collection,
            correlation_id=correlation_id,
            description=f"Failed to save record in {collection}",
            error_message=error_message,
        )

    @staticmethod
    def identity_missing(
        flow: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IDENTITY_MISSING,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"No authenticated user for {flow}",
            details={
                "flow": flow,
            },
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
