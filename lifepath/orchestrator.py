"""
Main Orchestrator for LifePath

This module ties together all the components and defines the
end-to-end flows for:
1. Onboarding (profile check → quiz → completion save → dashboard)
2. Dashboard (four collections → stats)
3. Record pages (goals, learnings, dreams, finances)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No flow runs without an authenticated identity
- A failed save never traps the user in the quiz
- Every step is audited

This is the "glue" that wires storage, audit and settings into the
core components.
"""

from typing import Optional
from uuid import UUID

import structlog

from lifepath.audit import AuditLogger, create_correlation_id
from lifepath.auth import IdentityMissingError, require_identity
from lifepath.config import get_settings
from lifepath.dashboard import DashboardAggregator
from lifepath.models.profile import UserIdentity
from lifepath.quiz import (
    ProfileCompletionSink,
    QuestionCatalog,
    QuizController,
    default_catalog,
)
from lifepath.records import RecordService
from lifepath.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsProfileStorage,
    GoogleSheetsRecordStorage,
    InMemoryProfileStorage,
    InMemoryRecordStorage,
    ProfileStorageInterface,
    RecordStorageInterface,
)


logger = structlog.get_logger(__name__)


class OnboardingFlow:
    """
    Decides whether a user still needs the quiz and starts it.

    Flow:
    1. Login → look up profile
    2. Profile missing or quiz not completed → quiz
    3. Quiz done or skipped → dashboard
    """

    def __init__(
        self,
        profile_storage: ProfileStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        catalog: Optional[QuestionCatalog] = None,
        persist_timeout_seconds: Optional[float] = None,
    ):
        self._profile_storage = profile_storage
        self._audit_logger = audit_logger
        self._catalog = catalog or default_catalog()
        self._sink = ProfileCompletionSink(profile_storage)
        self._timeout = persist_timeout_seconds

    async def needs_onboarding(self, identity: Optional[UserIdentity]) -> bool:
        """
        Has this user not finished the quiz yet?

        If the profile can't be read we assume they haven't: showing the
        quiz again is better than never showing it.
        """
        identity = await self._require_identity(identity, "onboarding check")
        try:
            profile = await self._profile_storage.get_profile(identity.user_id)
        except Exception as e:
            logger.warning(
                "profile_lookup_failed",
                user_id=identity.user_id,
                error=str(e),
            )
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service="profile_store",
                    error_message=f"{type(e).__name__}: {e}",
                )
            return True

        return profile is None or not profile.quiz_completed

    async def start_quiz(
        self,
        identity: Optional[UserIdentity],
        correlation_id: Optional[UUID] = None,
    ) -> QuizController:
        """Build a controller for this user and record the start."""
        identity = await self._require_identity(identity, "onboarding quiz")
        controller = QuizController(
            identity=identity,
            sink=self._sink,
            catalog=self._catalog,
            audit_logger=self._audit_logger,
            persist_timeout_seconds=self._timeout,
            correlation_id=correlation_id or create_correlation_id(),
        )
        await controller.start()
        return controller

    async def _require_identity(
        self,
        identity: Optional[UserIdentity],
        flow: str,
    ) -> UserIdentity:
        try:
            return require_identity(identity, flow)
        except IdentityMissingError:
            if self._audit_logger:
                await self._audit_logger.log_identity_missing(flow=flow)
            raise


def create_app_components(
    use_storage: bool = True,
) -> tuple[OnboardingFlow, DashboardAggregator, RecordService, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False to keep everything in memory.

    Returns:
        (onboarding_flow, dashboard, record_service, sheets_client)
    """
    settings = get_settings()
    sheets_client = None
    record_storage: RecordStorageInterface
    profile_storage: ProfileStorageInterface

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            record_storage = GoogleSheetsRecordStorage(sheets_client)
            profile_storage = GoogleSheetsProfileStorage(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            record_storage = InMemoryRecordStorage()
            profile_storage = InMemoryProfileStorage()
            audit_logger = AuditLogger()  # Local-only logging
    else:
        record_storage = InMemoryRecordStorage()
        profile_storage = InMemoryProfileStorage()
        audit_logger = AuditLogger()  # Local-only logging

    onboarding_flow = OnboardingFlow(
        profile_storage=profile_storage,
        audit_logger=audit_logger,
        persist_timeout_seconds=settings.quiz.persist_timeout_seconds,
    )

    dashboard = DashboardAggregator(
        record_storage=record_storage,
        audit_logger=audit_logger,
        fetch_timeout_seconds=settings.dashboard.fetch_timeout_seconds,
    )

    record_service = RecordService(
        record_storage=record_storage,
        audit_logger=audit_logger,
        progress_step=settings.app.progress_step,
    )

    return onboarding_flow, dashboard, record_service, sheets_client
