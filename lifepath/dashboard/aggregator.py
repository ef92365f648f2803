"""
Dashboard Aggregator

Builds the numbers on the dashboard from the four record collections.

DESIGN DECISION: Collections are fetched independently and concurrently.
One broken collection (a missing worksheet, a slow backend) must not take
the whole dashboard down, so each failure degrades that collection to
empty and is reported on its own.
"""

import asyncio
from collections.abc import Sequence
from typing import Optional
from uuid import UUID

import structlog

from lifepath.audit import AuditLogger, create_correlation_id
from lifepath.auth import require_identity
from lifepath.config import get_settings
from lifepath.models.profile import UserIdentity
from lifepath.models.records import (
    DashboardStats,
    DevelopmentArea,
    FinanceSummary,
    FinancialEntry,
    Goal,
    GoalStatus,
    RecordCollection,
    UserRecord,
)
from lifepath.services.storage import RecordStorageInterface


def area_progress(goals: Sequence[Goal]) -> dict[DevelopmentArea, int]:
    """Average goal progress per development area, rounded down. Empty areas are 0."""
    progress = {}
    for area in DevelopmentArea:
        in_area = [goal.progress for goal in goals if goal.category == area]
        progress[area] = sum(in_area) // len(in_area) if in_area else 0
    return progress


class DashboardAggregator:
    """Loads a user's dashboard. Never raises for fetch failures."""

    def __init__(
        self,
        record_storage: RecordStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        fetch_timeout_seconds: Optional[float] = None,
    ):
        self._storage = record_storage
        self._audit_logger = audit_logger
        self._timeout = (
            fetch_timeout_seconds
            if fetch_timeout_seconds is not None
            else get_settings().dashboard.fetch_timeout_seconds
        )
        self._logger = structlog.get_logger(__name__)

    async def load(
        self,
        identity: Optional[UserIdentity],
        correlation_id: Optional[UUID] = None,
    ) -> DashboardStats:
        """
        Fetch all four collections for the user and derive the stats.

        Args:
            identity: The authenticated user
            correlation_id: Groups the audit events of this load

        Returns:
            DashboardStats; `failed_collections` lists what was left out

        Raises:
            IdentityMissingError: If there is no authenticated user
        """
        identity = require_identity(identity, "dashboard")
        correlation_id = correlation_id or create_correlation_id()

        collections = list(RecordCollection)
        results = await asyncio.gather(*[
            self._fetch(collection, identity.user_id, correlation_id)
            for collection in collections
        ])

        fetched: dict[RecordCollection, list[UserRecord]] = {}
        failed: list[RecordCollection] = []
        for collection, records in zip(collections, results):
            if records is None:
                failed.append(collection)
                fetched[collection] = []
            else:
                fetched[collection] = records

        goals = [r for r in fetched[RecordCollection.GOALS] if isinstance(r, Goal)]
        entries = [
            r for r in fetched[RecordCollection.FINANCES]
            if isinstance(r, FinancialEntry)
        ]

        stats = DashboardStats(
            user_id=identity.user_id,
            goals_count=len(fetched[RecordCollection.GOALS]),
            learnings_count=len(fetched[RecordCollection.LEARNINGS]),
            dreams_count=len(fetched[RecordCollection.DREAMS]),
            completed_goals=sum(1 for g in goals if g.status == GoalStatus.COMPLETED),
            finances=FinanceSummary.from_entries(entries),
            area_progress=area_progress(goals),
            failed_collections=failed,
        )

        if self._audit_logger:
            await self._audit_logger.log_dashboard_loaded(
                user_id=identity.user_id,
                counts={c.value: len(fetched[c]) for c in collections},
                failed=[c.value for c in failed],
                correlation_id=correlation_id,
            )

        return stats

    async def _fetch(
        self,
        collection: RecordCollection,
        user_id: str,
        correlation_id: UUID,
    ) -> Optional[list[UserRecord]]:
        """One collection, or None if it could not be read in time."""
        try:
            return await asyncio.wait_for(
                self._storage.list_by_user(collection, user_id),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            error_message = f"Timed out after {self._timeout}s"
        except Exception as e:
            self._logger.warning(
                "dashboard_fetch_error",
                collection=collection.value,
                user_id=user_id,
                error_type=type(e).__name__,
                exc_info=True,
            )
            error_message = f"{type(e).__name__}: {e}"

        if self._audit_logger:
            await self._audit_logger.log_dashboard_fetch_failed(
                user_id=user_id,
                collection=collection.value,
                error_message=error_message,
                correlation_id=correlation_id,
            )
        return None
