"""
Record Service

Create, list, update and delete the user's goals, learnings, dreams and
financial entries. Every call takes the identity explicitly and only ever
touches that user's records.

Storage failures are logged to the audit trail and re-raised; the page
that triggered the save decides what to show the user.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional, Union
from uuid import UUID

from lifepath.audit import AuditLogger
from lifepath.auth import require_identity
from lifepath.models.profile import UserIdentity
from lifepath.models.records import (
    MAX_PROGRESS,
    DevelopmentArea,
    Dream,
    DreamCategory,
    DreamStatus,
    EntryType,
    FinanceCategory,
    FinanceSummary,
    FinancialEntry,
    Goal,
    GoalStatus,
    Learning,
    LearningStatus,
    RecordCollection,
    UserRecord,
)
from lifepath.services.storage import RecordStorageInterface, StorageError


class RecordNotFoundError(Exception):
    """The record doesn't exist, or belongs to someone else."""

    def __init__(self, collection: RecordCollection, record_id: UUID):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"No {collection.value} record {record_id} for this user")


class RecordService:
    """CRUD over the four record collections."""

    def __init__(
        self,
        record_storage: RecordStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        progress_step: int = 10,
    ):
        self._storage = record_storage
        self._audit_logger = audit_logger
        self._progress_step = progress_step

    # =========================================================================
    # CREATE
    # =========================================================================

    async def create_goal(
        self,
        identity: Optional[UserIdentity],
        title: str,
        description: str = "",
        category: DevelopmentArea = DevelopmentArea.PROFESSIONAL,
        target_date: Optional[date] = None,
    ) -> Goal:
        """New goals start active at 0% progress."""
        identity = require_identity(identity, "goals")
        goal = Goal(
            user_id=identity.user_id,
            title=title,
            description=description,
            category=category,
            target_date=target_date,
        )
        return await self._insert(goal)

    async def create_learning(
        self,
        identity: Optional[UserIdentity],
        skill_name: str,
        description: str = "",
    ) -> Learning:
        identity = require_identity(identity, "learnings")
        learning = Learning(
            user_id=identity.user_id,
            skill_name=skill_name,
            description=description,
        )
        return await self._insert(learning)

    async def create_dream(
        self,
        identity: Optional[UserIdentity],
        title: str,
        description: str = "",
        category: DreamCategory = DreamCategory.PERSONAL,
    ) -> Dream:
        identity = require_identity(identity, "dreams")
        dream = Dream(
            user_id=identity.user_id,
            title=title,
            description=description,
            category=category,
        )
        return await self._insert(dream)

    async def add_finance_entry(
        self,
        identity: Optional[UserIdentity],
        type: EntryType,
        amount: Union[Decimal, str],
        description: str = "",
        category: FinanceCategory = FinanceCategory.OTHER,
        entry_date: Optional[date] = None,
    ) -> FinancialEntry:
        """
        Record an income or expense.

        `amount` may be given as a string ("12.50") to keep it exact;
        floats are not accepted.
        """
        identity = require_identity(identity, "finances")
        if isinstance(amount, float):
            raise TypeError("Pass amounts as Decimal or str, not float")
        entry = FinancialEntry(
            user_id=identity.user_id,
            type=type,
            amount=Decimal(amount),
            description=description,
            category=category,
            entry_date=entry_date or date.today(),
        )
        return await self._insert(entry)

    # =========================================================================
    # READ
    # =========================================================================

    async def list_records(
        self,
        identity: Optional[UserIdentity],
        collection: RecordCollection,
    ) -> list[UserRecord]:
        """Newest first; finances by entry date."""
        identity = require_identity(identity, collection.value)
        return await self._storage.list_by_user(collection, identity.user_id)

    async def list_goals(self, identity: Optional[UserIdentity]) -> list[Goal]:
        return await self.list_records(identity, RecordCollection.GOALS)

    async def list_learnings(self, identity: Optional[UserIdentity]) -> list[Learning]:
        return await self.list_records(identity, RecordCollection.LEARNINGS)

    async def list_dreams(self, identity: Optional[UserIdentity]) -> list[Dream]:
        return await self.list_records(identity, RecordCollection.DREAMS)

    async def list_finances(self, identity: Optional[UserIdentity]) -> list[FinancialEntry]:
        return await self.list_records(identity, RecordCollection.FINANCES)

    async def finance_summary(self, identity: Optional[UserIdentity]) -> FinanceSummary:
        """Income, expense and balance over all of the user's entries."""
        return FinanceSummary.from_entries(await self.list_finances(identity))

    # =========================================================================
    # UPDATE
    # =========================================================================

    async def advance_progress(
        self,
        identity: Optional[UserIdentity],
        collection: RecordCollection,
        record_id: UUID,
        step: Optional[int] = None,
    ) -> Union[Goal, Learning]:
        """
        Add `step` percent (the configured step by default) to a goal or
        learning, capped at 100. Reaching 100 completes it.
        """
        if collection not in (RecordCollection.GOALS, RecordCollection.LEARNINGS):
            raise ValueError(f"{collection.value} records have no progress")

        identity = require_identity(identity, collection.value)
        record = await self._get(identity, collection, record_id)

        progress = min(record.progress + (step or self._progress_step), MAX_PROGRESS)
        changes: dict[str, Any] = {"progress": progress}
        if progress == MAX_PROGRESS:
            changes["status"] = (
                GoalStatus.COMPLETED if isinstance(record, Goal)
                else LearningStatus.COMPLETED
            )
        return await self._update(identity, record, changes)

    async def complete_learning(
        self,
        identity: Optional[UserIdentity],
        record_id: UUID,
    ) -> Learning:
        identity = require_identity(identity, "learnings")
        learning = await self._get(identity, RecordCollection.LEARNINGS, record_id)
        return await self._update(
            identity,
            learning,
            {"progress": MAX_PROGRESS, "status": LearningStatus.COMPLETED},
        )

    async def mark_dream_achieved(
        self,
        identity: Optional[UserIdentity],
        record_id: UUID,
    ) -> Dream:
        identity = require_identity(identity, "dreams")
        dream = await self._get(identity, RecordCollection.DREAMS, record_id)
        return await self._update(identity, dream, {"status": DreamStatus.ACHIEVED})

    # =========================================================================
    # DELETE
    # =========================================================================

    async def delete_record(
        self,
        identity: Optional[UserIdentity],
        collection: RecordCollection,
        record_id: UUID,
    ) -> bool:
        """Returns False if there was nothing to delete."""
        identity = require_identity(identity, collection.value)
        try:
            deleted = await self._storage.delete(collection, identity.user_id, record_id)
        except StorageError as e:
            await self._log_save_failed(identity.user_id, collection, e)
            raise

        if deleted and self._audit_logger:
            await self._audit_logger.log_record_deleted(
                user_id=identity.user_id,
                collection=collection.value,
                record_id=record_id,
            )
        return deleted

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def _get(
        self,
        identity: UserIdentity,
        collection: RecordCollection,
        record_id: UUID,
    ) -> UserRecord:
        record = await self._storage.get(collection, identity.user_id, record_id)
        if record is None:
            raise RecordNotFoundError(collection, record_id)
        return record

    async def _insert(self, record: UserRecord) -> UserRecord:
        try:
            stored = await self._storage.insert(record)
        except StorageError as e:
            await self._log_save_failed(record.user_id, record.collection, e)
            raise

        if self._audit_logger:
            await self._audit_logger.log_record_created(
                user_id=record.user_id,
                collection=record.collection.value,
                record_id=record.id,
            )
        return stored

    async def _update(
        self,
        identity: UserIdentity,
        record: UserRecord,
        changes: dict[str, Any],
    ) -> UserRecord:
        # Re-validate so model rules (e.g. completed learning at 100%) still hold
        updated = type(record).model_validate({
            **record.model_dump(),
            **changes,
            "updated_at": datetime.utcnow(),
        })
        try:
            stored = await self._storage.update(updated)
        except StorageError as e:
            await self._log_save_failed(identity.user_id, record.collection, e)
            raise

        if self._audit_logger:
            await self._audit_logger.log_record_updated(
                user_id=identity.user_id,
                collection=record.collection.value,
                record_id=record.id,
                changes={k: getattr(v, "value", v) for k, v in changes.items()},
            )
        return stored

    async def _log_save_failed(
        self,
        user_id: str,
        collection: RecordCollection,
        error: StorageError,
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_save_failed(
                user_id=user_id,
                collection=collection.value,
                error_message=f"{type(error).__name__}: {error}",
            )
