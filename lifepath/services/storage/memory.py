"""
In-Memory Storage Implementation

Used by the test suite and when the app runs without Google credentials.
Data lives for the life of the process only.
"""

from typing import Optional
from uuid import UUID

from lifepath.models.audit import AuditEvent
from lifepath.models.profile import ProfileUpdate, UserProfile
from lifepath.models.records import RecordCollection, UserRecord
from lifepath.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    NotFoundError,
    ProfileStorageInterface,
    RecordStorageInterface,
    sort_records,
)


class InMemoryRecordStorage(RecordStorageInterface):
    """Records kept in dicts keyed by collection and record ID."""

    def __init__(self):
        self._records: dict[RecordCollection, dict[UUID, UserRecord]] = {
            collection: {} for collection in RecordCollection
        }

    async def list_by_user(
        self,
        collection: RecordCollection,
        user_id: str,
    ) -> list[UserRecord]:
        records = [
            record.model_copy()
            for record in self._records[collection].values()
            if record.user_id == user_id
        ]
        return sort_records(records)

    async def insert(self, record: UserRecord) -> UserRecord:
        table = self._records[record.collection]
        if record.id in table:
            raise DuplicateError(f"Record already exists: {record.id}")
        table[record.id] = record.model_copy()
        return record

    async def update(self, record: UserRecord) -> UserRecord:
        table = self._records[record.collection]
        existing = table.get(record.id)
        if existing is None or existing.user_id != record.user_id:
            raise NotFoundError(f"Record not found: {record.id}")
        table[record.id] = record.model_copy()
        return record

    async def delete(
        self,
        collection: RecordCollection,
        user_id: str,
        record_id: UUID,
    ) -> bool:
        table = self._records[collection]
        existing = table.get(record_id)
        if existing is None or existing.user_id != user_id:
            return False
        del table[record_id]
        return True

    async def get(
        self,
        collection: RecordCollection,
        user_id: str,
        record_id: UUID,
    ) -> Optional[UserRecord]:
        record = self._records[collection].get(record_id)
        if record is None or record.user_id != user_id:
            return None
        return record.model_copy()


class InMemoryProfileStorage(ProfileStorageInterface):
    """Profiles keyed by user ID."""

    def __init__(self):
        self._profiles: dict[str, UserProfile] = {}

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        profile = self._profiles.get(user_id)
        return profile.model_copy() if profile else None

    async def update_profile(self, user_id: str, update: ProfileUpdate) -> bool:
        profile = self._profiles.get(user_id) or UserProfile(user_id=user_id)
        self._profiles[user_id] = profile.apply(update)
        return True


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
        user_id: Optional[str] = None,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if user_id is None or e.user_id == user_id
        ]
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
