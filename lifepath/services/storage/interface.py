"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a hosted database later
2. Use in-memory storage for testing
3. Add caching layers transparently
4. Keep quiz and dashboard logic decoupled from the backend

The interface is intentionally simple - we're not building a full ORM.
Just the operations the record pages, the dashboard and onboarding need.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from lifepath.models.audit import AuditEvent
from lifepath.models.profile import ProfileUpdate, UserProfile
from lifepath.models.records import RecordCollection, UserRecord


class RecordStorageInterface(ABC):
    """
    Abstract interface for the four user record collections.

    Every operation is scoped to one collection; records always carry
    their owner's user_id.
    """

    @abstractmethod
    async def list_by_user(
        self,
        collection: RecordCollection,
        user_id: str,
    ) -> list[UserRecord]:
        """
        List all records of a user in one collection.

        Args:
            collection: Which collection to read
            user_id: Owner of the records

        Returns:
            Records, newest first (finances by entry date, others by
            creation time)

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def insert(self, record: UserRecord) -> UserRecord:
        """
        Insert a new record into its collection.

        Returns:
            The stored record

        Raises:
            DuplicateError: If a record with the same ID exists
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def update(self, record: UserRecord) -> UserRecord:
        """
        Replace an existing record.

        Raises:
            NotFoundError: If the record doesn't exist for its user
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete(
        self,
        collection: RecordCollection,
        user_id: str,
        record_id: UUID,
    ) -> bool:
        """
        Delete a record.

        Returns:
            True if a record was deleted, False if none matched
        """
        pass

    @abstractmethod
    async def get(
        self,
        collection: RecordCollection,
        user_id: str,
        record_id: UUID,
    ) -> Optional[UserRecord]:
        """
        Retrieve one record of a user.

        Returns:
            The record if found, None otherwise
        """
        pass


class ProfileStorageInterface(ABC):
    """
    Abstract interface for user profiles.

    Profile updates overwrite the keys they carry, so replaying the same
    update is harmless.
    """

    @abstractmethod
    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        """
        Retrieve a user's profile.

        Returns:
            The profile if one exists, None otherwise
        """
        pass

    @abstractmethod
    async def update_profile(self, user_id: str, update: ProfileUpdate) -> bool:
        """
        Write the quiz completion into a user's profile.

        Creates the profile if it doesn't exist yet.

        Returns:
            True if written successfully

        Raises:
            StorageError: If the write fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one quiz session).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
        user_id: Optional[str] = None,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Args:
            limit: Maximum number of events to return
            user_id: Only events of this user, if given

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


def sort_records(records: list[UserRecord]) -> list[UserRecord]:
    """Order records the way every backend returns them: newest first."""
    return sorted(
        records,
        key=lambda r: (getattr(r, "entry_date", None) or r.created_at.date(), r.created_at),
        reverse=True,
    )
