"""Services package."""

from lifepath.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsProfileStorage,
    GoogleSheetsRecordStorage,
    InMemoryAuditStorage,
    InMemoryProfileStorage,
    InMemoryRecordStorage,
    NotFoundError,
    ProfileStorageInterface,
    RecordStorageInterface,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "ConnectionError",
    "DuplicateError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsProfileStorage",
    "GoogleSheetsRecordStorage",
    "InMemoryAuditStorage",
    "InMemoryProfileStorage",
    "InMemoryRecordStorage",
    "NotFoundError",
    "ProfileStorageInterface",
    "RecordStorageInterface",
    "StorageError",
]
