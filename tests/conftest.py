"""Shared fixtures. Everything runs against the in-memory backends."""

import pytest

from lifepath.audit import AuditLogger
from lifepath.models.profile import UserIdentity
from lifepath.services.storage import (
    InMemoryAuditStorage,
    InMemoryProfileStorage,
    InMemoryRecordStorage,
)


@pytest.fixture
def identity() -> UserIdentity:
    return UserIdentity(
        user_id="user-123",
        email="ana@example.com",
        full_name="Ana Souza",
    )


@pytest.fixture
def other_identity() -> UserIdentity:
    return UserIdentity(user_id="user-456", email="bruno@example.com")


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage) -> AuditLogger:
    return AuditLogger(audit_storage)


@pytest.fixture
def profile_storage() -> InMemoryProfileStorage:
    return InMemoryProfileStorage()


@pytest.fixture
def record_storage() -> InMemoryRecordStorage:
    return InMemoryRecordStorage()
