"""
Data Models Package

This package contains all Pydantic models used in LifePath.
All data flowing through the system must conform to these schemas.
"""

from lifepath.models.quiz import (
    Answer,
    AnswerValue,
    ChoiceValue,
    IntroValue,
    MultiChoiceValue,
    PersistResult,
    Question,
    QuestionKind,
    QuestionOption,
    QuizStatus,
    TextValue,
)
from lifepath.models.records import (
    DashboardStats,
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
from lifepath.models.profile import (
    ProfileUpdate,
    UserIdentity,
    UserPreferences,
    UserProfile,
)
from lifepath.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Quiz models
    "Answer",
    "AnswerValue",
    "ChoiceValue",
    "IntroValue",
    "MultiChoiceValue",
    "PersistResult",
    "Question",
    "QuestionKind",
    "QuestionOption",
    "QuizStatus",
    "TextValue",
    # Record models
    "DashboardStats",
    "DevelopmentArea",
    "Dream",
    "DreamCategory",
    "DreamStatus",
    "EntryType",
    "FinanceCategory",
    "FinanceSummary",
    "FinancialEntry",
    "Goal",
    "GoalStatus",
    "Learning",
    "LearningStatus",
    "RecordCollection",
    "UserRecord",
    # Profile models
    "ProfileUpdate",
    "UserIdentity",
    "UserPreferences",
    "UserProfile",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
