"""
Tests for LifePath models

Test strategy:
1. Unit tests for individual components (models, builders)
2. Flow tests against in-memory storage (see the other test modules)
3. No real API calls in tests
"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from lifepath.models.quiz import (
    Answer,
    ChoiceValue,
    IntroValue,
    MultiChoiceValue,
    PersistResult,
    Question,
    QuestionKind,
    QuestionOption,
    TextValue,
)
from lifepath.models.records import (
    DashboardStats,
    EntryType,
    FinanceSummary,
    FinancialEntry,
    Goal,
    GoalStatus,
    Learning,
    LearningStatus,
    RecordCollection,
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


class TestQuestionModels:
    """Tests for question definitions."""

    def test_choice_question_requires_options(self):
        """Test that a choice question without options is rejected."""
        with pytest.raises(ValidationError):
            Question(id="q", title="Pick", kind=QuestionKind.SINGLE_CHOICE)

    def test_duplicate_option_values_rejected(self):
        """Test that option values are unique within a question."""
        with pytest.raises(ValidationError):
            Question(
                id="q",
                title="Pick",
                kind=QuestionKind.MULTIPLE_CHOICE,
                options=(
                    QuestionOption(value="a", label="A"),
                    QuestionOption(value="a", label="Also A"),
                ),
            )

    def test_text_question_cannot_have_options(self):
        """Test that only choice questions carry options."""
        with pytest.raises(ValidationError):
            Question(
                id="q",
                title="Tell us",
                kind=QuestionKind.FREE_TEXT,
                options=(QuestionOption(value="a", label="A"),),
            )

    def test_option_values(self):
        question = Question(
            id="q",
            title="Pick",
            kind=QuestionKind.SINGLE_CHOICE,
            options=(
                QuestionOption(value="a", label="A"),
                QuestionOption(value="b", label="B"),
            ),
        )
        assert question.option_values == frozenset({"a", "b"})
        assert question.has_option("b")
        assert not question.has_option("c")


class TestAnswerModels:
    """Tests for tagged answer values."""

    def test_intro_always_answered(self):
        assert Answer(question_id="welcome", value=IntroValue()).is_answered()

    def test_empty_multi_choice_not_answered(self):
        """Test that an empty selection does not count as an answer."""
        answer = Answer(question_id="main_goals", value=MultiChoiceValue())
        assert answer.is_answered() is False

    def test_whitespace_text_not_answered(self):
        """Test that whitespace-only free text does not count as an answer."""
        answer = Answer(question_id="dream_goal", value=TextValue(text="   \n"))
        assert answer.is_answered() is False

    def test_toggled_adds_and_removes(self):
        value = MultiChoiceValue().toggled("health").toggled("learning")
        assert value.choices == frozenset({"health", "learning"})
        assert value.toggled("health").choices == frozenset({"learning"})

    def test_kind_discriminator_from_dict(self):
        """Test that a stored answer is parsed back into the right variant."""
        answer = Answer.model_validate({
            "question_id": "current_situation",
            "value": {"kind": "single_choice", "choice": "starting"},
        })
        assert isinstance(answer.value, ChoiceValue)
        assert answer.kind == QuestionKind.SINGLE_CHOICE

    def test_multi_choice_serialized_sorted(self):
        """Test that selections are stored in a stable order."""
        answer = Answer(
            question_id="main_goals",
            value=MultiChoiceValue(choices=frozenset({"learning", "financial"})),
        )
        dumped = answer.model_dump(mode="json")
        assert dumped["value"]["choices"] == ["financial", "learning"]
        assert answer.to_profile_dict() == {
            "question": "main_goals",
            "kind": "multiple_choice",
            "answer": ["financial", "learning"],
        }

    def test_persist_result_failure(self):
        result = PersistResult.failure("StorageError", "sheet offline")
        assert result.ok is False
        assert result.persisted_at is None


class TestRecordModels:
    """Tests for record Pydantic models."""

    def test_goal_defaults(self):
        """Test that new goals start active at zero progress."""
        goal = Goal(user_id="u1", title="  Run a marathon  ")
        assert goal.title == "Run a marathon"
        assert goal.status == GoalStatus.ACTIVE
        assert goal.progress == 0
        assert goal.collection == RecordCollection.GOALS

    def test_progress_bounds(self):
        with pytest.raises(ValidationError):
            Goal(user_id="u1", title="Too far", progress=110)

    def test_completed_learning_needs_full_progress(self):
        """Test that a learning cannot be completed below 100%."""
        with pytest.raises(ValidationError):
            Learning(
                user_id="u1",
                skill_name="Guitar",
                progress=40,
                status=LearningStatus.COMPLETED,
            )

    def test_financial_entry_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValidationError):
            FinancialEntry(user_id="u1", amount=Decimal("-1.00"))

    def test_financial_entry_rejects_extra_decimals(self):
        with pytest.raises(ValidationError):
            FinancialEntry(user_id="u1", amount=Decimal("1.005"))

    def test_signed_amount(self):
        income = FinancialEntry(user_id="u1", type=EntryType.INCOME, amount=Decimal("10.00"))
        expense = FinancialEntry(user_id="u1", type=EntryType.EXPENSE, amount=Decimal("4.50"))
        assert income.signed_amount == Decimal("10.00")
        assert expense.signed_amount == Decimal("-4.50")

    def test_finance_summary_balance(self):
        """Test that the balance is exact decimal arithmetic."""
        entries = [
            FinancialEntry(user_id="u1", type=EntryType.INCOME, amount=Decimal("0.10")),
            FinancialEntry(user_id="u1", type=EntryType.INCOME, amount=Decimal("0.20")),
            FinancialEntry(user_id="u1", type=EntryType.EXPENSE, amount=Decimal("0.30")),
        ]
        summary = FinanceSummary.from_entries(entries)
        assert summary.balance == Decimal("0.00")
        assert summary.entry_count == 3

    def test_dashboard_stats_partial(self):
        stats = DashboardStats(
            user_id="u1",
            failed_collections=[RecordCollection.DREAMS],
        )
        assert stats.is_partial is True
        assert stats.balance == Decimal("0.00")


class TestProfileModels:
    """Tests for identity and profile models."""

    def test_identity_from_claims(self):
        identity = UserIdentity.from_claims({
            "sub": "google-oauth2|42",
            "email": "ana@example.com",
            "name": "Ana Souza",
        })
        assert identity.user_id == "google-oauth2|42"
        assert identity.first_name == "Ana"

    def test_identity_from_claims_without_subject(self):
        assert UserIdentity.from_claims({"email": "ana@example.com"}) is None

    def test_identity_requires_user_id(self):
        with pytest.raises(ValidationError):
            UserIdentity(user_id="")

    def test_profile_apply_overwrites_completion(self):
        """Test that applying the same update twice gives the same profile."""
        completed_at = datetime(2026, 3, 1, 12, 0)
        update = ProfileUpdate(
            quiz_answers=(Answer(question_id="welcome", value=IntroValue()),),
            completed_at=completed_at,
            preferences=UserPreferences(notification_frequency="weekly"),
        )
        once = UserProfile(user_id="u1").apply(update)
        twice = once.apply(update)

        assert twice.quiz_completed is True
        assert twice.completed_at == completed_at
        assert twice.quiz_answers == once.quiz_answers
        assert twice.preferences == once.preferences


class TestAuditModels:
    """Tests for audit models."""

    def test_audit_event_creation(self):
        """Test AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.QUIZ_STARTED,
            description="Onboarding quiz started",
        )
        assert event.event_type == AuditEventType.QUIZ_STARTED
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.RECORD_CREATED,
            user_id="u1",
            description="Created record in goals",
            details={"collection": "goals"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "record_created"
        assert log_dict["user_id"] == "u1"
        assert log_dict["details"]["collection"] == "goals"

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.QUIZ_SKIPPED,
            description="Onboarding quiz skipped",
            is_user_action=True,
        )
        row = event.to_sheets_row()
        assert len(row) == 12  # Expected number of columns
        assert row[2] == "quiz_skipped"  # event_type
        assert row[11] == "True"  # is_user_action

    def test_audit_event_builder_quiz_persist_failed(self):
        """Test AuditEventBuilder.quiz_persist_failed."""
        correlation_id = uuid4()

        event = AuditEventBuilder.quiz_persist_failed(
            user_id="u1",
            error_type="StorageError",
            error_message="sheet offline",
            correlation_id=correlation_id,
        )

        assert event.event_type == AuditEventType.QUIZ_PERSIST_FAILED
        assert event.severity == AuditSeverity.ERROR
        assert event.error_code == "StorageError"
        assert event.correlation_id == correlation_id

    def test_audit_event_builder_record_created(self):
        """Test AuditEventBuilder.record_created."""
        record_id = uuid4()

        event = AuditEventBuilder.record_created(
            user_id="u1",
            collection="dreams",
            record_id=record_id,
        )

        assert event.event_type == AuditEventType.RECORD_CREATED
        assert event.entity_id == str(record_id)
        assert event.is_user_action is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
