"""
Tests for the onboarding quiz

Catalog, answer store, controller state machine and the profile sink.
Sinks are in-process fakes; no test touches the network.
"""

import asyncio
from datetime import datetime

import pytest

from lifepath.auth import IdentityMissingError
from lifepath.models.audit import AuditEventType, AuditSeverity
from lifepath.models.quiz import (
    Answer,
    ChoiceValue,
    IntroValue,
    MultiChoiceValue,
    PersistResult,
    Question,
    QuestionKind,
    QuizStatus,
    TextValue,
)
from lifepath.models.records import DevelopmentArea
from lifepath.quiz import (
    AnswerStore,
    CompletionSink,
    ProfileCompletionSink,
    QuestionCatalog,
    QuizController,
    default_catalog,
    derive_preferences,
)
from lifepath.services.storage import InMemoryProfileStorage, StorageError


PERSISTED_AT = datetime(2026, 3, 1, 9, 30)


class RecordingSink(CompletionSink):
    """Remembers every call and answers with a fixed result."""

    def __init__(self, result: PersistResult = None):
        self.calls = []
        self._result = result or PersistResult.success(PERSISTED_AT)

    async def persist(self, identity, answers):
        self.calls.append((identity, tuple(answers)))
        return self._result


class SlowSink(CompletionSink):
    async def persist(self, identity, answers):
        await asyncio.sleep(5)
        return PersistResult.success(PERSISTED_AT)


class CrashingSink(CompletionSink):
    async def persist(self, identity, answers):
        raise RuntimeError("sink exploded")


class BrokenProfileStorage(InMemoryProfileStorage):
    async def update_profile(self, user_id, update):
        raise StorageError("Profiles sheet unavailable")


class RefusingProfileStorage(InMemoryProfileStorage):
    async def update_profile(self, user_id, update):
        return False


def make_controller(identity, sink=None, audit_logger=None, timeout=1.0):
    return QuizController(
        identity=identity,
        sink=sink or RecordingSink(),
        audit_logger=audit_logger,
        persist_timeout_seconds=timeout,
    )


def valid_value(question: Question):
    """Some acceptable answer for any question."""
    if question.kind == QuestionKind.INTRO:
        return None
    if question.kind == QuestionKind.FREE_TEXT:
        return "Something"
    if question.kind == QuestionKind.MULTIPLE_CHOICE:
        return [question.options[0].value]
    return question.options[0].value


async def walk_to(controller: QuizController, position: int):
    """Answer and advance until the controller sits at `position`."""
    while controller.position < position:
        assert controller.answer(valid_value(controller.current_question))
        assert await controller.advance()


async def answer_reference_flow(controller: QuizController):
    """The full happy path through the onboarding catalog."""
    assert await controller.advance()                     # welcome
    assert controller.answer("financial")                 # main_goals
    assert controller.answer("learning")
    assert await controller.advance()
    assert controller.answer("starting")                  # current_situation
    assert await controller.advance()
    assert controller.answer("1hour")                     # time_availability
    assert await controller.advance()
    assert controller.answer("time")                      # biggest_challenge
    assert await controller.advance()
    assert controller.answer("Travel to Japan")           # dream_goal
    assert await controller.advance()
    assert controller.answer("weekly")                    # notifications
    assert await controller.advance()


class TestQuestionCatalog:
    """Tests for the question catalog."""

    def test_onboarding_catalog_order(self):
        catalog = default_catalog()
        assert len(catalog) == 7
        assert catalog.question_ids == (
            "welcome",
            "main_goals",
            "current_situation",
            "time_availability",
            "biggest_challenge",
            "dream_goal",
            "notifications",
        )
        assert catalog.get(0).kind == QuestionKind.INTRO
        assert catalog.get(1).kind == QuestionKind.MULTIPLE_CHOICE
        assert catalog.get(5).kind == QuestionKind.FREE_TEXT

    def test_index_of(self):
        catalog = default_catalog()
        assert catalog.index_of("dream_goal") == 5
        assert "dream_goal" in catalog
        assert "nope" not in catalog
        with pytest.raises(KeyError):
            catalog.index_of("nope")

    def test_empty_catalog_rejected(self):
        with pytest.raises(ValueError):
            QuestionCatalog([])

    def test_duplicate_ids_rejected(self):
        question = Question(id="same", title="Hi", kind=QuestionKind.INTRO)
        with pytest.raises(ValueError, match="same"):
            QuestionCatalog([question, question])


class TestAnswerStore:
    """Tests for the answer store."""

    def test_set_replaces(self):
        store = AnswerStore(default_catalog())
        store.set("current_situation", ChoiceValue(choice="starting"))
        store.set("current_situation", ChoiceValue(choice="lost"))
        assert store.get("current_situation").value.choice == "lost"
        assert len(store) == 1

    def test_toggle_twice_restores(self):
        """Test that toggling the same value twice leaves the selection as it was."""
        store = AnswerStore(default_catalog())
        store.toggle_multi_value("main_goals", "health")
        before = store.get("main_goals").value.choices

        store.toggle_multi_value("main_goals", "learning")
        store.toggle_multi_value("main_goals", "learning")

        assert store.get("main_goals").value.choices == before == frozenset({"health"})

    def test_toggle_starts_from_empty(self):
        store = AnswerStore(default_catalog())
        answer = store.toggle_multi_value("main_goals", "spiritual")
        assert answer.value.choices == frozenset({"spiritual"})

    def test_snapshot_in_catalog_order(self):
        """Test that snapshot ignores the order answers were given in."""
        store = AnswerStore(default_catalog())
        store.set("notifications", ChoiceValue(choice="daily"))
        store.set("welcome", IntroValue())
        store.set("dream_goal", TextValue(text="A house"))

        ids = [answer.question_id for answer in store.snapshot()]
        assert ids == ["welcome", "dream_goal", "notifications"]

    def test_is_empty(self):
        store = AnswerStore(default_catalog())
        assert store.is_empty()
        store.set("welcome", IntroValue())
        assert not store.is_empty()


class TestQuizControllerAnswers:
    """Tests for answer validation."""

    @pytest.mark.asyncio
    async def test_single_choice_accepts_only_known_options(self, identity):
        """Test that a single choice is answered iff one valid option is stored."""
        controller = make_controller(identity)
        await walk_to(controller, 2)

        assert controller.is_answered() is False
        assert controller.answer("somewhere_else") is False
        assert controller.is_answered() is False

        assert controller.answer("advanced") is True
        assert controller.is_answered() is True
        assert controller.current_answer.value == ChoiceValue(choice="advanced")

    @pytest.mark.asyncio
    async def test_single_choice_rejects_wrong_shape(self, identity):
        controller = make_controller(identity)
        await walk_to(controller, 2)
        assert controller.answer(["starting"]) is False
        assert controller.answer(None) is False
        assert controller.answers.get("current_situation") is None

    @pytest.mark.asyncio
    async def test_multi_choice_rejects_wrong_shape(self, identity):
        controller = make_controller(identity)
        await walk_to(controller, 1)
        assert controller.answer(5) is False
        assert controller.answer(None) is False
        assert controller.answer([3, 4]) is False
        assert controller.answers.get("main_goals") is None

    @pytest.mark.asyncio
    async def test_multi_choice_toggle_and_replace(self, identity):
        controller = make_controller(identity)
        await walk_to(controller, 1)

        assert controller.answer("health")
        assert controller.answer("health")
        assert controller.is_answered() is False

        assert controller.answer(["learning", "financial", "learning"])
        assert controller.current_answer.value.choices == frozenset({"learning", "financial"})
        assert controller.answer(["learning", "cooking"]) is False
        assert controller.current_answer.value.choices == frozenset({"learning", "financial"})

    @pytest.mark.asyncio
    async def test_free_text_blank_is_stored_but_unanswered(self, identity):
        controller = make_controller(identity)
        await walk_to(controller, 5)

        assert controller.answer("   ") is True
        assert controller.is_answered() is False
        assert controller.answer(42) is False

    def test_intro_takes_no_value(self, identity):
        controller = make_controller(identity)
        assert controller.answer("hello") is False
        assert controller.answer() is True
        assert controller.current_answer.value == IntroValue()

    @pytest.mark.asyncio
    async def test_wrong_kind_in_store_is_not_answered(self, identity):
        controller = make_controller(identity)
        await walk_to(controller, 2)
        controller.answers.set("current_situation", TextValue(text="starting"))
        assert controller.is_answered() is False


class TestQuizControllerNavigation:
    """Tests for advance, retreat and boundaries."""

    def test_initial_state(self, identity):
        controller = make_controller(identity)
        assert controller.status == QuizStatus.IN_PROGRESS
        assert controller.position == 0
        assert controller.is_first
        assert controller.progress_percent == pytest.approx(100 / 7)
        assert controller.answers.is_empty()

    def test_missing_identity_rejected(self):
        with pytest.raises(IdentityMissingError):
            QuizController(identity=None, sink=RecordingSink(), persist_timeout_seconds=1)

    @pytest.mark.asyncio
    async def test_advance_from_intro_records_acknowledgement(self, identity):
        controller = make_controller(identity)
        assert await controller.advance() is True
        assert controller.position == 1
        assert controller.answers.get("welcome").value == IntroValue()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("position", [1, 2, 5])
    async def test_advance_refused_when_unanswered(self, identity, position):
        """Test advance is a no-op for unanswered multi, single and free-text questions."""
        controller = make_controller(identity)
        await walk_to(controller, position)

        assert await controller.advance() is False
        assert controller.position == position
        assert controller.status == QuizStatus.IN_PROGRESS

    def test_retreat_at_start_is_noop(self, identity):
        controller = make_controller(identity)
        assert controller.retreat() is False
        assert controller.position == 0

    @pytest.mark.asyncio
    async def test_retreat_then_advance_keeps_answers(self, identity):
        controller = make_controller(identity)
        await walk_to(controller, 3)
        before = controller.answers.snapshot()

        assert controller.retreat() is True
        assert controller.position == 2
        assert await controller.advance() is True

        assert controller.position == 3
        assert controller.answers.snapshot() == before

    @pytest.mark.asyncio
    async def test_progress_on_last_question(self, identity):
        controller = make_controller(identity)
        await walk_to(controller, 6)
        assert controller.is_last
        assert controller.progress_percent == pytest.approx(100.0)


class TestQuizControllerCompletion:
    """Tests for finishing and skipping."""

    @pytest.mark.asyncio
    async def test_full_flow_hands_snapshot_to_sink(self, identity):
        sink = RecordingSink()
        controller = make_controller(identity, sink)

        await answer_reference_flow(controller)

        assert controller.status == QuizStatus.DONE
        assert controller.persist_result.ok is True
        assert len(sink.calls) == 1

        called_identity, answers = sink.calls[0]
        assert called_identity == identity
        assert len(answers) == 7
        by_id = {answer.question_id: answer.value for answer in answers}
        assert by_id["main_goals"] == MultiChoiceValue(
            choices=frozenset({"financial", "learning"})
        )
        assert by_id["notifications"] == ChoiceValue(choice="weekly")
        assert by_id["dream_goal"] == TextValue(text="Travel to Japan")

    @pytest.mark.asyncio
    async def test_done_is_terminal(self, identity):
        controller = make_controller(identity)
        await answer_reference_flow(controller)

        assert controller.is_terminal
        assert controller.answer("daily") is False
        assert await controller.advance() is False
        assert controller.retreat() is False
        assert await controller.skip() is False
        assert controller.status == QuizStatus.DONE

    @pytest.mark.asyncio
    async def test_skip_abandons_without_saving(self, identity, audit_logger, audit_storage):
        """Test skipping mid-quiz never invokes the sink."""
        sink = RecordingSink()
        controller = make_controller(identity, sink, audit_logger)
        await walk_to(controller, 2)

        assert await controller.skip() is True

        assert controller.status == QuizStatus.ABANDONED
        assert sink.calls == []
        assert controller.persist_result is None
        assert await controller.advance() is False
        assert controller.answer("starting") is False
        assert controller.retreat() is False

        skipped = [
            e for e in audit_storage.events
            if e.event_type == AuditEventType.QUIZ_SKIPPED
        ]
        assert len(skipped) == 1
        assert skipped[0].details["position"] == 2

    @pytest.mark.asyncio
    async def test_sink_failure_still_done(self, identity, audit_logger, audit_storage):
        sink = RecordingSink(PersistResult.failure("StorageError", "sheet offline"))
        controller = make_controller(identity, sink, audit_logger)

        await answer_reference_flow(controller)

        assert controller.status == QuizStatus.DONE
        assert controller.persist_result.ok is False

        failures = [
            e for e in audit_storage.events
            if e.event_type == AuditEventType.QUIZ_PERSIST_FAILED
        ]
        assert len(failures) == 1
        assert failures[0].severity == AuditSeverity.ERROR
        assert failures[0].error_message == "sheet offline"
        assert failures[0].correlation_id == controller.correlation_id

    @pytest.mark.asyncio
    async def test_sink_timeout_is_failure(self, identity, audit_logger, audit_storage):
        controller = make_controller(identity, SlowSink(), audit_logger, timeout=0.05)

        await answer_reference_flow(controller)

        assert controller.status == QuizStatus.DONE
        assert controller.persist_result.error_type == "PersistTimeout"
        assert any(
            e.event_type == AuditEventType.QUIZ_PERSIST_FAILED
            for e in audit_storage.events
        )

    @pytest.mark.asyncio
    async def test_crashing_sink_is_failure(self, identity, audit_logger, audit_storage):
        controller = make_controller(identity, CrashingSink(), audit_logger)

        await answer_reference_flow(controller)

        assert controller.status == QuizStatus.DONE
        assert controller.persist_result.error_type == "RuntimeError"
        failure = next(
            e for e in audit_storage.events
            if e.event_type == AuditEventType.QUIZ_PERSIST_FAILED
        )
        assert "sink exploded" in failure.stack_trace

    @pytest.mark.asyncio
    async def test_success_is_audited(self, identity, audit_logger, audit_storage):
        controller = make_controller(identity, audit_logger=audit_logger)
        await controller.start()
        await answer_reference_flow(controller)

        types = [e.event_type for e in audit_storage.events]
        assert types == [
            AuditEventType.QUIZ_STARTED,
            AuditEventType.QUIZ_COMPLETED,
            AuditEventType.QUIZ_PERSISTED,
        ]


class TestProfileCompletionSink:
    """Tests for writing the quiz into the profile."""

    def answers(self):
        return (
            Answer(question_id="welcome", value=IntroValue()),
            Answer(
                question_id="main_goals",
                value=MultiChoiceValue(choices=frozenset({"health", "financial"})),
            ),
            Answer(question_id="notifications", value=ChoiceValue(choice="manual")),
        )

    @pytest.mark.asyncio
    async def test_writes_profile(self, identity, profile_storage):
        sink = ProfileCompletionSink(profile_storage, clock=lambda: PERSISTED_AT)

        result = await sink.persist(identity, self.answers())

        assert result.ok is True
        assert result.persisted_at == PERSISTED_AT
        profile = await profile_storage.get_profile(identity.user_id)
        assert profile.quiz_completed is True
        assert profile.completed_at == PERSISTED_AT
        assert [a.question_id for a in profile.quiz_answers] == [
            "welcome", "main_goals", "notifications",
        ]
        assert profile.preferences.focus_areas == [
            DevelopmentArea.FINANCIAL,
            DevelopmentArea.HEALTH,
        ]
        assert profile.preferences.notifications_enabled is False

    @pytest.mark.asyncio
    async def test_repeat_persist_is_idempotent(self, identity, profile_storage):
        sink = ProfileCompletionSink(profile_storage, clock=lambda: PERSISTED_AT)

        await sink.persist(identity, self.answers())
        first = await profile_storage.get_profile(identity.user_id)
        await sink.persist(identity, self.answers())
        second = await profile_storage.get_profile(identity.user_id)

        assert second.model_dump(exclude={"updated_at"}) == first.model_dump(exclude={"updated_at"})

    @pytest.mark.asyncio
    async def test_storage_error_becomes_failure(self, identity):
        sink = ProfileCompletionSink(BrokenProfileStorage())
        result = await sink.persist(identity, self.answers())
        assert result.ok is False
        assert result.error_type == "StorageError"
        assert "unavailable" in result.error_message

    @pytest.mark.asyncio
    async def test_refused_write_becomes_failure(self, identity):
        sink = ProfileCompletionSink(RefusingProfileStorage())
        result = await sink.persist(identity, self.answers())
        assert result.ok is False
        assert result.error_type == "ProfileNotUpdated"


class TestDerivePreferences:
    """Tests for preferences read out of the answers."""

    def test_defaults_without_answers(self):
        preferences = derive_preferences([])
        assert preferences.focus_areas == []
        assert preferences.notification_frequency is None
        assert preferences.notifications_enabled is True

    def test_daily_notifications(self):
        preferences = derive_preferences([
            Answer(question_id="notifications", value=ChoiceValue(choice="daily")),
        ])
        assert preferences.notification_frequency == "daily"
        assert preferences.notifications_enabled is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
