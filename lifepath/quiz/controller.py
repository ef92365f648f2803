"""
Quiz Controller

State machine behind the onboarding quiz.

STATES:
- IN_PROGRESS(position): the user is on question `position`
- FINISHING: answers are being handed to the completion sink
- DONE: quiz finished (saved or not)
- ABANDONED: user skipped the quiz; nothing is saved

DESIGN DECISION: Refusals are booleans, not exceptions. A malformed
answer or an attempt to advance past an unanswered question simply
does nothing, and the UI keeps the user where they are.

The completion save is best-effort. Whatever the sink reports, the quiz
ends in DONE; failures go to the audit log so lost answers can be traced.
"""

import asyncio
import traceback
from collections.abc import Collection
from typing import Optional, Union
from uuid import UUID

import structlog

from lifepath.audit import AuditLogger, create_correlation_id
from lifepath.auth import require_identity
from lifepath.config import get_settings
from lifepath.models.profile import UserIdentity
from lifepath.models.quiz import (
    Answer,
    ChoiceValue,
    IntroValue,
    MultiChoiceValue,
    PersistResult,
    Question,
    QuestionKind,
    QuizStatus,
    TERMINAL_STATUSES,
    TextValue,
)
from lifepath.quiz.answers import AnswerStore
from lifepath.quiz.catalog import QuestionCatalog, default_catalog
from lifepath.quiz.sink import CompletionSink


SubmittedValue = Union[None, str, Collection[str]]


class QuizController:
    """
    Drives one user's pass through the question catalog.

    One controller owns one AnswerStore; every mutation goes through
    `answer()`, so answers can only be recorded for the question the
    user is currently looking at.
    """

    def __init__(
        self,
        identity: Optional[UserIdentity],
        sink: CompletionSink,
        catalog: Optional[QuestionCatalog] = None,
        audit_logger: Optional[AuditLogger] = None,
        persist_timeout_seconds: Optional[float] = None,
        correlation_id: Optional[UUID] = None,
    ):
        """
        Initialize a quiz in IN_PROGRESS(0).

        Args:
            identity: The authenticated user. Required.
            sink: Where the finished answers go
            catalog: Questions to ask; the onboarding catalog by default
            audit_logger: Receives start/finish/skip and save failures
            persist_timeout_seconds: Upper bound on the sink call;
                                     read from settings when omitted
            correlation_id: Groups this session's audit events

        Raises:
            IdentityMissingError: If there is no authenticated user
        """
        self._identity = require_identity(identity, "onboarding quiz")
        self._sink = sink
        self._catalog = catalog or default_catalog()
        self._store = AnswerStore(self._catalog)
        self._audit_logger = audit_logger
        self._timeout = (
            persist_timeout_seconds
            if persist_timeout_seconds is not None
            else get_settings().quiz.persist_timeout_seconds
        )
        self._correlation_id = correlation_id or create_correlation_id()
        self._logger = structlog.get_logger(__name__)

        self._status = QuizStatus.IN_PROGRESS
        self._position = 0
        self._persist_result: Optional[PersistResult] = None

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def identity(self) -> UserIdentity:
        return self._identity

    @property
    def correlation_id(self) -> UUID:
        return self._correlation_id

    @property
    def catalog(self) -> QuestionCatalog:
        return self._catalog

    @property
    def answers(self) -> AnswerStore:
        return self._store

    @property
    def status(self) -> QuizStatus:
        return self._status

    @property
    def position(self) -> int:
        return self._position

    @property
    def current_question(self) -> Question:
        return self._catalog.get(self._position)

    @property
    def current_answer(self) -> Optional[Answer]:
        return self._store.get(self.current_question.id)

    @property
    def is_first(self) -> bool:
        return self._position == 0

    @property
    def is_last(self) -> bool:
        return self._position == len(self._catalog) - 1

    @property
    def is_terminal(self) -> bool:
        return self._status in TERMINAL_STATUSES

    @property
    def progress_percent(self) -> float:
        """Share of the quiz reached, counting the current question."""
        return (self._position + 1) / len(self._catalog) * 100

    @property
    def persist_result(self) -> Optional[PersistResult]:
        """Outcome of the completion save; None until the quiz is DONE."""
        return self._persist_result

    def is_answered(self, position: Optional[int] = None) -> bool:
        """
        Does the question at `position` (default: current) have a usable answer?

        - Intro: always
        - Single choice: one of the question's options is stored
        - Multiple choice: a non-empty selection of the question's options
        - Free text: text with something besides whitespace
        """
        question = self._catalog.get(self._position if position is None else position)
        if question.kind == QuestionKind.INTRO:
            return True

        answer = self._store.get(question.id)
        if answer is None or answer.kind != question.kind:
            return False

        value = answer.value
        if isinstance(value, ChoiceValue):
            return question.has_option(value.choice)
        if isinstance(value, MultiChoiceValue):
            return answer.is_answered() and value.choices <= question.option_values
        return answer.is_answered()

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    async def start(self) -> None:
        """Record the start of the quiz in the audit log."""
        if self._audit_logger:
            await self._audit_logger.log_quiz_started(
                user_id=self._identity.user_id,
                total_questions=len(self._catalog),
                correlation_id=self._correlation_id,
            )

    def answer(self, value: SubmittedValue = None) -> bool:
        """
        Record an answer for the current question.

        Accepted shapes per question kind:
        - Intro: None
        - Single choice: one option value
        - Multiple choice: one option value (toggled in or out of the
          selection) or a collection of option values (replaces it)
        - Free text: any string, blank included

        Returns:
            True if stored, False if the value doesn't fit the question
        """
        if self._status != QuizStatus.IN_PROGRESS:
            return self._reject("quiz_not_in_progress")

        question = self.current_question

        if question.kind == QuestionKind.INTRO:
            if value is not None:
                return self._reject("intro_takes_no_value")
            self._store.set(question.id, IntroValue())
            return True

        if question.kind == QuestionKind.SINGLE_CHOICE:
            if not isinstance(value, str) or not question.has_option(value):
                return self._reject("unknown_option")
            self._store.set(question.id, ChoiceValue(choice=value))
            return True

        if question.kind == QuestionKind.MULTIPLE_CHOICE:
            if isinstance(value, str):
                if not question.has_option(value):
                    return self._reject("unknown_option")
                self._store.toggle_multi_value(question.id, value)
                return True
            if not isinstance(value, Collection) or not all(isinstance(v, str) for v in value):
                return self._reject("expected_option_values")
            choices = frozenset(value)
            if not choices <= question.option_values:
                return self._reject("unknown_option")
            self._store.set(question.id, MultiChoiceValue(choices=choices))
            return True

        if question.kind == QuestionKind.FREE_TEXT:
            if not isinstance(value, str):
                return self._reject("expected_text")
            self._store.set(question.id, TextValue(text=value))
            return True

        raise TypeError(f"Unhandled question kind: {question.kind}")

    async def advance(self) -> bool:
        """
        Move to the next question, or finish on the last one.

        A no-op returning False if the current question isn't answered
        or the quiz is no longer in progress. Finishing hands the answers
        to the completion sink and always ends in DONE.
        """
        if self._status != QuizStatus.IN_PROGRESS:
            return False
        if not self.is_answered():
            self._logger.debug(
                "quiz_advance_refused",
                question_id=self.current_question.id,
                position=self._position,
            )
            return False

        question = self.current_question
        if question.kind == QuestionKind.INTRO and self._store.get(question.id) is None:
            self._store.set(question.id, IntroValue())

        if not self.is_last:
            self._position += 1
            return True

        await self._finish()
        return True

    def retreat(self) -> bool:
        """Go back one question. Never needs an answer; never clears one."""
        if self._status != QuizStatus.IN_PROGRESS or self._position == 0:
            return False
        self._position -= 1
        return True

    async def skip(self) -> bool:
        """Abandon the quiz. Nothing is saved."""
        if self._status != QuizStatus.IN_PROGRESS:
            return False
        self._status = QuizStatus.ABANDONED

        if self._audit_logger:
            await self._audit_logger.log_quiz_skipped(
                user_id=self._identity.user_id,
                position=self._position,
                correlation_id=self._correlation_id,
            )
        return True

    # =========================================================================
    # COMPLETION
    # =========================================================================

    async def _finish(self) -> None:
        self._status = QuizStatus.FINISHING
        snapshot = self._store.snapshot()

        result, stack_trace = await self._persist(snapshot)
        self._persist_result = result
        self._status = QuizStatus.DONE

        if not self._audit_logger:
            if not result.ok:
                self._logger.error(
                    "quiz_persist_failed",
                    user_id=self._identity.user_id,
                    error_type=result.error_type,
                    error_message=result.error_message,
                )
            return

        await self._audit_logger.log_quiz_completed(
            user_id=self._identity.user_id,
            answer_count=len(snapshot),
            correlation_id=self._correlation_id,
        )
        if result.ok:
            await self._audit_logger.log_quiz_persisted(
                user_id=self._identity.user_id,
                answer_count=len(snapshot),
                correlation_id=self._correlation_id,
            )
        else:
            await self._audit_logger.log_quiz_persist_failed(
                user_id=self._identity.user_id,
                error_type=result.error_type or "Unknown",
                error_message=result.error_message or "",
                correlation_id=self._correlation_id,
                stack_trace=stack_trace,
            )

    async def _persist(
        self,
        snapshot: tuple[Answer, ...],
    ) -> tuple[PersistResult, Optional[str]]:
        """Call the sink within the timeout. Returns (result, stack_trace)."""
        try:
            result = await asyncio.wait_for(
                self._sink.persist(self._identity, snapshot),
                timeout=self._timeout,
            )
            return result, None
        except asyncio.TimeoutError:
            return PersistResult.failure(
                "PersistTimeout",
                f"Completion sink did not answer within {self._timeout}s",
            ), None
        except Exception as e:
            # A crashing sink is a bug, but still must not trap the user in the quiz
            self._logger.exception(
                "quiz_sink_crashed",
                user_id=self._identity.user_id,
                correlation_id=str(self._correlation_id),
            )
            return PersistResult.failure(type(e).__name__, str(e)), traceback.format_exc()

    def _reject(self, reason: str) -> bool:
        self._logger.debug(
            "quiz_answer_rejected",
            reason=reason,
            status=self._status.value,
            position=self._position,
        )
        return False
