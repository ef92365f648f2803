"""
Onboarding Quiz Models

Questions are static definitions; answers are tagged by question kind so the
quiz controller can validate them exhaustively.

DESIGN DECISION: An answer's value is a discriminated union keyed by
`kind`. A single-choice answer can never be confused with a free-text
answer even when both hold a plain string.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    model_validator,
)


class QuestionKind(str, Enum):
    """Kinds of onboarding questions."""
    INTRO = "intro"
    SINGLE_CHOICE = "single_choice"
    MULTIPLE_CHOICE = "multiple_choice"
    FREE_TEXT = "free_text"


CHOICE_KINDS = frozenset({QuestionKind.SINGLE_CHOICE, QuestionKind.MULTIPLE_CHOICE})


# =============================================================================
# QUESTIONS
# =============================================================================

class QuestionOption(BaseModel):
    """A selectable option of a choice question."""
    model_config = ConfigDict(frozen=True)

    value: str = Field(..., min_length=1)
    label: str = Field(..., min_length=1)


class Question(BaseModel):
    """
    A single onboarding question.

    Options are only allowed (and required) for choice questions.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    title: str
    subtitle: str = ""
    kind: QuestionKind
    options: tuple[QuestionOption, ...] = ()
    placeholder: str = ""

    @model_validator(mode='after')
    def validate_options(self) -> 'Question':
        """Check options against the question kind."""
        if self.kind in CHOICE_KINDS:
            if not self.options:
                raise ValueError(f"Question '{self.id}' needs at least one option")
            values = [option.value for option in self.options]
            if len(values) != len(set(values)):
                raise ValueError(f"Question '{self.id}' has duplicate option values")
        elif self.options:
            raise ValueError(
                f"Question '{self.id}' of kind {self.kind.value} cannot have options"
            )
        return self

    @property
    def option_values(self) -> frozenset[str]:
        return frozenset(option.value for option in self.options)

    def has_option(self, value: str) -> bool:
        return value in self.option_values


# =============================================================================
# ANSWER VALUES (tagged by kind)
# =============================================================================

class IntroValue(BaseModel):
    """Acknowledgement of an intro screen. Carries no data."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["intro"] = "intro"


class ChoiceValue(BaseModel):
    """Exactly one selected option."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["single_choice"] = "single_choice"
    choice: str


class MultiChoiceValue(BaseModel):
    """A set of selected options. Empty means "not answered yet"."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["multiple_choice"] = "multiple_choice"
    choices: frozenset[str] = frozenset()

    @field_serializer('choices')
    def serialize_choices(self, choices: frozenset[str]) -> list[str]:
        # Sorted so the stored profile is stable across runs
        return sorted(choices)

    def toggled(self, candidate: str) -> 'MultiChoiceValue':
        """Return a copy with `candidate` added or removed."""
        if candidate in self.choices:
            return MultiChoiceValue(choices=self.choices - {candidate})
        return MultiChoiceValue(choices=self.choices | {candidate})


class TextValue(BaseModel):
    """Free text as typed by the user."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["free_text"] = "free_text"
    text: str = ""


AnswerValue = Annotated[
    Union[IntroValue, ChoiceValue, MultiChoiceValue, TextValue],
    Field(discriminator="kind"),
]


class Answer(BaseModel):
    """An answer to one question."""
    model_config = ConfigDict(frozen=True)

    question_id: str
    value: AnswerValue

    @property
    def kind(self) -> QuestionKind:
        return QuestionKind(self.value.kind)

    def is_answered(self) -> bool:
        """
        Does this answer count as answered?

        Intro is always answered, a multiple choice needs at least one
        selection and free text must contain something besides whitespace.
        """
        value = self.value
        if isinstance(value, IntroValue):
            return True
        if isinstance(value, ChoiceValue):
            return bool(value.choice)
        if isinstance(value, MultiChoiceValue):
            return len(value.choices) > 0
        if isinstance(value, TextValue):
            return bool(value.text.strip())
        raise TypeError(f"Unknown answer value: {value!r}")

    def to_profile_dict(self) -> dict:
        """Plain representation stored in the user profile."""
        value = self.value
        if isinstance(value, IntroValue):
            payload = None
        elif isinstance(value, ChoiceValue):
            payload = value.choice
        elif isinstance(value, MultiChoiceValue):
            payload = sorted(value.choices)
        else:
            payload = value.text
        return {
            "question": self.question_id,
            "kind": self.kind.value,
            "answer": payload,
        }


# =============================================================================
# QUIZ STATE & COMPLETION
# =============================================================================

class QuizStatus(str, Enum):
    """
    Quiz controller states.

    FINISHING is transient: it only lasts while the completion sink runs.
    DONE and ABANDONED are terminal.
    """
    IN_PROGRESS = "in_progress"
    FINISHING = "finishing"
    DONE = "done"
    ABANDONED = "abandoned"


TERMINAL_STATUSES = frozenset({QuizStatus.DONE, QuizStatus.ABANDONED})


class PersistResult(BaseModel):
    """
    Outcome of handing the finished quiz to the completion sink.

    Failures are values, not exceptions: the quiz reaches DONE either way.
    """
    model_config = ConfigDict(frozen=True)

    ok: bool
    error_type: Optional[str] = None
    error_message: Optional[str] = None
    persisted_at: Optional[datetime] = None

    @classmethod
    def success(cls, persisted_at: datetime) -> 'PersistResult':
        return cls(ok=True, persisted_at=persisted_at)

    @classmethod
    def failure(cls, error_type: str, error_message: str) -> 'PersistResult':
        return cls(ok=False, error_type=error_type, error_message=error_message)
