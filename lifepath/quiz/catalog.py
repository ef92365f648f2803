"""
Onboarding Question Catalog

The questions are defined once, at import time, and never change while
the process runs. Their order is the order the quiz walks through them.
"""

from collections.abc import Iterator, Sequence

from lifepath.models.quiz import Question, QuestionKind, QuestionOption


class QuestionCatalog:
    """
    Read-only ordered sequence of questions.

    Index validity is the caller's business; the quiz controller never
    asks for an index outside `range(len(catalog))`.
    """

    def __init__(self, questions: Sequence[Question]):
        if not questions:
            raise ValueError("A question catalog needs at least one question")

        ids = [question.id for question in questions]
        duplicates = sorted({qid for qid in ids if ids.count(qid) > 1})
        if duplicates:
            raise ValueError(f"Duplicate question ids: {', '.join(duplicates)}")

        self._questions: tuple[Question, ...] = tuple(questions)
        self._positions: dict[str, int] = {qid: idx for idx, qid in enumerate(ids)}

    def get(self, index: int) -> Question:
        return self._questions[index]

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self) -> Iterator[Question]:
        return iter(self._questions)

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._positions

    def index_of(self, question_id: str) -> int:
        """Catalog position of a question. Raises KeyError for unknown ids."""
        return self._positions[question_id]

    @property
    def question_ids(self) -> tuple[str, ...]:
        return tuple(question.id for question in self._questions)


ONBOARDING_QUESTIONS: tuple[Question, ...] = (
    Question(
        id="welcome",
        title="Welcome to LifePath!",
        subtitle="Let's get to know you so we can personalise your experience",
        kind=QuestionKind.INTRO,
    ),
    Question(
        id="main_goals",
        title="Which areas interest you most?",
        subtitle="Select all that apply",
        kind=QuestionKind.MULTIPLE_CHOICE,
        options=(
            QuestionOption(value="professional", label="Professional development"),
            QuestionOption(value="financial", label="Financial control"),
            QuestionOption(value="health", label="Health and wellbeing"),
            QuestionOption(value="learning", label="Learning and skills"),
            QuestionOption(value="relationships", label="Relationships"),
            QuestionOption(value="spiritual", label="Spiritual growth"),
        ),
    ),
    Question(
        id="current_situation",
        title="How would you describe where you are right now?",
        subtitle="Be honest, it helps us tailor your suggestions",
        kind=QuestionKind.SINGLE_CHOICE,
        options=(
            QuestionOption(value="starting", label="I'm just starting my development journey"),
            QuestionOption(value="some_progress", label="I have some goals but need organisation"),
            QuestionOption(value="advanced", label="My goals are clear, I want to optimise"),
            QuestionOption(value="lost", label="I feel lost and need direction"),
        ),
    ),
    Question(
        id="time_availability",
        title="How much time can you give to your development?",
        subtitle="We'll suggest activities that fit",
        kind=QuestionKind.SINGLE_CHOICE,
        options=(
            QuestionOption(value="15min", label="15-30 minutes a day"),
            QuestionOption(value="1hour", label="1 hour a day"),
            QuestionOption(value="2hours", label="2+ hours a day"),
            QuestionOption(value="weekends", label="Mostly at weekends"),
        ),
    ),
    Question(
        id="biggest_challenge",
        title="What is your biggest challenge right now?",
        subtitle="We'll focus on helping you with it",
        kind=QuestionKind.SINGLE_CHOICE,
        options=(
            QuestionOption(value="organization", label="Organisation and planning"),
            QuestionOption(value="motivation", label="Staying motivated and consistent"),
            QuestionOption(value="finances", label="Managing money"),
            QuestionOption(value="time", label="Managing time"),
            QuestionOption(value="direction", label="Knowing where to start"),
        ),
    ),
    Question(
        id="dream_goal",
        title="What is one dream you would like to achieve?",
        subtitle="Anything at all! We'll help you map the way there",
        kind=QuestionKind.FREE_TEXT,
        placeholder="e.g. Travel to Japan, learn the guitar, buy my own home...",
    ),
    Question(
        id="notifications",
        title="How would you like to receive suggestions?",
        subtitle="We can help you stay focused",
        kind=QuestionKind.SINGLE_CHOICE,
        options=(
            QuestionOption(value="daily", label="Daily notifications with suggestions"),
            QuestionOption(value="weekly", label="A weekly summary"),
            QuestionOption(value="manual", label="I'd rather check in when I want"),
        ),
    ),
)


def default_catalog() -> QuestionCatalog:
    """The onboarding flow shown to every new user."""
    return QuestionCatalog(ONBOARDING_QUESTIONS)
