"""
Answer Store

Single source of truth for quiz progress. A plain key-value store:
it does not know question kinds and does not validate anything, the
quiz controller does that before writing.
"""

from typing import Optional

from lifepath.models.quiz import Answer, AnswerValue, MultiChoiceValue
from lifepath.quiz.catalog import QuestionCatalog


class AnswerStore:
    """
    Mapping of question id to answer.

    Re-answering a question replaces the previous answer. `snapshot()`
    orders answers by the catalog, never by when they were given.
    """

    def __init__(self, catalog: QuestionCatalog):
        self._catalog = catalog
        self._answers: dict[str, Answer] = {}

    def set(self, question_id: str, value: AnswerValue) -> Answer:
        answer = Answer(question_id=question_id, value=value)
        self._answers[question_id] = answer
        return answer

    def get(self, question_id: str) -> Optional[Answer]:
        return self._answers.get(question_id)

    def toggle_multi_value(self, question_id: str, candidate: str) -> Answer:
        """
        Add `candidate` to a multiple-choice answer, or remove it if present.

        Starts from an empty selection when there is no prior answer.
        """
        current = self._answers.get(question_id)
        if current is not None and isinstance(current.value, MultiChoiceValue):
            selection = current.value
        else:
            selection = MultiChoiceValue()
        return self.set(question_id, selection.toggled(candidate))

    def snapshot(self) -> tuple[Answer, ...]:
        """All answers in catalog order."""
        return tuple(
            self._answers[question_id]
            for question_id in self._catalog.question_ids
            if question_id in self._answers
        )

    def is_empty(self) -> bool:
        return not self._answers

    def __len__(self) -> int:
        return len(self._answers)
