"""Onboarding quiz: catalog, answers, state machine and completion."""

from lifepath.quiz.answers import AnswerStore
from lifepath.quiz.catalog import ONBOARDING_QUESTIONS, QuestionCatalog, default_catalog
from lifepath.quiz.controller import QuizController
from lifepath.quiz.preferences import derive_preferences
from lifepath.quiz.sink import CompletionSink, ProfileCompletionSink

__all__ = [
    "AnswerStore",
    "CompletionSink",
    "ONBOARDING_QUESTIONS",
    "ProfileCompletionSink",
    "QuestionCatalog",
    "QuizController",
    "default_catalog",
    "derive_preferences",
]
