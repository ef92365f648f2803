"""Preferences derived from the onboarding answers."""

from collections.abc import Sequence

from lifepath.models.profile import UserPreferences
from lifepath.models.quiz import Answer, ChoiceValue, MultiChoiceValue
from lifepath.models.records import DevelopmentArea


FOCUS_QUESTION_ID = "main_goals"
NOTIFICATIONS_QUESTION_ID = "notifications"
NOTIFICATIONS_OFF = "manual"


def derive_preferences(answers: Sequence[Answer]) -> UserPreferences:
    """
    Read focus areas and notification frequency out of the answers.

    Unknown or missing answers leave the defaults in place.
    """
    by_id = {answer.question_id: answer.value for answer in answers}
    preferences = UserPreferences()

    focus = by_id.get(FOCUS_QUESTION_ID)
    if isinstance(focus, MultiChoiceValue):
        preferences.focus_areas = [
            area for area in DevelopmentArea
            if area.value in focus.choices
        ]

    frequency = by_id.get(NOTIFICATIONS_QUESTION_ID)
    if isinstance(frequency, ChoiceValue):
        preferences.notification_frequency = frequency.choice
        preferences.notifications_enabled = frequency.choice != NOTIFICATIONS_OFF

    return preferences
