"""
Completion Sink

Where a finished quiz goes. The sink answers with a PersistResult; a
storage failure is a failed result, not an exception, because the user
moves on to the dashboard whether the save worked or not.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from datetime import datetime

from lifepath.models.profile import ProfileUpdate, UserIdentity
from lifepath.models.quiz import Answer, PersistResult
from lifepath.quiz.preferences import derive_preferences
from lifepath.services.storage import ProfileStorageInterface, StorageError


class CompletionSink(ABC):
    """Receives the answers of a completed quiz."""

    @abstractmethod
    async def persist(
        self,
        identity: UserIdentity,
        answers: Sequence[Answer],
    ) -> PersistResult:
        """
        Store the finished answers for `identity`.

        Must be safe to call again with the same answers.
        """
        pass


class ProfileCompletionSink(CompletionSink):
    """
    Writes the quiz completion into the user's profile.

    The write is a full overwrite of the completion keys
    (quiz_completed, quiz_answers, completed_at, preferences), which is
    what makes retries harmless. No retry happens here.
    """

    def __init__(
        self,
        profile_storage: ProfileStorageInterface,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self._storage = profile_storage
        self._clock = clock

    async def persist(
        self,
        identity: UserIdentity,
        answers: Sequence[Answer],
    ) -> PersistResult:
        completed_at = self._clock()
        update = ProfileUpdate(
            quiz_completed=True,
            quiz_answers=tuple(answers),
            completed_at=completed_at,
            preferences=derive_preferences(answers),
        )

        try:
            written = await self._storage.update_profile(identity.user_id, update)
        except StorageError as e:
            return PersistResult.failure(type(e).__name__, str(e))

        if not written:
            return PersistResult.failure(
                "ProfileNotUpdated",
                f"Profile store did not accept the update for {identity.user_id}",
            )
        return PersistResult.success(completed_at)
