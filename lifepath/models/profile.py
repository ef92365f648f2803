"""
User Identity and Profile Models

The identity comes from the external login provider. The profile is the
record the onboarding quiz writes into once it is finished.
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from lifepath.models.quiz import Answer
from lifepath.models.records import DevelopmentArea


class UserIdentity(BaseModel):
    """
    An authenticated user.

    Passed explicitly into every flow; nothing in the core looks it up
    from ambient session state.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    user_id: str = Field(
        ...,
        min_length=1,
        description="Stable identifier from the identity provider"
    )
    email: Optional[str] = None
    full_name: Optional[str] = None

    @property
    def first_name(self) -> str:
        if self.full_name:
            return self.full_name.split()[0]
        return "there"

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> Optional['UserIdentity']:
        """
        Build an identity from OIDC claims.

        Returns None when the claims carry no subject (user not logged in).
        """
        subject = claims.get("sub") or claims.get("user_id")
        if not subject:
            return None
        return cls(
            user_id=str(subject),
            email=claims.get("email"),
            full_name=claims.get("name") or claims.get("full_name"),
        )


class UserPreferences(BaseModel):
    """Preferences derived from the onboarding answers."""

    focus_areas: list[DevelopmentArea] = Field(default_factory=list)
    notification_frequency: Optional[str] = None
    notifications_enabled: bool = True


class ProfileUpdate(BaseModel):
    """
    Payload written to the profile store when the quiz completes.

    Always a full overwrite of these keys, so writing the same update
    twice leaves the profile unchanged.
    """
    model_config = ConfigDict(frozen=True)

    quiz_completed: bool = True
    quiz_answers: tuple[Answer, ...] = ()
    completed_at: datetime
    preferences: Optional[UserPreferences] = None


class UserProfile(BaseModel):
    """Stored user profile."""

    user_id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    quiz_completed: bool = False
    quiz_answers: list[Answer] = Field(default_factory=list)
    completed_at: Optional[datetime] = None
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def apply(self, update: ProfileUpdate) -> 'UserProfile':
        """Return a copy with the quiz completion written over it."""
        return self.model_copy(
            update={
                "quiz_completed": update.quiz_completed,
                "quiz_answers": list(update.quiz_answers),
                "completed_at": update.completed_at,
                "preferences": update.preferences or self.preferences,
                "updated_at": datetime.utcnow(),
            }
        )
