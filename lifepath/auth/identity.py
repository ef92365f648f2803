"""
Identity Guard

Authentication itself belongs to the external login provider. The core
only insists that an identity is present before any flow runs.
"""

from collections.abc import Mapping
from typing import Any, Optional

from lifepath.models.profile import UserIdentity


class IdentityMissingError(Exception):
    """
    No authenticated user.

    Fatal to the current flow; the UI sends the user back to the login
    entry point.
    """

    def __init__(self, flow: str):
        self.flow = flow
        super().__init__(f"An authenticated user is required for {flow}")


def require_identity(identity: Optional[UserIdentity], flow: str) -> UserIdentity:
    """Return `identity`, or raise IdentityMissingError if there is none."""
    if identity is None or not identity.user_id:
        raise IdentityMissingError(flow)
    return identity


def identity_from_claims(claims: Optional[Mapping[str, Any]]) -> Optional[UserIdentity]:
    """Identity from the login provider's claims, None when logged out."""
    if not claims:
        return None
    if claims.get("is_logged_in") is False:
        return None
    return UserIdentity.from_claims(claims)
