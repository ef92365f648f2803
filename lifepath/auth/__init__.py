"""Identity package."""

from lifepath.auth.identity import (
    IdentityMissingError,
    identity_from_claims,
    require_identity,
)

__all__ = ["IdentityMissingError", "identity_from_claims", "require_identity"]
