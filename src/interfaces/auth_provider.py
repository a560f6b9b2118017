"""Abstract base class for bearer-token verification.

Token issuance and session management belong to an external identity
service; this service only asks "which user does this token belong to?".
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class AuthenticatedUser:
    """The verified caller of a request."""

    id: str
    email: str | None = None


# Concrete implementation: SupabaseAuthProvider (src/providers/auth/)
class IAuthProvider(ABC):
    """Contract for access-token verification."""

    @abstractmethod
    async def verify_token(self, token: str) -> AuthenticatedUser:
        """Return the user a bearer token belongs to.

        Raises
        ------
        src.utils.errors.AuthError
            If the token is invalid, expired, or cannot be verified.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
