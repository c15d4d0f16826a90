"""
Identity & role adapter.

The identity provider owns users and credentials. The engine only reads
the acting user from it; no user means no section access.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..core.security import AuthenticationError, UserRole, verify_token
from ..schemas.user import CurrentUser


class IdentityProvider(ABC):
    """Read-only view of the session's acting user."""

    is_loading: bool = False

    @abstractmethod
    def current_user(self) -> Optional[CurrentUser]:
        """Return the acting user, or None when nobody is signed in."""


class AnonymousIdentity(IdentityProvider):
    def current_user(self) -> Optional[CurrentUser]:
        return None


class TokenIdentityProvider(IdentityProvider):
    """Resolve the user from a bearer token issued by the identity provider."""

    def __init__(self, token: str):
        self.token = token

    def current_user(self) -> Optional[CurrentUser]:
        payload = verify_token(self.token)
        if not payload:
            raise AuthenticationError("Invalid or expired token")

        if payload.token_type != "access":
            raise AuthenticationError("Invalid token type")

        if not payload.sub or not payload.role:
            raise AuthenticationError("Invalid token payload")

        try:
            role = UserRole(payload.role)
        except ValueError:
            raise AuthenticationError(f"Unknown role: {payload.role}")

        return CurrentUser(id=payload.sub, name=payload.name or payload.sub, role=role)
