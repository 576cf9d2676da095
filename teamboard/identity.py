"""The authenticated caller, as seen by every teamboard operation.

Authentication itself (tokens, passwords, sessions) belongs to the host
project. Operations only receive an ``Identity`` built from whatever user
the authentication layer resolved, and refuse to run without one.
"""
from dataclasses import dataclass
from typing import Optional

from .exceptions import UnauthorizedError
from .models import GlobalRole


@dataclass(frozen=True)
class Identity:
    id: int
    email: str
    role: str = GlobalRole.MEMBER

    @classmethod
    def from_user(cls, user) -> Optional['Identity']:
        """Build an identity from a django user, None for anonymous users."""
        if user is None or not getattr(user, 'is_authenticated', False):
            return None
        return cls(
            id=user.pk,
            email=(user.email or '').strip().lower(),
            role=global_role(user),
        )

    def owns_email(self, email):
        return bool(email) and self.email == email.strip().lower()


def global_role(user):
    profile = getattr(user, 'profile', None)
    if profile is None:
        return GlobalRole.MEMBER
    return profile.role


def require_identity(identity):
    """Short-circuits with UnauthorizedError before any database access."""
    if identity is None or getattr(identity, 'id', None) is None:
        raise UnauthorizedError()
    return identity
