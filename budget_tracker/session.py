"""Explicit session context threaded through every data access call."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .errors import AuthError


@dataclass(frozen=True)
class SessionContext:
    """Identity of the signed-in user.

    ``user_id`` is the owner filter on every query.  ``access_token`` is only
    meaningful to the hosted backend; the local SQLite client ignores it.
    """

    user_id: str
    email: str
    access_token: Optional[str] = None
    full_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.full_name or self.email


def require_session(session: Optional[SessionContext]) -> SessionContext:
    if session is None:
        raise AuthError("You must be signed in to do that.")
    return session
