"""Request context for ownership enforcement."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class RequestContext:
    """Authenticated, approved caller.

    Used to enforce ownership boundaries in all database operations.
    """

    user_id: UUID
    is_admin: bool = False
