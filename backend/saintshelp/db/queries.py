"""Ownership-safe select helpers."""

import uuid

from sqlalchemy import Select, or_, select

from backend.saintshelp.db.models import Book, Conversation


def select_visible_books(user_id: uuid.UUID) -> Select[tuple[Book]]:
    """Select books the user may search: their own uploads plus global books.

    Args:
        user_id: Caller's user ID

    Returns:
        Select statement filtered by ownership
    """
    return select(Book).where(or_(Book.owner_user_id == user_id, Book.owner_user_id.is_(None)))


def select_owned_conversations(user_id: uuid.UUID) -> Select[tuple[Conversation]]:
    """Select conversations owned by the user.

    Args:
        user_id: Caller's user ID

    Returns:
        Select statement filtered by owner
    """
    return select(Conversation).where(Conversation.user_id == user_id)
