"""Conversation and turn models."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel

from backend.saintshelp.models.passages import ClientPassage


class ConversationSummary(BaseModel):
    """Conversation row for listing."""

    id: UUID
    title: str
    created_at: datetime


class ConversationHeader(BaseModel):
    """Conversation identity for the replay view."""

    id: UUID
    title: str


class UserMessage(BaseModel):
    """Replayed user turn."""

    role: Literal["user"] = "user"
    text: str


class AssistantMessage(BaseModel):
    """Replayed assistant turn (previews only)."""

    role: Literal["assistant"] = "assistant"
    passages: list[ClientPassage]


class ConversationListResponse(BaseModel):
    """Response for GET /conversations."""

    conversations: list[ConversationSummary]


class ConversationDetailResponse(BaseModel):
    """Response for GET /conversations/{id}."""

    conversation: ConversationHeader
    messages: list[UserMessage | AssistantMessage]
