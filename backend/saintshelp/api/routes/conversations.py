"""Conversation endpoints - list, replay, delete."""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends

from backend.saintshelp.api.auth import get_current_user
from backend.saintshelp.api.dependencies import get_ledger
from backend.saintshelp.db.context import RequestContext
from backend.saintshelp.errors import SaintsHelpError, UpstreamError
from backend.saintshelp.models.conversations import (
    ConversationDetailResponse,
    ConversationListResponse,
)
from backend.saintshelp.orchestration.ledger import ConversationLedger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/conversations", tags=["conversations"])


@router.get("", response_model=ConversationListResponse)
async def list_conversations(
    ctx: Annotated[RequestContext, Depends(get_current_user)],
    ledger: Annotated[ConversationLedger, Depends(get_ledger)],
) -> ConversationListResponse:
    """List the caller's conversations, newest first."""
    try:
        conversations = await ledger.list_conversations(ctx.user_id)
    except Exception as e:
        logger.error(f"[GET /conversations] Listing failed: {e}", exc_info=True)
        raise UpstreamError(str(e) or "Unexpected server error") from e

    return ConversationListResponse(conversations=conversations)


@router.get("/{conversation_id}", response_model=ConversationDetailResponse)
async def get_conversation(
    conversation_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_user)],
    ledger: Annotated[ConversationLedger, Depends(get_ledger)],
) -> ConversationDetailResponse:
    """Replay a conversation. Assistant messages carry previews only.

    Raises:
        NotFoundError: Conversation absent or owned by someone else
    """
    try:
        return await ledger.replay(conversation_id, ctx.user_id)
    except SaintsHelpError:
        raise
    except Exception as e:
        logger.error(f"[GET /conversations/{conversation_id}] Replay failed: {e}", exc_info=True)
        raise UpstreamError(str(e) or "Unexpected server error") from e


@router.delete("/{conversation_id}")
async def delete_conversation(
    conversation_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_user)],
    ledger: Annotated[ConversationLedger, Depends(get_ledger)],
) -> dict[str, bool]:
    """Delete a conversation and its turns."""
    try:
        await ledger.delete(conversation_id, ctx.user_id)
    except SaintsHelpError:
        raise
    except Exception as e:
        logger.error(f"[DELETE /conversations/{conversation_id}] Delete failed: {e}", exc_info=True)
        raise UpstreamError(str(e) or "Unexpected server error") from e

    return {"success": True}
