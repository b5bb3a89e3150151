"""Full passage endpoint - POST /passages/full."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from backend.saintshelp.api.auth import get_current_user
from backend.saintshelp.api.dependencies import get_ledger
from backend.saintshelp.db.context import RequestContext
from backend.saintshelp.errors import BadRequestError, NotFoundError, SaintsHelpError, UpstreamError
from backend.saintshelp.models.ask import FullPassageRequest, FullPassageResponse
from backend.saintshelp.orchestration.ledger import ConversationLedger, parse_uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/passages", tags=["passages"])


@router.post("/full", response_model=FullPassageResponse, response_model_by_alias=True)
async def full_passage(
    request: FullPassageRequest,
    ctx: Annotated[RequestContext, Depends(get_current_user)],
    ledger: Annotated[ConversationLedger, Depends(get_ledger)],
) -> FullPassageResponse:
    """Disclose the full text of a passage previously returned to the caller.

    Returns:
        Passage id, book, and full text

    Raises:
        BadRequestError: Missing passage id
        NotFoundError: Passage not among recent answers
        ForbiddenError: Passage belongs to another user's conversation
    """
    raw_id = request.passage_id.strip()
    if not raw_id:
        raise BadRequestError("Missing passageId")

    passage_id = parse_uuid(raw_id)
    if passage_id is None:
        raise NotFoundError("Passage not found")

    try:
        passage = await ledger.lookup_full_passage(passage_id, ctx.user_id)
    except SaintsHelpError:
        raise
    except Exception as e:
        logger.error(f"[POST /passages/full] Lookup failed: {e}", exc_info=True)
        raise UpstreamError(str(e) or "Unexpected server error") from e

    return FullPassageResponse(
        passage_id=passage.id,
        book_id=passage.book_id,
        book_title=passage.book_title,
        text=passage.full_text or passage.text,
    )
