"""Ask endpoint - POST /ask."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from backend.saintshelp.api.auth import get_current_user
from backend.saintshelp.api.dependencies import get_ask_service
from backend.saintshelp.db.context import RequestContext
from backend.saintshelp.errors import SaintsHelpError, UpstreamError
from backend.saintshelp.models.ask import AskRequest, AskResponse
from backend.saintshelp.orchestration.ask import AskService
from backend.saintshelp.utils.metrics import PrometheusAskMetrics

logger = logging.getLogger(__name__)
metrics = PrometheusAskMetrics()

router = APIRouter(tags=["ask"])


@router.post("/ask", response_model=AskResponse, response_model_by_alias=True)
async def ask(
    request: AskRequest,
    ctx: Annotated[RequestContext, Depends(get_current_user)],
    service: Annotated[AskService, Depends(get_ask_service)],
) -> AskResponse:
    """Answer a question with verbatim passages from the selected books.

    Args:
        request: Question, selected book ids, optional conversation id
        ctx: Authenticated caller
        service: Ask pipeline

    Returns:
        Conversation id and title plus preview passages (full text withheld)
    """
    try:
        response = await service.ask(request, ctx.user_id)
    except SaintsHelpError as e:
        metrics.inc_request(f"http_{e.status_code}")
        raise
    except Exception as e:
        metrics.inc_request("error")
        logger.error(f"[POST /ask] Unexpected failure for user {ctx.user_id}: {e}", exc_info=True)
        raise UpstreamError(str(e) or "Unexpected server error") from e

    outcome = "answered" if response.passages else "empty"
    metrics.inc_request(outcome)
    logger.info(
        f"[POST /ask] conversation={response.conversation_id} passages={len(response.passages)}"
    )
    return response
