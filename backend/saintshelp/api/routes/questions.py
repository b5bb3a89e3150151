"""Example questions endpoint - GET /questions/random."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from backend.saintshelp.api.dependencies import get_prompt_repository
from backend.saintshelp.db.repositories import PromptRepository
from backend.saintshelp.errors import UpstreamError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/questions", tags=["questions"])

RANDOM_QUESTION_COUNT = 5


class RandomQuestionsResponse(BaseModel):
    """Response for GET /questions/random."""

    questions: list[str]


@router.get("/random", response_model=RandomQuestionsResponse)
async def random_questions(
    prompts: Annotated[PromptRepository, Depends(get_prompt_repository)],
) -> RandomQuestionsResponse:
    """Up to five active example questions in random order. No auth required."""
    try:
        questions = await prompts.random_questions(RANDOM_QUESTION_COUNT)
    except Exception as e:
        logger.error(f"[GET /questions/random] Lookup failed: {e}", exc_info=True)
        raise UpstreamError(str(e) or "Unexpected server error") from e

    return RandomQuestionsResponse(questions=questions)
