"""
LLM proxy API — forwards ticket prompts to the model provider.
"""

from fastapi import APIRouter, Depends, Request
from structlog import get_logger

from bugticket.api.deps import GENERATE_LIMITER, rate_limit
from bugticket.models.api import GenerateRequest, GenerateResponse

logger = get_logger()

router = APIRouter(prefix="/api", tags=["Ticket Generation"])


@router.post(
    "/generate-ticket",
    response_model=GenerateResponse,
    dependencies=[Depends(rate_limit(GENERATE_LIMITER))],
)
async def generate_ticket(payload: GenerateRequest, request: Request):
    """Generate ticket text from role-tagged content blocks."""
    generator = request.app.state.generator
    result = await generator.generate(payload.messages)
    logger.info("ticket_generated", model=result.model, stop_reason=result.stop_reason)
    return result
