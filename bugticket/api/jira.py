"""
Jira proxy API — connection test and ticket creation with attachments.

Credentials arrive with each request and live only for its duration.
"""

from fastapi import APIRouter, Depends
from structlog import get_logger

from bugticket.api.deps import (
    PUSH_JIRA_LIMITER,
    TEST_JIRA_LIMITER,
    get_settings,
    get_ticket_config,
    rate_limit,
)
from bugticket.core.config import Settings
from bugticket.models.api import (
    ConnectionTestRequest,
    ConnectionTestResponse,
    PushRequest,
    PushResponse,
)
from bugticket.models.domain import TicketConfig
from bugticket.services.submission_service import check_connection, push_ticket

logger = get_logger()

router = APIRouter(prefix="/api", tags=["Jira"])


@router.post(
    "/test-jira",
    response_model=ConnectionTestResponse,
    dependencies=[Depends(rate_limit(TEST_JIRA_LIMITER))],
)
async def jira_connection_test(
    payload: ConnectionTestRequest,
    settings: Settings = Depends(get_settings),
):
    """Verify tracker credentials by fetching the current user."""
    logger.info("jira_connection_test")
    return await check_connection(payload, settings)


@router.post(
    "/push-to-jira",
    response_model=PushResponse,
    dependencies=[Depends(rate_limit(PUSH_JIRA_LIMITER))],
)
async def push_to_jira(
    payload: PushRequest,
    settings: Settings = Depends(get_settings),
    ticket_config: TicketConfig = Depends(get_ticket_config),
):
    """Create a Bug issue and upload its attachments."""
    return await push_ticket(payload, settings, ticket_config.custom_fields)
