"""
Shared route dependencies: settings, ticket config and per-endpoint rate limits.
"""

from fastapi import Request

from bugticket.core.config import Settings
from bugticket.core.exceptions import RateLimitExceededError
from bugticket.models.domain import TicketConfig

GENERATE_LIMITER = "generate-ticket"
TEST_JIRA_LIMITER = "test-jira"
PUSH_JIRA_LIMITER = "push-to-jira"


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_ticket_config(request: Request) -> TicketConfig:
    return request.app.state.ticket_config


def client_key(request: Request) -> str:
    """Identify the caller: first forwarded hop, real-ip header, then peer."""
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit(limiter_name: str):
    """Build a dependency that charges one request to ``limiter_name``."""

    async def _check(request: Request) -> None:
        limiter = request.app.state.rate_limiters[limiter_name]
        decision = limiter.hit(client_key(request))
        if not decision.allowed:
            raise RateLimitExceededError(retry_after=decision.retry_after)

    return _check
