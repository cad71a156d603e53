"""
Client for the ticket proxy — the non-UI half of the browser form.

Builds the prompt, calls the generate/test/push endpoints with per-call
timeouts, parses the returned text and guards the push payload size.
"""

from __future__ import annotations

import math
from typing import Any

import httpx
from pydantic import BaseModel
from structlog import get_logger

from bugticket.client.endpoints import EndpointSignals, resolve_endpoint
from bugticket.llm.prompts import build_enhance_messages, build_ticket_messages
from bugticket.models.api import (
    ConnectionTestResponse,
    GenerateResponse,
    PushResponse,
    TrackerCredentials,
)
from bugticket.models.domain import TicketConfig
from bugticket.models.ticket import Attachment, TicketDraft
from bugticket.tickets.parser import parse_ticket
from bugticket.tickets.quality import QualityScore, score_ticket
from bugticket.tickets.suggestions import Suggestion, suggest

logger = get_logger()

GENERATE_TIMEOUT_SECONDS = 90.0
ENHANCE_TIMEOUT_SECONDS = 30.0
CONNECTION_TIMEOUT_SECONDS = 30.0
PUSH_TIMEOUT_SECONDS = 120.0

# Descriptions longer than this are returned unchanged by enhance_description
DETAILED_DESCRIPTION_WORDS = 20

# Serverless request bodies cap out around 6-10 MB; attachments get 6 MB
ATTACHMENT_BUDGET_BYTES = 6 * 1024 * 1024
_PER_FILE_OVERHEAD_BYTES = 200


class ClientError(Exception):
    """Base class for errors surfaced to the reporter."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ClientTimeoutError(ClientError):
    pass


class ClientRequestError(ClientError):
    pass


class TicketTooLargeError(ClientRequestError):
    pass


class GeneratedTicket(BaseModel):
    text: str
    draft: TicketDraft
    quality: QualityScore


class PushResult(BaseModel):
    response: PushResponse
    attachments_skipped: bool = False


def estimate_attachment_bytes(attachments: list[Attachment]) -> int:
    """Approximate JSON size of the attachments array."""
    total = 0
    for attachment in attachments:
        payload = attachment.data.split(",", 1)[1] if "," in attachment.data else attachment.data
        total += math.ceil(len(payload) * 1.1) + _PER_FILE_OVERHEAD_BYTES
    return total


class TicketClient:
    """Talks to a deployed ticket proxy.

    Args:
        site_url: Origin of the deployed site, e.g. ``https://bugs.netlify.app``.
        signals: Endpoint signals; read from the environment when omitted.
        config: Ticket format used when building prompts.
        transport: Optional httpx transport (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        site_url: str,
        signals: EndpointSignals | None = None,
        config: TicketConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.site_url = site_url.rstrip("/")
        self.signals = signals or EndpointSignals()
        self.config = config or TicketConfig()
        self._transport = transport

    def endpoint(self, function_name: str) -> str:
        return resolve_endpoint(function_name, self.signals)

    async def generate(
        self,
        description: str,
        media: list[Attachment] | None = None,
    ) -> GeneratedTicket:
        """Generate, parse and score a ticket for ``description``."""
        if not description.strip():
            raise ClientRequestError("Please describe the bug first.")

        messages = build_ticket_messages(description, media or [], self.config)
        data = await self._post(
            "generate-ticket",
            {"messages": messages},
            timeout=GENERATE_TIMEOUT_SECONDS,
        )
        text = GenerateResponse.model_validate(data).text
        return GeneratedTicket(
            text=text,
            draft=parse_ticket(text),
            quality=score_ticket(text),
        )

    async def enhance_description(self, description: str) -> str:
        """Expand a short description through the generate proxy."""
        if not description.strip():
            raise ClientRequestError("Please enter a description first.")
        if len(description.split()) > DETAILED_DESCRIPTION_WORDS:
            logger.info("description_already_detailed", words=len(description.split()))
            return description

        data = await self._post(
            "generate-ticket",
            {"messages": build_enhance_messages(description)},
            timeout=ENHANCE_TIMEOUT_SECONDS,
        )
        return GenerateResponse.model_validate(data).text.strip()

    def suggest(self, description: str) -> Suggestion | None:
        """Keyword priority suggestion shown before generating."""
        return suggest(description)

    async def test_connection(self, credentials: TrackerCredentials) -> ConnectionTestResponse:
        data = await self._post(
            "test-jira",
            credentials.model_dump(by_alias=True, mode="json"),
            timeout=CONNECTION_TIMEOUT_SECONDS,
        )
        return ConnectionTestResponse.model_validate(data)

    async def push(
        self,
        credentials: TrackerCredentials,
        project_key: str,
        draft: TicketDraft,
        custom_fields: dict[str, Any] | None = None,
        attachments: list[Attachment] | None = None,
    ) -> PushResult:
        """Create the ticket; in production, oversized attachment sets are left out."""
        attachments = attachments or []
        body: dict[str, Any] = {
            **credentials.model_dump(by_alias=True, mode="json"),
            "projectKey": project_key,
            "fields": draft.model_dump(by_alias=True, mode="json"),
            "customFields": custom_fields or {},
        }

        skipped = False
        if attachments:
            size = estimate_attachment_bytes(attachments)
            # Body limits only apply on the deployed serverless platforms
            if self.signals.production and size > ATTACHMENT_BUDGET_BYTES:
                logger.warning(
                    "attachments_skipped",
                    count=len(attachments),
                    estimated_bytes=size,
                    budget_bytes=ATTACHMENT_BUDGET_BYTES,
                )
                skipped = True
            else:
                body["attachments"] = [a.model_dump(by_alias=True, mode="json") for a in attachments]

        data = await self._post("push-to-jira", body, timeout=PUSH_TIMEOUT_SECONDS)
        return PushResult(
            response=PushResponse.model_validate(data),
            attachments_skipped=skipped,
        )

    async def _post(self, function_name: str, body: dict, timeout: float) -> dict:
        url = self.endpoint(function_name)
        async with httpx.AsyncClient(
            base_url=self.site_url,
            timeout=httpx.Timeout(timeout),
            transport=self._transport,
        ) as client:
            try:
                response = await client.post(url, json=body)
            except httpx.TimeoutException as e:
                raise ClientTimeoutError(
                    "Request timeout. The server is taking too long to respond. "
                    "Please try again."
                ) from e
            except httpx.HTTPError as e:
                raise ClientRequestError(f"Network error: {e}") from e

        if response.is_success:
            try:
                return response.json()
            except ValueError as e:
                raise ClientRequestError(
                    f"Server returned non-JSON response. Endpoint: {url}.",
                    response.status_code,
                ) from e

        raise _error_from_response(response, url)


def _error_from_response(response: httpx.Response, url: str) -> ClientError:
    status = response.status_code
    try:
        message = response.json().get("error")
    except (ValueError, AttributeError):
        message = None

    if status == 413:
        return TicketTooLargeError(
            message or "Attachments are too large for Jira. Please remove large files and try again.",
            status,
        )
    if message:
        return ClientRequestError(message, status)
    if status == 404:
        return ClientRequestError(
            f'API endpoint not found (404). The endpoint "{url}" may be incorrect.',
            status,
        )
    if status == 500:
        return ClientRequestError(
            "Server error (500). Please check your API key and server configuration.",
            status,
        )
    return ClientRequestError(f"Server returned an error ({status}).", status)
