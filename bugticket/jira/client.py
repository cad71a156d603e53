"""
Jira Cloud REST client — the handful of calls the proxy needs, over httpx
with basic auth built from request-scoped credentials.
"""

from __future__ import annotations

from typing import Any

import httpx
from structlog import get_logger

from bugticket.core.exceptions import (
    AttachmentTooLargeError,
    BugTicketError,
    TrackerAPIError,
    TrackerAuthenticationError,
    TrackerNotFoundError,
    TrackerPermissionError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from bugticket.models.ticket import Attachment

logger = get_logger()

ERROR_TEXT_LIMIT = 200
UPLOAD_OPERATION = "upload_attachment"


class JiraClient:
    """Async Jira client bound to one set of credentials.

    Use as an async context manager so the underlying connection pool is
    closed when the request finishes.
    """

    def __init__(
        self,
        base_url: str,
        email: str,
        api_token: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            auth=httpx.BasicAuth(email, api_token),
            timeout=httpx.Timeout(timeout),
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> JiraClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    def browse_url(self, issue_key: str) -> str:
        return f"{self.base_url}/browse/{issue_key}"

    # ── Calls ───────────────────────────────────────────

    async def get_myself(self) -> dict[str, Any]:
        """Return the authenticated user (used as a connection test)."""
        response = await self._send("GET", "/rest/api/3/myself", operation="myself")
        return response.json()

    async def get_create_meta(
        self, project_key: str, issue_type: str = "Bug"
    ) -> dict[str, Any]:
        response = await self._send(
            "GET",
            "/rest/api/2/issue/createmeta",
            operation="createmeta",
            params={
                "projectKeys": project_key,
                "issuetypeNames": issue_type,
                "expand": "projects.issuetypes.fields",
            },
        )
        return response.json()

    async def find_option_id(
        self,
        project_key: str,
        field_id: str,
        value: str,
        issue_type: str = "Bug",
    ) -> str | None:
        """Resolve a select-field option's id from its display value.

        Best effort: lookup failures are logged and reported as no match.
        """
        try:
            meta = await self.get_create_meta(project_key, issue_type)
        except (BugTicketError, httpx.HTTPError, ValueError) as e:
            logger.warning(
                "jira_option_lookup_failed",
                field=field_id,
                error=str(e),
            )
            return None

        for option in _allowed_values(meta, field_id):
            if value in (option.get("value"), option.get("name")) and option.get("id"):
                return str(option["id"])

        logger.warning("jira_option_not_found", field=field_id, value=value)
        return None

    async def create_issue(self, payload: dict[str, Any]) -> dict[str, Any]:
        response = await self._send(
            "POST", "/rest/api/2/issue", operation="create_issue", json=payload
        )
        data = response.json()
        logger.info("jira_issue_created", key=data.get("key"), id=data.get("id"))
        return data

    async def upload_attachment(self, issue_key: str, attachment: Attachment) -> None:
        """Attach one file to an issue.

        Raises:
            ValueError: the attachment payload could not be decoded.
            AttachmentTooLargeError: the tracker answered 413.
        """
        content = attachment.content()
        await self._send(
            "POST",
            f"/rest/api/2/issue/{issue_key}/attachments",
            operation=UPLOAD_OPERATION,
            headers={"X-Atlassian-Token": "no-check"},
            files={"file": (attachment.filename, content, attachment.content_type)},
            # Uploads are bounded by the caller's overall push timeout
            timeout=None,
        )

    # ── Internal helpers ────────────────────────────────

    async def _send(self, method: str, path: str, operation: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.error("jira_request_timeout", operation=operation)
            raise UpstreamTimeoutError(
                "Jira did not respond in time. Please try again.",
                {"operation": operation},
            ) from e
        except httpx.HTTPError as e:
            logger.error("jira_request_failed", operation=operation, error=str(e))
            raise UpstreamUnavailableError(
                f"Could not reach Jira: {e}", {"operation": operation}
            ) from e

        if response.is_success:
            return response

        raise map_error_response(response, operation)


def map_error_response(response: httpx.Response, operation: str) -> BugTicketError:
    """Map a non-2xx Jira response to the matching proxy error."""
    status = response.status_code
    body = _json_or_none(response)
    details: dict[str, Any] = {"status": status, "operation": operation}
    if body is not None:
        details["response"] = body

    logger.error(
        "jira_api_error",
        operation=operation,
        status=status,
        body=response.text[:ERROR_TEXT_LIMIT],
    )

    if status == 401:
        return TrackerAuthenticationError(details)
    if status == 403:
        return TrackerPermissionError(details)
    if status == 404:
        return TrackerNotFoundError(details)
    if status == 413 and operation == UPLOAD_OPERATION:
        return AttachmentTooLargeError(details)

    if body is None:
        message = (
            "Jira API returned non-JSON response: "
            f"{response.text[:ERROR_TEXT_LIMIT]}"
        )
    else:
        message = _extract_error_message(body)[:ERROR_TEXT_LIMIT]
    return TrackerAPIError(message, details, status_code=status)


def _extract_error_message(body: Any) -> str:
    if isinstance(body, dict):
        messages = body.get("errorMessages")
        if isinstance(messages, list) and messages:
            return ", ".join(str(m) for m in messages)
        errors = body.get("errors")
        if isinstance(errors, dict) and errors:
            return ", ".join(f"{field}: {msg}" for field, msg in errors.items())
        if body.get("error"):
            return str(body["error"])
    return "Jira request failed"


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _allowed_values(meta: dict[str, Any], field_id: str) -> list[dict[str, Any]]:
    """Walk createmeta down to a field's allowedValues."""
    for project in meta.get("projects") or []:
        for issue_type in project.get("issuetypes") or []:
            field = (issue_type.get("fields") or {}).get(field_id)
            if field and field.get("allowedValues"):
                return field["allowedValues"]
    return []
