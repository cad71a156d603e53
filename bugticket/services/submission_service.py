"""
Submission service — validates a push request, builds the Jira issue payload,
creates the issue and uploads its attachments.

Order of work: validate URL -> build custom fields -> resolve option ids
(best effort) -> create issue -> upload attachments one at a time.
"""

import asyncio
from typing import Any

import httpx
from structlog import get_logger

from bugticket.core.config import Settings
from bugticket.core.exceptions import (
    AttachmentTooLargeError,
    BugTicketError,
    UpstreamTimeoutError,
)
from bugticket.jira.client import JiraClient
from bugticket.models.api import (
    AttachmentReport,
    ConnectionTestRequest,
    ConnectionTestResponse,
    PushRequest,
    PushResponse,
)
from bugticket.models.custom_fields import CustomFieldSpec, CustomFieldValue, ValueObject
from bugticket.models.ticket import Attachment, TicketDraft
from bugticket.security.url_validator import validate_tracker_url

logger = get_logger()

ISSUE_TYPE = "Bug"

# (heading, draft attribute) in the order they appear in the issue description
DESCRIPTION_SECTIONS: list[tuple[str, str]] = [
    ("Description", "description"),
    ("Steps to Reproduce", "steps"),
    ("Expected Behaviour", "expected"),
    ("Actual Behaviour", "actual"),
    ("Impact", "impact"),
    ("Environment", "environment"),
]


# ── Payload building ────────────────────────────────────


def build_description(draft: TicketDraft) -> str:
    """Reassemble the draft's sections as Jira wiki markup."""
    return "\n\n".join(
        f"*{heading}:*\n{getattr(draft, attr)}" for heading, attr in DESCRIPTION_SECTIONS
    )


def build_custom_values(
    custom_fields: dict[str, Any],
    specs: list[CustomFieldSpec],
) -> dict[str, CustomFieldValue]:
    """Map request custom field values onto tracker field ids."""
    by_key = {spec.key: spec for spec in specs}
    values: dict[str, CustomFieldValue] = {}
    for key, raw in custom_fields.items():
        spec = by_key.get(key)
        if spec is None:
            logger.warning("custom_field_unmapped", key=key)
            continue
        value = spec.build(raw)
        if value is None:
            logger.debug("custom_field_blank", key=key)
            continue
        values[spec.field_id] = value
    return values


def build_issue_payload(
    project_key: str,
    draft: TicketDraft,
    custom_values: dict[str, CustomFieldValue] | None = None,
) -> dict[str, Any]:
    """Build the body for Jira's create-issue call."""
    fields: dict[str, Any] = {
        "project": {"key": project_key},
        "summary": draft.title,
        "description": build_description(draft),
        "issuetype": {"name": ISSUE_TYPE},
        "priority": {"id": draft.priority_id, "name": draft.priority_name},
    }
    for field_id, value in (custom_values or {}).items():
        fields[field_id] = value.render()
    return {"fields": fields}


async def resolve_option_ids(
    client: JiraClient,
    project_key: str,
    custom_values: dict[str, CustomFieldValue],
    specs: list[CustomFieldSpec],
) -> None:
    """Fill in option ids for select fields that need one, in place.

    A failed or empty lookup leaves the value-only variant in place.
    """
    for spec in specs:
        if not spec.resolve_option_id:
            continue
        value = custom_values.get(spec.field_id)
        if not isinstance(value, ValueObject) or value.option_id:
            continue
        option_id = await client.find_option_id(project_key, spec.field_id, value.value)
        if option_id:
            custom_values[spec.field_id] = value.model_copy(update={"option_id": option_id})
            logger.info("custom_field_option_resolved", field=spec.field_id, option_id=option_id)
        else:
            logger.warning(
                "custom_field_option_fallback",
                field=spec.field_id,
                value=value.value,
            )


# ── Attachment upload ──────────────────────────────────


async def upload_attachments(
    client: JiraClient,
    issue_key: str,
    attachments: list[Attachment],
) -> AttachmentReport:
    """Upload attachments sequentially.

    A failing file is recorded and skipped; a 413 stops the loop and is raised
    with the created issue key so the caller still learns about the issue.
    """
    report = AttachmentReport()
    total = len(attachments)
    for index, attachment in enumerate(attachments, 1):
        try:
            await client.upload_attachment(issue_key, attachment)
        except AttachmentTooLargeError as e:
            logger.error(
                "jira_attachment_too_large",
                issue=issue_key,
                filename=attachment.filename,
            )
            e.details.update({"issueKey": issue_key, "filename": attachment.filename})
            raise
        except (BugTicketError, httpx.HTTPError, ValueError) as e:
            logger.warning(
                "jira_attachment_failed",
                issue=issue_key,
                index=index,
                total=total,
                filename=attachment.filename,
                error=str(e),
            )
            report.failed.append(attachment.filename)
            continue
        logger.info(
            "jira_attachment_uploaded",
            issue=issue_key,
            index=index,
            total=total,
            filename=attachment.filename,
        )
        report.uploaded.append(attachment.filename)
    return report


# ── Entry points ───────────────────────────────────────


async def push_ticket(
    request: PushRequest,
    settings: Settings,
    field_specs: list[CustomFieldSpec],
    transport: httpx.AsyncBaseTransport | None = None,
) -> PushResponse:
    """Create a Bug issue from a parsed draft, bounded by the submit timeout."""
    base_url = validate_tracker_url(request.url, settings.JIRA_HOST_SUFFIX)
    try:
        return await asyncio.wait_for(
            _push(request, base_url, settings, field_specs, transport),
            timeout=settings.JIRA_SUBMIT_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError as e:
        logger.error("jira_push_timeout", project=request.project_key)
        raise UpstreamTimeoutError(
            "Creating the Jira ticket timed out. Please try again.",
            {"timeout": settings.JIRA_SUBMIT_TIMEOUT_SECONDS},
        ) from e


async def _push(
    request: PushRequest,
    base_url: str,
    settings: Settings,
    field_specs: list[CustomFieldSpec],
    transport: httpx.AsyncBaseTransport | None,
) -> PushResponse:
    logger.info(
        "jira_push_start",
        project=request.project_key,
        attachments=len(request.attachments),
    )

    custom_values = build_custom_values(request.custom_fields, field_specs)

    async with JiraClient(
        base_url,
        request.email,
        request.api_token,
        timeout=settings.JIRA_REQUEST_TIMEOUT_SECONDS,
        transport=transport,
    ) as client:
        await resolve_option_ids(client, request.project_key, custom_values, field_specs)

        payload = build_issue_payload(request.project_key, request.fields, custom_values)
        created = await client.create_issue(payload)
        issue_key = created["key"]

        report = AttachmentReport()
        if request.attachments:
            report = await upload_attachments(client, issue_key, request.attachments)

        return PushResponse(
            key=issue_key,
            id=str(created.get("id", "")),
            self_url=created.get("self"),
            url=client.browse_url(issue_key),
            attachments=report,
        )


async def check_connection(
    request: ConnectionTestRequest,
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ConnectionTestResponse:
    """Check credentials against the tracker's current-user endpoint."""
    base_url = validate_tracker_url(request.url, settings.JIRA_HOST_SUFFIX)
    async with JiraClient(
        base_url,
        request.email,
        request.api_token,
        timeout=settings.JIRA_REQUEST_TIMEOUT_SECONDS,
        transport=transport,
    ) as client:
        me = await client.get_myself()

    logger.info("jira_connection_ok", account=me.get("accountId"))
    return ConnectionTestResponse(
        success=True,
        display_name=me.get("displayName"),
        email_address=me.get("emailAddress"),
        account_id=me.get("accountId"),
    )


