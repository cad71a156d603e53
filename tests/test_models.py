"""Tests for Pydantic model validation."""

import base64

import pytest
from pydantic import ValidationError

from bugticket.models.api import GenerateRequest, ImageBlock, PushRequest, TextBlock
from bugticket.models.ticket import PRIORITY_TRACKER_IDS, Attachment, Priority, TicketDraft


class TestPriority:
    def test_p2_maps_to_tracker_id_2(self):
        assert Priority.P2.tracker_id == "2"

    def test_all_codes_round_trip(self):
        for priority in Priority:
            assert Priority.from_tracker_id(priority.tracker_id) is priority
        assert sorted(PRIORITY_TRACKER_IDS.values()) == ["1", "2", "3", "4"]

    def test_unknown_tracker_id(self):
        with pytest.raises(ValueError):
            Priority.from_tracker_id("5")


class TestTicketDraft:
    def test_defaults(self):
        draft = TicketDraft()
        assert draft.title == "Bug Report"
        assert draft.priority is Priority.P3
        assert draft.priority_id == "3"

    def test_accepts_browser_priority_pair(self):
        draft = TicketDraft.model_validate(
            {"title": "Crash", "priorityId": "1", "priorityName": "P1"}
        )
        assert draft.priority is Priority.P1

    def test_accepts_priority_id_alone(self):
        assert TicketDraft.model_validate({"priorityId": "4"}).priority is Priority.P4

    def test_lowercase_code(self):
        assert TicketDraft(priority="p2").priority is Priority.P2

    def test_rejects_unknown_code(self):
        with pytest.raises(ValidationError):
            TicketDraft(priority="P7")

    def test_blank_title_uses_default(self):
        assert TicketDraft.model_validate({"title": ""}).title == "Bug Report"

    def test_dump_by_alias_includes_priority_pair(self):
        data = TicketDraft(priority=Priority.P2).model_dump(by_alias=True, mode="json")
        assert data["priorityId"] == "2"
        assert data["priorityName"] == "P2"
        assert TicketDraft.model_validate(data).priority is Priority.P2


class TestAttachment:
    def test_decodes_data_url(self):
        encoded = base64.b64encode(b"hello").decode()
        attachment = Attachment(
            filename="a.txt",
            contentType="text/plain",
            data=f"data:text/plain;base64,{encoded}",
        )
        assert attachment.content() == b"hello"
        assert attachment.content_type == "text/plain"

    def test_decodes_bare_base64(self):
        attachment = Attachment(filename="a.bin", data=base64.b64encode(b"\x00\x01").decode())
        assert attachment.content() == b"\x00\x01"

    def test_invalid_base64(self):
        attachment = Attachment(filename="bad.png", data="%%%not-base64%%%")
        with pytest.raises(ValueError, match="bad.png"):
            attachment.content()

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("../../etc/passwd", "._._etc_passwd"),
            ("my screen shot (1).png", "my_screen_shot__1_.png"),
            ("report..final...pdf", "report.final.pdf"),
            ("", "file"),
        ],
    )
    def test_filename_is_sanitized(self, raw, expected):
        assert Attachment(filename=raw, data="AAAA").filename == expected

    def test_filename_is_capped(self):
        attachment = Attachment(filename="a" * 300 + ".png", data="AAAA")
        assert len(attachment.filename) == 255


class TestPushRequest:
    def _body(self, **overrides):
        body = {
            "url": "https://acme.atlassian.net",
            "email": "qa@acme.com",
            "apiToken": "secret",
            "projectKey": "BUG",
            "fields": {"title": "Broken"},
        }
        body.update(overrides)
        return body

    def test_valid(self):
        request = PushRequest.model_validate(self._body())
        assert request.api_token == "secret"
        assert request.project_key == "BUG"
        assert request.custom_fields == {}
        assert request.attachments == []

    def test_accepts_jira_url_key(self):
        body = self._body()
        body["jiraUrl"] = body.pop("url")
        assert PushRequest.model_validate(body).url == "https://acme.atlassian.net"

    def test_missing_project_key(self):
        body = self._body()
        del body["projectKey"]
        with pytest.raises(ValidationError):
            PushRequest.model_validate(body)

    def test_token_not_in_repr(self):
        assert "secret" not in repr(PushRequest.model_validate(self._body()))


class TestGenerateRequest:
    def test_mixed_content_blocks(self):
        request = GenerateRequest.model_validate({
            "messages": [{
                "role": "user",
                "content": [
                    {"type": "image", "source": {"type": "base64", "media_type": "image/png", "data": "AAAA"}},
                    {"type": "text", "text": "Describe the bug"},
                ],
            }]
        })
        blocks = request.messages[0].content
        assert isinstance(blocks[0], ImageBlock)
        assert isinstance(blocks[1], TextBlock)

    def test_plain_string_content(self):
        request = GenerateRequest.model_validate(
            {"messages": [{"role": "user", "content": "hi"}]}
        )
        assert request.messages[0].content == "hi"

    def test_empty_messages_rejected(self):
        with pytest.raises(ValidationError):
            GenerateRequest.model_validate({"messages": []})

    def test_unknown_block_type_rejected(self):
        with pytest.raises(ValidationError):
            GenerateRequest.model_validate(
                {"messages": [{"role": "user", "content": [{"type": "audio"}]}]}
            )
