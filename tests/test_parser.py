"""Tests for the ticket field parser."""

import pytest

from bugticket.models.ticket import Priority
from bugticket.tickets.parser import (
    SECTION_SEPARATOR,
    extract_attachments,
    extract_priority,
    extract_section,
    parse_ticket,
)


class TestParseTicket:
    def test_recovers_every_section(self, ticket_text):
        draft = parse_ticket(ticket_text)

        assert draft.title == "Login button unresponsive on mobile"
        assert draft.description == "The login button does nothing when tapped on mobile browsers."
        assert draft.steps == (
            "1. Open the login page on a phone\n"
            "2. Enter valid credentials\n"
            '3. Tap "Log in"'
        )
        assert draft.expected == "User is signed in and redirected to the dashboard."
        assert draft.actual == "Nothing happens and the form cannot be submitted."
        assert draft.impact == "High - mobile users cannot sign in."
        assert draft.environment == "Instance: https://staging.example.com/\nBranch: main"
        assert draft.priority is Priority.P2
        assert draft.priority_id == "2"
        assert draft.attachments == ["login.png", "screen.mp4"]

    def test_empty_text_degrades_to_defaults(self):
        draft = parse_ticket("")
        assert draft.title == "Bug Report"
        assert draft.description == ""
        assert draft.steps == ""
        assert draft.priority is Priority.P3
        assert draft.attachments == []

    def test_missing_sections_are_empty(self):
        draft = parse_ticket("**Title:** Only a title\n")
        assert draft.title == "Only a title"
        assert draft.expected == ""
        assert draft.environment == ""

    def test_sections_without_separators(self):
        text = (
            "**Description:**\nPage is blank\n"
            "**Steps to Reproduce:**\n1. Open page\n"
            "**Priority:** P4"
        )
        draft = parse_ticket(text)
        assert draft.description == "Page is blank"
        assert draft.steps == "1. Open page"
        assert draft.priority is Priority.P4

    def test_body_on_label_line(self):
        text = f"**Impact:** Low - cosmetic only\n{SECTION_SEPARATOR}\n"
        assert parse_ticket(text).impact == "Low - cosmetic only"

    def test_bold_sub_labels_stay_in_environment(self):
        text = (
            "**Environment:**\n"
            "**Instance:** https://staging.example.com/\n"
            "**Branch:** main\n\n"
            f"{SECTION_SEPARATOR}\n\n"
            "**Attachment:** No attachments provided"
        )
        assert parse_ticket(text).environment == (
            "**Instance:** https://staging.example.com/\n**Branch:** main"
        )

    def test_bold_note_stays_in_steps(self):
        text = (
            "**Steps to Reproduce:**\n1. Open page\n2. Tap login\n"
            "**Note:** only on iOS\n\n"
            f"{SECTION_SEPARATOR}\n\n"
            "**Expected Behaviour:**\nSigned in"
        )
        draft = parse_ticket(text)
        assert draft.steps == "1. Open page\n2. Tap login\n**Note:** only on iOS"
        assert draft.expected == "Signed in"

    def test_sub_labels_without_separators_stop_at_next_section(self):
        text = (
            "**Environment:**\n**Browser:** Safari\n"
            "**Attachments:** a.png"
        )
        draft = parse_ticket(text)
        assert draft.environment == "**Browser:** Safari"
        assert draft.attachments == ["a.png"]


class TestExtractSection:
    def test_returns_body_until_separator(self):
        text = f"**Impact:**\nCritical\n{SECTION_SEPARATOR}\n**Priority:** P1"
        assert extract_section(text, "Impact") == "Critical"

    def test_missing_label(self):
        assert extract_section("nothing here", "Impact") == ""


class TestExtractPriority:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("**Priority:** P1", Priority.P1),
            ("**Priority:** p4 - low", Priority.P4),
            ("Priority: P2", Priority.P2),
            ("priority: p1", Priority.P1),
            ("Priority P4 because it is cosmetic", Priority.P4),
            ("**Priority**: P1", Priority.P1),
            ("**Priority:** High (P4)", Priority.P4),
        ],
    )
    def test_fallback_patterns(self, text, expected):
        assert extract_priority(text) is expected

    @pytest.mark.parametrize(
        "text",
        ["", "**Priority:** High", "No priority given", "Priority: P9", "P1 but no label"],
    )
    def test_defaults_to_medium(self, text):
        assert extract_priority(text) is Priority.P3


class TestExtractAttachments:
    def test_no_attachments_placeholder(self):
        assert extract_attachments("**Attachment:** No attachments provided") == []

    def test_plural_label(self):
        assert extract_attachments("**Attachments:** a.png,b.png") == ["a.png", "b.png"]

    def test_missing_label(self):
        assert extract_attachments("**Title:** x") == []
