"""
Pytest configuration and fixtures.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from bugticket.core.config import Settings
from bugticket.main import create_app
from bugticket.models.api import GenerateResponse, TextBlock
from bugticket.models.domain import TicketConfig

SEP = "━" * 50

SAMPLE_TICKET = f"""**Title:** Login button unresponsive on mobile

{SEP}

**Description:**
The login button does nothing when tapped on mobile browsers.

{SEP}

**Steps to Reproduce:**
1. Open the login page on a phone
2. Enter valid credentials
3. Tap "Log in"

{SEP}

**Expected Behaviour:**
User is signed in and redirected to the dashboard.

{SEP}

**Actual Behaviour:**
Nothing happens and the form cannot be submitted.

{SEP}

**Impact:**
High - mobile users cannot sign in.

{SEP}

**Priority:** P2

{SEP}

**Environment:**
Instance: https://staging.example.com/
Branch: main

{SEP}

**Attachment:** login.png, screen.mp4
"""


@pytest.fixture
def ticket_text() -> str:
    return SAMPLE_TICKET


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        OPENAI_API_KEY="sk-test",
        TICKET_CONFIG_PATH="missing-ticket-config.yaml",
        GENERATE_RATE_LIMIT=3,
        JIRA_RATE_LIMIT=2,
    )


@pytest.fixture
def fake_generator() -> MagicMock:
    generator = MagicMock()
    generator.generate = AsyncMock(
        return_value=GenerateResponse(
            id="chatcmpl-1",
            model="gpt-4o",
            content=[TextBlock(text=SAMPLE_TICKET)],
            stop_reason="stop",
        )
    )
    return generator


@pytest.fixture
def app(test_settings, fake_generator):
    application = create_app(test_settings, TicketConfig())
    application.state.generator = fake_generator
    return application


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
