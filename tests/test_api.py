"""Tests for the HTTP API: routing, validation, rate limits and error bodies."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from bugticket.core.config import Settings
from bugticket.core.exceptions import (
    AttachmentTooLargeError,
    ConfigurationError,
    LLMAPIError,
    TrackerAuthenticationError,
)
from bugticket.main import check_startup, create_app
from bugticket.models.api import AttachmentReport, PushResponse
from bugticket.models.domain import TicketConfig

GENERATE_BODY = {"messages": [{"role": "user", "content": [{"type": "text", "text": "Login broken"}]}]}

CREDENTIALS = {
    "url": "https://acme.atlassian.net",
    "email": "qa@acme.com",
    "apiToken": "secret",
}

PUSH_BODY = {
    **CREDENTIALS,
    "projectKey": "BUG",
    "fields": {"title": "Login broken", "priority": "P2"},
    "customFields": {"instance": "Staging"},
}


class TestHealth:
    @pytest.mark.parametrize("path", ["/", "/api/health"])
    def test_health(self, client, path):
        response = client.get(path)
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestGenerateTicket:
    def test_returns_generated_text(self, client, fake_generator, ticket_text):
        response = client.post("/api/generate-ticket", json=GENERATE_BODY)

        assert response.status_code == 200
        data = response.json()
        assert data["content"][0]["text"] == ticket_text
        assert data["role"] == "assistant"
        messages = fake_generator.generate.call_args.args[0]
        assert messages[0].content[0].text == "Login broken"

    def test_missing_messages(self, client):
        response = client.post("/api/generate-ticket", json={})

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields: messages"

    def test_malformed_block(self, client):
        body = {"messages": [{"role": "user", "content": [{"type": "text"}]}]}
        response = client.post("/api/generate-ticket", json=body)

        assert response.status_code == 400
        assert "details" in response.json()

    def test_upstream_status_is_passed_through(self, client, fake_generator):
        fake_generator.generate.side_effect = LLMAPIError("Overloaded", status_code=529)

        response = client.post("/api/generate-ticket", json=GENERATE_BODY)

        assert response.status_code == 529
        assert response.json() == {"error": "Overloaded"}

    def test_rate_limit(self, client):
        for _ in range(3):
            assert client.post("/api/generate-ticket", json=GENERATE_BODY).status_code == 200

        response = client.post("/api/generate-ticket", json=GENERATE_BODY)

        assert response.status_code == 429
        assert response.json()["error"] == "Too many requests. Please try again in a minute."
        assert 1 <= int(response.headers["Retry-After"]) <= 60

    def test_rate_limit_is_per_caller(self, client):
        for _ in range(3):
            client.post("/api/generate-ticket", json=GENERATE_BODY, headers={"X-Forwarded-For": "1.1.1.1"})

        blocked = client.post("/api/generate-ticket", json=GENERATE_BODY, headers={"X-Forwarded-For": "1.1.1.1, 10.0.0.1"})
        other = client.post("/api/generate-ticket", json=GENERATE_BODY, headers={"X-Forwarded-For": "2.2.2.2"})

        assert blocked.status_code == 429
        assert other.status_code == 200

    def test_limiters_are_per_endpoint(self, client):
        for _ in range(4):
            client.post("/api/generate-ticket", json=GENERATE_BODY)

        with patch("bugticket.api.jira.push_ticket", new=AsyncMock(side_effect=TrackerAuthenticationError())):
            response = client.post("/api/push-to-jira", json=PUSH_BODY)

        assert response.status_code == 401


class TestJiraRoutes:
    def test_connection_rejects_foreign_host(self, client):
        response = client.post("/api/test-jira", json={**CREDENTIALS, "url": "https://evil.com"})

        assert response.status_code == 400
        assert response.json()["error"] == "Only Atlassian-hosted Jira instances are allowed"

    def test_push_missing_fields(self, client):
        response = client.post("/api/push-to-jira", json={"url": CREDENTIALS["url"]})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error.startswith("Missing required fields: ")
        for field in ("apiToken", "email", "fields", "projectKey"):
            assert field in error

    def test_push_success(self, client):
        result = PushResponse(
            key="BUG-12",
            id="10012",
            self_url="https://acme.atlassian.net/rest/api/2/issue/10012",
            url="https://acme.atlassian.net/browse/BUG-12",
            attachments=AttachmentReport(uploaded=["a.png"]),
        )
        with patch("bugticket.api.jira.push_ticket", new=AsyncMock(return_value=result)) as push:
            response = client.post("/api/push-to-jira", json=PUSH_BODY)

        assert response.status_code == 200
        data = response.json()
        assert data["key"] == "BUG-12"
        assert data["self"].endswith("/10012")
        assert data["attachments"]["uploaded"] == ["a.png"]
        request = push.call_args.args[0]
        assert request.project_key == "BUG"
        assert request.custom_fields == {"instance": "Staging"}

    def test_push_attachment_too_large(self, client):
        error = AttachmentTooLargeError({"issueKey": "BUG-3", "filename": "big.mov"})
        with patch("bugticket.api.jira.push_ticket", new=AsyncMock(side_effect=error)):
            response = client.post("/api/push-to-jira", json=PUSH_BODY)

        assert response.status_code == 413
        data = response.json()
        assert "too large" in data["error"]
        assert data["details"]["issueKey"] == "BUG-3"

    def test_push_rate_limit(self, client):
        with patch("bugticket.api.jira.push_ticket", new=AsyncMock(side_effect=TrackerAuthenticationError())):
            codes = [client.post("/api/push-to-jira", json=PUSH_BODY).status_code for _ in range(3)]

        assert codes == [401, 401, 429]


class TestStartup:
    def test_requires_api_key(self):
        with pytest.raises(ConfigurationError):
            check_startup(Settings(OPENAI_API_KEY=" \n"))

    def test_accepts_api_key(self):
        check_startup(Settings(OPENAI_API_KEY="sk-live"))

    def test_lifespan_refuses_to_start(self):
        app = create_app(Settings(OPENAI_API_KEY=""), TicketConfig())
        with pytest.raises(ConfigurationError):
            with TestClient(app):
                pass
