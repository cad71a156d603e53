"""Tests for settings and ticket config loading."""

from pathlib import Path

from bugticket.core.config import Settings, load_ticket_config
from bugticket.main import create_app
from bugticket.models.custom_fields import FieldShape
from bugticket.models.domain import TicketConfig

EXAMPLE_CONFIG = Path(__file__).resolve().parent.parent / "ticket_config.example.yaml"


class TestSettings:
    def test_defaults(self):
        settings = Settings(OPENAI_API_KEY="sk-test")
        assert settings.JIRA_HOST_SUFFIX == ".atlassian.net"
        assert settings.GENERATE_RATE_LIMIT == 15
        assert settings.JIRA_RATE_LIMIT == 10
        assert settings.JIRA_SUBMIT_TIMEOUT_SECONDS == 120.0

    def test_cors_origins_list(self):
        settings = Settings(CORS_ORIGINS="https://a.example.com, https://b.example.com,")
        assert settings.cors_origins_list == ["https://a.example.com", "https://b.example.com"]

    def test_api_key_whitespace_stripped(self):
        assert Settings(OPENAI_API_KEY="  sk-abc\n").llm_api_key == "sk-abc"


class TestLoadTicketConfig:
    def test_missing_file(self, tmp_path):
        assert load_ticket_config(str(tmp_path / "absent.yaml")) == {}

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_ticket_config(str(path)) == {}

    def test_example_config(self):
        config = TicketConfig.model_validate(load_ticket_config(str(EXAMPLE_CONFIG)))

        assert [s.id for s in config.enabled_sections][-1] == "attachment"
        assert "workaround" not in [s.id for s in config.enabled_sections]
        assert config.environment.branch == "main"
        assert config.environment.extra == {"Browser": "Chrome (latest)"}
        team = next(spec for spec in config.custom_fields if spec.key == "engineeringTeam")
        assert team.shape is FieldShape.VALUE
        assert team.resolve_option_id

    def test_app_reads_config_path(self, tmp_path):
        path = tmp_path / "ticket.yaml"
        path.write_text("environment:\n  instance: https://qa.example.com\n")

        app = create_app(Settings(OPENAI_API_KEY="sk-test", TICKET_CONFIG_PATH=str(path)))

        assert app.state.ticket_config.environment.instance == "https://qa.example.com"
        assert len(app.state.ticket_config.custom_fields) == 5
