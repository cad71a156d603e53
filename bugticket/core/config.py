"""
Application configuration — all settings loaded from environment variables.
"""

from pathlib import Path

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from .env / environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        env_parse_none_str="",
        extra="ignore",
    )

    # ── LLM ─────────────────────────────────────────────
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    LLM_MODEL: str = "gpt-4o"
    LLM_MAX_TOKENS: int = 2000
    LLM_TIMEOUT_SECONDS: float = 90.0

    # ── Jira ────────────────────────────────────────────
    JIRA_HOST_SUFFIX: str = Field(
        default=".atlassian.net",
        description="Only tracker hosts ending with this suffix are reachable",
    )
    JIRA_REQUEST_TIMEOUT_SECONDS: float = 30.0
    JIRA_SUBMIT_TIMEOUT_SECONDS: float = 120.0

    # ── Rate limiting ───────────────────────────────────
    RATE_LIMIT_WINDOW_SECONDS: float = 60.0
    GENERATE_RATE_LIMIT: int = 15
    JIRA_RATE_LIMIT: int = 10

    # ── App ─────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False
    TICKET_CONFIG_PATH: str = "ticket_config.yaml"
    CORS_ORIGINS: str = "http://localhost:3000"

    # ── Derived helpers ─────────────────────────────────
    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def llm_api_key(self) -> str:
        # Keys pasted into dashboards often carry stray whitespace/newlines
        return "".join(self.OPENAI_API_KEY.split())


settings = Settings()


def load_ticket_config(path: str | None = None) -> dict:
    """Load the YAML ticket config file."""
    config_path = Path(path or settings.TICKET_CONFIG_PATH)
    if not config_path.exists():
        return {}
    with config_path.open() as f:
        return yaml.safe_load(f) or {}
