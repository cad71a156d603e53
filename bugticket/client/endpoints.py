"""
Platform endpoint resolver — picks the backend path for a proxy function
from an explicit override or the hosting provider of the current site.
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from structlog import get_logger

logger = get_logger()

VERCEL_PREFIX = "/api/"
NETLIFY_PREFIX = "/.netlify/functions/"
LOCAL_PREFIX = "http://localhost:3001/api/"

_PLATFORM_SUFFIXES: list[tuple[tuple[str, ...], str]] = [
    (("vercel.app", "vercel.com"), VERCEL_PREFIX),
    (("netlify.app", "netlify.com"), NETLIFY_PREFIX),
]


class EndpointSignals(BaseSettings):
    """Environment signals that decide where proxy calls go.

    Read from ``BUGTICKET_API_URL``, ``BUGTICKET_PLATFORM``,
    ``BUGTICKET_HOSTNAME`` and ``BUGTICKET_PRODUCTION``.
    """

    model_config = SettingsConfigDict(env_prefix="BUGTICKET_", extra="ignore")

    api_url: str = ""
    platform: Literal["vercel", "netlify", ""] = ""
    hostname: str = ""
    production: bool = True


def resolve_endpoint(function_name: str, signals: EndpointSignals) -> str:
    """Return the path or URL for ``function_name``.

    Order: explicit API URL > explicit platform > local development >
    hostname suffix > Vercel-style fallback.
    """
    if signals.api_url:
        base = signals.api_url
        if "generate-ticket" in base:
            return base.replace("generate-ticket", function_name)
        return f"{base.rstrip('/')}/{function_name}"

    if signals.platform == "vercel":
        return f"{VERCEL_PREFIX}{function_name}"
    if signals.platform == "netlify":
        return f"{NETLIFY_PREFIX}{function_name}"

    if not signals.production:
        return f"{LOCAL_PREFIX}{function_name}"

    hostname = signals.hostname.strip().lower().rstrip(".")
    for suffixes, prefix in _PLATFORM_SUFFIXES:
        if any(hostname == s or hostname.endswith(f".{s}") for s in suffixes):
            return f"{prefix}{function_name}"

    logger.warning("platform_not_detected", hostname=hostname, fallback=VERCEL_PREFIX)
    return f"{VERCEL_PREFIX}{function_name}"
