"""
Tracker URL allow-list: HTTPS only, hosted-provider domain only.

Keeps the proxy from being pointed at arbitrary internal or external hosts.
"""

from urllib.parse import urlsplit

from bugticket.core.exceptions import InvalidTrackerUrlError

DEFAULT_HOST_SUFFIX = ".atlassian.net"


def validate_tracker_url(url: str, host_suffix: str = DEFAULT_HOST_SUFFIX) -> str:
    """Check a tracker base URL and return it without a trailing slash.

    Raises:
        InvalidTrackerUrlError: wrong scheme, wrong host or unparseable URL.
    """
    try:
        parts = urlsplit(url.strip())
        hostname = parts.hostname
        # Accessing .port validates the port component
        parts.port
    except (AttributeError, ValueError):
        raise InvalidTrackerUrlError("Invalid Jira URL format", {"url": url})

    if not parts.scheme or not hostname:
        raise InvalidTrackerUrlError("Invalid Jira URL format", {"url": url})

    if parts.scheme.lower() != "https":
        raise InvalidTrackerUrlError("Jira URL must use HTTPS", {"url": url})

    # Match on a label boundary whether or not the suffix has a leading dot
    suffix = "." + host_suffix.lower().lstrip(".")
    if not hostname.lower().endswith(suffix):
        raise InvalidTrackerUrlError(
            "Only Atlassian-hosted Jira instances are allowed", {"url": url}
        )

    return url.strip().rstrip("/")

