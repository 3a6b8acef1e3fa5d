"""Webhook destination policy.

Only HTTPS URLs on Microsoft webhook domains are accepted, both for the
configured endpoint and for every redirect hop during delivery.
"""

from __future__ import annotations

from urllib.parse import urlsplit

ALLOWED_HOST_SUFFIXES = (
    ".webhook.office.com",
    ".logic.azure.com",
)


class InvalidWebhookURL(ValueError):
    """Raised when a webhook URL is not a safe delivery destination."""


def _strip_port(host: str) -> str:
    # Bracketed IPv6 literals contain colons that are not port separators.
    if "[" in host:
        return host
    hostname, sep, _ = host.rpartition(":")
    return hostname if sep else host


def is_allowed_host(host: str) -> bool:
    """Return True if host (optionally with :port) ends with an allowed suffix."""

    hostname = _strip_port(host).lower()
    return any(hostname.endswith(suffix) for suffix in ALLOWED_HOST_SUFFIXES)


def validate_webhook_url(url: str) -> None:
    """Raise InvalidWebhookURL with the reason if url is not acceptable."""

    if not url:
        raise InvalidWebhookURL("webhook URL is required")

    try:
        parsed = urlsplit(url)
    except ValueError as exc:
        raise InvalidWebhookURL(f"invalid URL: {exc}") from exc
    if not parsed.scheme:
        raise InvalidWebhookURL("invalid URL: missing scheme")

    if parsed.scheme != "https":
        raise InvalidWebhookURL("webhook URL must use HTTPS")

    host = parsed.netloc.rpartition("@")[2]
    if not is_allowed_host(host):
        raise InvalidWebhookURL("webhook URL must be on *.webhook.office.com or *.logic.azure.com domain")


def is_allowed_url(url: str) -> bool:
    try:
        validate_webhook_url(url)
    except InvalidWebhookURL:
        return False
    return True


def describe_host(url: str) -> str:
    """Return only the host of url, for log lines that must not leak tokens."""

    try:
        return urlsplit(url).hostname or "<no host>"
    except ValueError:
        return "<invalid>"
