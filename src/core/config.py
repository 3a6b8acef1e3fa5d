"""Per-invocation notifier configuration.

The host hands us a loosely-typed map. We resolve it here into a frozen
dataclass so the card builder and delivery code never see raw values.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

LOGGER = logging.getLogger(__name__)

# Read a local .env once per process; real environment values take precedence.
load_dotenv()

WEBHOOK_URL_ENV = "TEAMS_WEBHOOK_URL"

DEFAULT_TITLE_TEMPLATE = "Release {{version}}"
DEFAULT_THEME_COLOR = "0076D7"  # Teams blue


@dataclass(frozen=True)
class NotifierConfig:
    """Resolved notifier settings for one invocation."""

    webhook_url: str = ""
    title_template: str = DEFAULT_TITLE_TEMPLATE
    include_changelog: bool = True
    theme_color: str = DEFAULT_THEME_COLOR
    mention_users: tuple[str, ...] = ()
    notify_on_success: bool = True
    notify_on_error: bool = True


class ConfigParser:
    """Typed accessors over a raw config map with env and default fallback."""

    def __init__(self, raw: Optional[Mapping[str, Any]], env: Optional[Mapping[str, str]] = None) -> None:
        self._raw = raw or {}
        self._env = env

    def _getenv(self, name: str) -> Optional[str]:
        if self._env is not None:
            return self._env.get(name)
        return os.getenv(name)

    def get_string(self, key: str, env_var: str = "", default: str = "") -> str:
        value = self._raw.get(key)
        if isinstance(value, str) and value:
            return value
        if env_var:
            env_value = self._getenv(env_var)
            if env_value:
                return env_value
        return default

    def get_bool(self, key: str, default: bool) -> bool:
        value = self._raw.get(key)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered == "true":
                return True
            if lowered == "false":
                return False
        if value is not None:
            LOGGER.debug("Ignoring non-boolean value for %s", key)
        return default

    def get_string_list(self, key: str) -> tuple[str, ...]:
        value = self._raw.get(key)
        if not isinstance(value, (list, tuple)):
            return ()
        return tuple(item for item in value if isinstance(item, str) and item)


def resolve_config(
    raw: Optional[Mapping[str, Any]],
    env: Optional[Mapping[str, str]] = None,
) -> NotifierConfig:
    """Resolve a raw config map into a NotifierConfig.

    Order per field: explicit value, then environment (webhook only), then
    the built-in default. A missing map resolves entirely to defaults.
    ``env`` replaces the process environment when given.
    """

    parser = ConfigParser(raw, env)
    return NotifierConfig(
        webhook_url=parser.get_string("webhook_url", WEBHOOK_URL_ENV, ""),
        title_template=parser.get_string("title_template", "", DEFAULT_TITLE_TEMPLATE),
        include_changelog=parser.get_bool("include_changelog", True),
        theme_color=parser.get_string("theme_color", "", DEFAULT_THEME_COLOR).removeprefix("#"),
        mention_users=parser.get_string_list("mention_users"),
        notify_on_success=parser.get_bool("notify_on_success", True),
        notify_on_error=parser.get_bool("notify_on_error", True),
    )
