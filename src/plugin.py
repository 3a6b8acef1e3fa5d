"""Teams release notifier: the two operations the host calls.

``validate`` checks a raw config map; ``execute`` routes a pipeline hook to
the success or error card and delivers it. Neither raises: every failure is
returned as data for the host to act on.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Mapping, Optional

from adapters.teams_cards import TeamsMessage
from adapters.teams_formatting import build_error_message, build_success_message
from adapters.teams_webhook import DeliveryError
from adapters.url_policy import InvalidWebhookURL, validate_webhook_url
from core.config import (
    DEFAULT_THEME_COLOR,
    DEFAULT_TITLE_TEMPLATE,
    WEBHOOK_URL_ENV,
    ConfigParser,
    NotifierConfig,
    resolve_config,
)
from core.hooks import HANDLED_HOOKS, HookAction, classify_hook, parse_hook
from core.models import ExecuteResult, ReleaseEvent, ValidationResult
from core.ports import MessageDeliveryPort
from core.validators import CODE_FORMAT, CODE_REQUIRED, ValidationBuilder, theme_color_error

LOGGER = logging.getLogger(__name__)

PLUGIN_NAME = "teams"
PLUGIN_VERSION = "2.0.0"
PLUGIN_DESCRIPTION = "Send release notifications to Microsoft Teams"

CONFIG_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "webhook_url": {
            "type": "string",
            "description": f"Teams incoming webhook URL (or use {WEBHOOK_URL_ENV} env)",
        },
        "title_template": {
            "type": "string",
            "description": "Template for card title",
            "default": DEFAULT_TITLE_TEMPLATE,
        },
        "include_changelog": {
            "type": "boolean",
            "description": "Include changelog in message",
            "default": True,
        },
        "theme_color": {
            "type": "string",
            "description": "Accent color for the card (hex without #)",
            "default": DEFAULT_THEME_COLOR,
        },
        "mention_users": {
            "type": "array",
            "items": {"type": "string"},
            "description": "User emails to @mention",
        },
        "notify_on_success": {"type": "boolean", "description": "Notify on success", "default": True},
        "notify_on_error": {"type": "boolean", "description": "Notify on error", "default": True},
    },
    "required": ["webhook_url"],
}


def validate_config(
    raw_config: Optional[Mapping[str, Any]],
    env: Optional[Mapping[str, str]] = None,
) -> ValidationResult:
    """Check a raw config map, reporting problems with field and code."""

    builder = ValidationBuilder()
    parser = ConfigParser(raw_config, env)

    webhook_url = parser.get_string("webhook_url", WEBHOOK_URL_ENV, "")
    if not webhook_url:
        builder.add_error(
            "webhook_url",
            f"Teams webhook URL is required (set {WEBHOOK_URL_ENV} env var or configure webhook_url)",
            CODE_REQUIRED,
        )
    else:
        try:
            validate_webhook_url(webhook_url)
        except InvalidWebhookURL as exc:
            builder.add_error("webhook_url", str(exc), CODE_FORMAT)

    theme_color = parser.get_string("theme_color", "", "")
    if theme_color:
        problem = theme_color_error(theme_color)
        if problem:
            builder.add_error("theme_color", problem, CODE_FORMAT)

    return builder.build()


class TeamsNotifierPlugin:
    """Routes pipeline hooks to Teams notifications.

    The delivery client is injected so one pooled HTTP client can be shared
    across invocations, and so tests can substitute a fake.
    """

    def __init__(self, delivery: MessageDeliveryPort, env: Optional[Mapping[str, str]] = None) -> None:
        self._delivery = delivery
        self._env = env

    def info(self) -> dict[str, Any]:
        return {
            "name": PLUGIN_NAME,
            "version": PLUGIN_VERSION,
            "description": PLUGIN_DESCRIPTION,
            "hooks": [hook.value for hook in HANDLED_HOOKS],
            "config_schema": json.dumps(CONFIG_SCHEMA),
        }

    def validate(self, raw_config: Optional[Mapping[str, Any]]) -> ValidationResult:
        return validate_config(raw_config, self._env)

    async def execute(
        self,
        hook_name: str,
        raw_config: Optional[Mapping[str, Any]],
        event: ReleaseEvent,
        dry_run: bool = False,
        cancel: Optional[asyncio.Event] = None,
    ) -> ExecuteResult:
        """Run the notifier for one hook."""

        try:
            return await self._execute(hook_name, raw_config, event, dry_run, cancel)
        except Exception as exc:
            LOGGER.exception("Unexpected error while handling hook %s", hook_name)
            return ExecuteResult.failed(f"unexpected error: {exc}")

    async def _execute(
        self,
        hook_name: str,
        raw_config: Optional[Mapping[str, Any]],
        event: ReleaseEvent,
        dry_run: bool,
        cancel: Optional[asyncio.Event],
    ) -> ExecuteResult:
        config = resolve_config(raw_config, self._env)
        hook = parse_hook(hook_name)
        action = classify_hook(hook) if hook is not None else HookAction.IGNORE

        if action is HookAction.NOTIFY_SUCCESS:
            if not config.notify_on_success:
                return ExecuteResult.ok("Success notification disabled")
            message = build_success_message(config, event)
            if dry_run:
                return ExecuteResult.ok(
                    "Would send Teams success notification",
                    outputs={"version": event.version},
                )
            return await self._deliver(config, message, cancel, "success")

        if action is HookAction.NOTIFY_ERROR:
            if not config.notify_on_error:
                return ExecuteResult.ok("Error notification disabled")
            message = build_error_message(config, event)
            if dry_run:
                return ExecuteResult.ok("Would send Teams error notification")
            return await self._deliver(config, message, cancel, "error")

        if action is HookAction.IGNORE:
            return ExecuteResult.ok(f"Hook {hook_name} not handled")

        raise AssertionError(f"Unhandled hook action: {action}")

    async def _deliver(
        self,
        config: NotifierConfig,
        message: TeamsMessage,
        cancel: Optional[asyncio.Event],
        kind: str,
    ) -> ExecuteResult:
        try:
            validate_webhook_url(config.webhook_url)
            await self._delivery.send(config.webhook_url, message, cancel)
        except (InvalidWebhookURL, DeliveryError) as exc:
            LOGGER.warning("Teams %s notification failed: %s", kind, exc)
            return ExecuteResult.failed(f"failed to send Teams message: {exc}")
        LOGGER.info("Sent Teams %s notification", kind)
        return ExecuteResult.ok(f"Sent Teams {kind} notification")


def build_preview(
    hook_name: str,
    raw_config: Optional[Mapping[str, Any]],
    event: ReleaseEvent,
) -> Optional[TeamsMessage]:
    """Return the card a hook would send, or None if the hook sends nothing."""

    config = resolve_config(raw_config)
    hook = parse_hook(hook_name)
    action = classify_hook(hook) if hook is not None else HookAction.IGNORE
    if action is HookAction.NOTIFY_SUCCESS:
        return build_success_message(config, event)
    if action is HookAction.NOTIFY_ERROR:
        return build_error_message(config, event)
    return None
