from __future__ import annotations

import asyncio
import json
from typing import Optional

import httpx
import pytest

from adapters.teams_webhook import DeliveryError, TeamsWebhookClient
from core.hooks import HANDLED_HOOKS, HOOK_ACTIONS, Hook, HookAction, classify_hook
from core.models import CategorizedChanges, ConventionalCommit, ExecuteResult, ReleaseEvent
from plugin import CONFIG_SCHEMA, TeamsNotifierPlugin, build_preview, validate_config

WEBHOOK = "https://example.webhook.office.com/webhookb2/123/IncomingWebhook/456/789"


class FakeDelivery:
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.sent: list[tuple[str, dict]] = []
        self._error = error

    async def send(self, webhook_url: str, message, cancel=None) -> None:
        if self._error is not None:
            raise self._error
        self.sent.append((webhook_url, message.to_dict()))


def _event() -> ReleaseEvent:
    return ReleaseEvent(
        version="1.2.3",
        tag_name="v1.2.3",
        release_type="minor",
        branch="main",
        repository_url="https://github.com/acme/widgets",
        release_notes="<b>notes</b>",
        changes=CategorizedChanges(
            features=(ConventionalCommit(description="f"),),
            fixes=(ConventionalCommit(description="g"),),
        ),
    )


def _execute(plugin: TeamsNotifierPlugin, hook: str, config: Optional[dict], dry_run: bool = False) -> ExecuteResult:
    return asyncio.run(plugin.execute(hook, config, _event(), dry_run=dry_run))


def test_every_hook_has_an_action() -> None:
    assert set(HOOK_ACTIONS) == set(Hook)
    assert classify_hook(Hook.POST_PUBLISH) is HookAction.NOTIFY_SUCCESS
    assert classify_hook(Hook.ON_SUCCESS) is HookAction.NOTIFY_SUCCESS
    assert classify_hook(Hook.ON_ERROR) is HookAction.NOTIFY_ERROR
    assert classify_hook(Hook.PRE_PUBLISH) is HookAction.IGNORE


def test_info_lists_handled_hooks_and_schema() -> None:
    info = TeamsNotifierPlugin(FakeDelivery(), env={}).info()
    assert info["name"] == "teams"
    assert info["hooks"] == ["post-publish", "on-success", "on-error"]
    assert [hook.value for hook in HANDLED_HOOKS] == info["hooks"]
    assert json.loads(info["config_schema"]) == CONFIG_SCHEMA


def test_success_notification_disabled() -> None:
    delivery = FakeDelivery()
    plugin = TeamsNotifierPlugin(delivery, env={})

    result = _execute(plugin, "post-publish", {"webhook_url": WEBHOOK, "notify_on_success": False})

    assert result == ExecuteResult(success=True, message="Success notification disabled")
    assert not delivery.sent


def test_error_notification_disabled() -> None:
    delivery = FakeDelivery()
    plugin = TeamsNotifierPlugin(delivery, env={})

    result = _execute(plugin, "on-error", {"webhook_url": WEBHOOK, "notify_on_error": "false"})

    assert result.message == "Error notification disabled"
    assert not delivery.sent


@pytest.mark.parametrize(
    ("hook", "message", "outputs"),
    [
        ("post-publish", "Would send Teams success notification", {"version": "1.2.3"}),
        ("on-success", "Would send Teams success notification", {"version": "1.2.3"}),
        ("on-error", "Would send Teams error notification", None),
    ],
)
def test_dry_run_does_not_deliver(hook: str, message: str, outputs) -> None:
    delivery = FakeDelivery()
    plugin = TeamsNotifierPlugin(delivery, env={})

    result = _execute(plugin, hook, {"webhook_url": WEBHOOK}, dry_run=True)

    assert result.success
    assert result.message == message
    assert result.outputs == outputs
    assert not delivery.sent


@pytest.mark.parametrize("hook", ["pre-init", "post-plan", "pre-publish", "not-a-hook"])
def test_unhandled_hooks_are_no_ops(hook: str) -> None:
    delivery = FakeDelivery()
    plugin = TeamsNotifierPlugin(delivery, env={})

    result = _execute(plugin, hook, {"webhook_url": WEBHOOK})

    assert result == ExecuteResult(success=True, message=f"Hook {hook} not handled")
    assert not delivery.sent


def test_success_notification_is_delivered() -> None:
    delivery = FakeDelivery()
    plugin = TeamsNotifierPlugin(delivery, env={})

    result = _execute(plugin, "on-success", {"webhook_url": WEBHOOK, "mention_users": ["a@x.com"]})

    assert result.message == "Sent Teams success notification"
    ((url, payload),) = delivery.sent
    assert url == WEBHOOK
    body = payload["attachments"][0]["content"]["body"]
    assert body[2]["text"] == "Changes: 1 features, 1 fixes"
    assert body[3]["text"] == "&lt;b&gt;notes&lt;/b&gt;"


def test_error_notification_is_delivered() -> None:
    delivery = FakeDelivery()
    plugin = TeamsNotifierPlugin(delivery, env={})

    result = _execute(plugin, "on-error", {"webhook_url": WEBHOOK})

    assert result.message == "Sent Teams error notification"
    ((_, payload),) = delivery.sent
    assert payload["attachments"][0]["content"]["body"][0]["text"] == "Release 1.2.3 Failed"


def test_delivery_error_becomes_failed_result() -> None:
    plugin = TeamsNotifierPlugin(FakeDelivery(DeliveryError("teams returned status 500", 500)), env={})

    result = _execute(plugin, "post-publish", {"webhook_url": WEBHOOK})

    assert not result.success
    assert result.error == "failed to send Teams message: teams returned status 500"
    assert result.to_dict() == {"success": False, "error": result.error}


def test_unsafe_webhook_is_never_contacted() -> None:
    delivery = FakeDelivery()
    plugin = TeamsNotifierPlugin(delivery, env={})

    result = _execute(plugin, "post-publish", {"webhook_url": "https://evil.com/hook"})

    assert not result.success
    assert "failed to send" in result.error
    assert not delivery.sent


def test_missing_webhook_fails_delivery() -> None:
    plugin = TeamsNotifierPlugin(FakeDelivery(), env={})

    result = _execute(plugin, "post-publish", None)

    assert not result.success
    assert "required" in result.error


def test_unexpected_errors_are_reported_not_raised() -> None:
    plugin = TeamsNotifierPlugin(FakeDelivery(RuntimeError("boom")), env={})

    result = _execute(plugin, "post-publish", {"webhook_url": WEBHOOK})

    assert not result.success
    assert "boom" in result.error


def _http_plugin(status: int, seen: list) -> tuple[TeamsNotifierPlugin, httpx.AsyncClient]:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(status)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return TeamsNotifierPlugin(TeamsWebhookClient(http_client=http_client), env={}), http_client


@pytest.mark.parametrize(
    ("status", "success", "text"),
    [
        (200, True, "Sent Teams success notification"),
        (500, False, "failed to send Teams message: teams returned status 500"),
    ],
)
def test_end_to_end_over_http(status: int, success: bool, text: str) -> None:
    seen: list = []
    plugin, http_client = _http_plugin(status, seen)

    async def _run() -> ExecuteResult:
        try:
            return await plugin.execute("post-publish", {"webhook_url": WEBHOOK}, _event())
        finally:
            await http_client.aclose()

    result = asyncio.run(_run())

    assert result.success is success
    assert (result.message if success else result.error) == text
    assert len(seen) == 1
    assert "<b>" not in json.dumps(seen[0])


def test_dry_run_ignores_cancellation() -> None:
    plugin = TeamsNotifierPlugin(FakeDelivery(), env={})

    async def _run() -> ExecuteResult:
        cancel = asyncio.Event()
        cancel.set()
        return await plugin.execute("post-publish", {"webhook_url": WEBHOOK}, _event(), True, cancel)

    assert asyncio.run(_run()).success


def test_build_preview() -> None:
    message = build_preview("on-error", {"webhook_url": WEBHOOK}, _event())
    assert message is not None
    assert message.card.body[0].text == "Release 1.2.3 Failed"
    assert build_preview("pre-plan", {}, _event()) is None


def _codes(result) -> list[tuple[str, str]]:
    return [(issue.field, issue.code) for issue in result.errors]


def test_validate_requires_webhook() -> None:
    result = validate_config({}, env={})
    assert not result.valid
    assert _codes(result) == [("webhook_url", "required")]
    assert "TEAMS_WEBHOOK_URL" in result.errors[0].message


def test_validate_nil_config() -> None:
    result = validate_config(None, env={})
    assert not result.valid


def test_validate_uses_env_fallback() -> None:
    assert validate_config({}, env={"TEAMS_WEBHOOK_URL": WEBHOOK}).valid


@pytest.mark.parametrize(
    ("url", "message"),
    [
        ("not-a-url", "invalid URL"),
        ("http://example.webhook.office.com/webhooks/123", "HTTPS"),
        ("https://example.com/webhook/123", "webhook.office.com"),
        ("https://a.webhook.office.com.evil.com/x", "webhook.office.com"),
    ],
)
def test_validate_rejects_bad_webhooks(url: str, message: str) -> None:
    result = validate_config({"webhook_url": url}, env={})
    assert _codes(result) == [("webhook_url", "format")]
    assert message in result.errors[0].message


@pytest.mark.parametrize("color", ["0076D7", "#0076D7", "ff5733", "#abcDEF"])
def test_validate_accepts_hex_colors(color: str) -> None:
    assert validate_config({"webhook_url": WEBHOOK, "theme_color": color}, env={}).valid


@pytest.mark.parametrize(
    ("color", "message"),
    [
        ("FFF", "6-character"),
        ("#FFF", "6-character"),
        ("0076D7A", "6-character"),
        ("GGGGGG", "hexadecimal"),
        ("#12345Z", "hexadecimal"),
    ],
)
def test_validate_rejects_bad_colors(color: str, message: str) -> None:
    result = validate_config({"webhook_url": WEBHOOK, "theme_color": color}, env={})
    assert _codes(result) == [("theme_color", "format")]
    assert message in result.errors[0].message


def test_plugin_validate_delegates() -> None:
    plugin = TeamsNotifierPlugin(FakeDelivery(), env={})
    assert plugin.validate({"webhook_url": WEBHOOK}).to_dict() == {"valid": True, "errors": []}
