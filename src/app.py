"""Command line entry point for local checks of the Teams notifier."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Optional

from art import text2art

import settings
from adapters.teams_webhook import TeamsWebhookClient
from core.models import ReleaseEvent
from plugin import TeamsNotifierPlugin, build_preview, validate_config

NAME = "TEAMS NOTIFY"
FONT = "small"


def _print_banner() -> None:
    # stdout carries JSON results only.
    print(text2art(NAME, font=FONT, space=1), file=sys.stderr)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict, extra: list[str]) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = [value for value in extra if value]
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging(extra_secrets: list[str]) -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config, extra_secrets)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/teams-notify.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        file_handler = RotatingFileHandler(
            path,
            maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
            backupCount=int(file_cfg.get("backup_count", 5)),
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _load_json(path: Optional[str]) -> dict[str, Any]:
    if not path:
        return {}
    with open(path, "r", encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise SystemExit(f"{path} must contain a JSON object")
    return data


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2))


def _validate(raw_config: dict[str, Any]) -> int:
    result = validate_config(raw_config).to_dict()
    _print_json(result)
    return 0 if result["valid"] else 1


def _preview(hook: str, raw_config: dict[str, Any], event: ReleaseEvent) -> int:
    message = build_preview(hook, raw_config, event)
    if message is None:
        _print_json({"message": f"Hook {hook} not handled"})
        return 0
    _print_json(message.to_dict())
    return 0


def _send(hook: str, raw_config: dict[str, Any], event: ReleaseEvent, dry_run: bool) -> int:
    async def _run_send() -> dict[str, Any]:
        async with TeamsWebhookClient(timeout=settings.REQUEST_TIMEOUT_SECONDS) as delivery:
            plugin = TeamsNotifierPlugin(delivery)
            result = await plugin.execute(hook, raw_config, event, dry_run=dry_run)
            return result.to_dict()

    result = asyncio.run(_run_send())
    _print_json(result)
    return 0 if result["success"] else 1


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="teams-notify")
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate_parser = subparsers.add_parser("validate", help="Validate a plugin config file")
    validate_parser.add_argument("--config", help="Path to a JSON config map")

    for name, help_text in (
        ("preview", "Print the card a hook would send"),
        ("send", "Run a hook and deliver the card"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--hook", required=True, help="Hook name, e.g. post-publish")
        sub.add_argument("--config", help="Path to a JSON config map")
        sub.add_argument("--event", help="Path to a JSON release event")
        if name == "send":
            sub.add_argument("--dry-run", action="store_true", help="Build the card but do not send it")

    args = parser.parse_args(argv)
    raw_config = _load_json(args.config)
    webhook_secret = raw_config.get("webhook_url") if isinstance(raw_config.get("webhook_url"), str) else ""

    _print_banner()
    _configure_logging([webhook_secret])

    if args.command == "validate":
        return _validate(raw_config)

    event = ReleaseEvent.from_dict(_load_json(args.event))
    if args.command == "preview":
        return _preview(args.hook, raw_config, event)
    return _send(args.hook, raw_config, event, args.dry_run)


if __name__ == "__main__":
    sys.exit(main())
