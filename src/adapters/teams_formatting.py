"""Adaptive Card builders for release notifications.

Everything in this module is a pure function of the resolved config and the
release event, so the same inputs always yield the same card. Keeping the
formatting here means the dry-run preview and real delivery can never drift.
"""

from __future__ import annotations

import html
import re
from typing import Iterable, Optional, Sequence

from adapters.teams_cards import (
    AdaptiveCard,
    CardElement,
    Column,
    ColumnSet,
    MentionEntity,
    MSTeamsMetadata,
    OpenUrlAction,
    TeamsMessage,
    TextBlock,
)
from core.config import DEFAULT_TITLE_TEMPLATE, NotifierConfig
from core.models import CategorizedChanges, ReleaseEvent

VERSION_PLACEHOLDER = "{{version}}"
CHANGELOG_MAX_CHARS = 2000
ELLIPSIS = "..."

# A word may carry an apostrophe suffix ("it's") that stays lowercase.
_WORD_RE = re.compile(r"[^\W_]+(?:'[^\W_]+)*")


def title_case(text: str) -> str:
    """Capitalize each word; hyphens start a new word, apostrophes do not."""

    return _WORD_RE.sub(lambda match: match.group(0).capitalize(), text)


def build_title(template: str, version: str) -> str:
    """Substitute the version into the title template."""

    if not template:
        template = DEFAULT_TITLE_TEMPLATE
    return template.replace(VERSION_PLACEHOLDER, version)


def build_mention_text(users: Sequence[str]) -> str:
    if not users:
        return ""
    return "cc: " + " ".join(MentionEntity(user).text for user in users)


def build_change_summary(changes: Optional[CategorizedChanges]) -> Optional[str]:
    """Return the change counts line, or None when no change list was given.

    A present but empty change list still yields "0 features, 0 fixes".
    """

    if changes is None:
        return None
    summary = f"{len(changes.features)} features, {len(changes.fixes)} fixes"
    if changes.breaking:
        summary += f", **{len(changes.breaking)} breaking changes**"
    return summary


def truncate_notes(notes: str) -> str:
    if len(notes) > CHANGELOG_MAX_CHARS:
        return notes[:CHANGELOG_MAX_CHARS] + ELLIPSIS
    return notes


def format_changelog(notes: str) -> str:
    """Clip release notes and escape markup so Teams renders them as text.

    The length limit applies to the raw notes; escaping afterwards may make
    the result longer.
    """

    return html.escape(truncate_notes(notes))


def build_release_url(repository_url: str, tag_name: str) -> Optional[str]:
    if not repository_url or not tag_name:
        return None
    base = repository_url[: -len(".git")] if repository_url.endswith(".git") else repository_url
    return f"{base}/releases/tag/{tag_name}"


def _title_block(text: str, color: str) -> TextBlock:
    return TextBlock(text=text, weight="bolder", size="large", color=color)


def _facts(rows: Iterable[tuple[str, str]]) -> ColumnSet:
    rows = list(rows)
    labels = tuple(TextBlock(text=f"{label}:", weight="bolder") for label, _ in rows)
    values = tuple(TextBlock(text=value) for _, value in rows)
    return ColumnSet(
        columns=(
            Column(width="auto", items=labels),
            Column(width="stretch", items=values),
        )
    )


def _mention_block(users: Sequence[str]) -> list[CardElement]:
    if not users:
        return []
    return [TextBlock(text=build_mention_text(users), spacing="medium")]


def build_teams_message(
    body: Sequence[CardElement],
    actions: Sequence[OpenUrlAction],
    mention_users: Sequence[str],
) -> TeamsMessage:
    """Wrap body and actions into the message envelope Teams expects."""

    msteams = None
    if mention_users:
        msteams = MSTeamsMetadata(entities=tuple(MentionEntity(user) for user in mention_users))
    card = AdaptiveCard(body=tuple(body), actions=tuple(actions), msteams=msteams)
    return TeamsMessage(card=card)


def build_success_message(config: NotifierConfig, event: ReleaseEvent) -> TeamsMessage:
    body: list[CardElement] = [
        _title_block(build_title(config.title_template, event.version), "good"),
        _facts(
            [
                ("Version", event.version),
                ("Type", title_case(event.release_type)),
                ("Branch", event.branch),
                ("Tag", event.tag_name),
            ]
        ),
    ]

    summary = build_change_summary(event.changes)
    if summary is not None:
        body.append(TextBlock(text="Changes: " + summary, separator=True, spacing="medium"))

    if config.include_changelog and event.release_notes:
        body.append(
            TextBlock(
                text=format_changelog(event.release_notes),
                wrap=True,
                separator=True,
                spacing="medium",
            )
        )

    body.extend(_mention_block(config.mention_users))

    actions: list[OpenUrlAction] = []
    release_url = build_release_url(event.repository_url, event.tag_name)
    if release_url:
        actions.append(OpenUrlAction(title="View Release", url=release_url))

    return build_teams_message(body, actions, config.mention_users)


def build_error_message(config: NotifierConfig, event: ReleaseEvent) -> TeamsMessage:
    body: list[CardElement] = [
        _title_block(f"Release {event.version} Failed", "attention"),
        _facts([("Version", event.version), ("Branch", event.branch)]),
    ]
    body.extend(_mention_block(config.mention_users))
    return build_teams_message(body, (), config.mention_users)
