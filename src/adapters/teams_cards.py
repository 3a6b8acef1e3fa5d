"""Adaptive Card document types for Teams incoming webhooks.

Body elements are a closed set (TextBlock, ColumnSet, Column) so a card can
only hold combinations Teams actually renders. Each type knows its own wire
form; empty optional fields are left out of it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union

CARD_CONTENT_TYPE = "application/vnd.microsoft.card.adaptive"
CARD_SCHEMA = "http://adaptivecards.io/schemas/adaptive-card.json"
CARD_VERSION = "1.2"


@dataclass(frozen=True)
class TextBlock:
    text: str
    weight: str = ""
    size: str = ""
    color: str = ""
    wrap: bool = False
    separator: bool = False
    spacing: str = ""

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": "TextBlock", "text": self.text}
        for key in ("weight", "size", "color", "spacing"):
            value = getattr(self, key)
            if value:
                payload[key] = value
        if self.wrap:
            payload["wrap"] = True
        if self.separator:
            payload["separator"] = True
        return payload


@dataclass(frozen=True)
class Column:
    width: str
    items: tuple[TextBlock, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "Column",
            "width": self.width,
            "items": [item.to_dict() for item in self.items],
        }


@dataclass(frozen=True)
class ColumnSet:
    columns: tuple[Column, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "ColumnSet",
            "columns": [column.to_dict() for column in self.columns],
        }


CardElement = Union[TextBlock, ColumnSet]


@dataclass(frozen=True)
class OpenUrlAction:
    title: str
    url: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "Action.OpenUrl", "title": self.title, "url": self.url}


@dataclass(frozen=True)
class MentionEntity:
    """A Teams mention; ``text`` must match the token used in the body."""

    user: str

    @property
    def text(self) -> str:
        return f"<at>{self.user}</at>"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "mention",
            "text": self.text,
            "mentioned": {"id": self.user, "name": self.user},
        }


@dataclass(frozen=True)
class MSTeamsMetadata:
    entities: tuple[MentionEntity, ...]
    width: str = "Full"

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"width": self.width}
        if self.entities:
            payload["entities"] = [entity.to_dict() for entity in self.entities]
        return payload


@dataclass(frozen=True)
class AdaptiveCard:
    body: tuple[CardElement, ...]
    actions: tuple[OpenUrlAction, ...] = ()
    msteams: Optional[MSTeamsMetadata] = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "type": "AdaptiveCard",
            "version": CARD_VERSION,
            "$schema": CARD_SCHEMA,
            "body": [element.to_dict() for element in self.body],
        }
        if self.actions:
            payload["actions"] = [action.to_dict() for action in self.actions]
        if self.msteams is not None:
            payload["msteams"] = self.msteams.to_dict()
        return payload


@dataclass(frozen=True)
class TeamsMessage:
    """Message envelope carrying a single Adaptive Card attachment."""

    card: AdaptiveCard
    content_type: str = field(default=CARD_CONTENT_TYPE)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "message",
            "attachments": [
                {
                    "contentType": self.content_type,
                    "content": self.card.to_dict(),
                }
            ],
        }
