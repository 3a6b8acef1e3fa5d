"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to the host pipeline's own types. Everything here is immutable and
built fresh for each invocation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional


def _text(raw: Mapping[str, Any], key: str) -> str:
    # JSON null counts as missing.
    value = raw.get(key)
    return "" if value is None else str(value)


@dataclass(frozen=True)
class ConventionalCommit:
    """One commit-like record from the categorized change list."""

    description: str
    type: str = ""
    scope: str = ""
    hash: str = ""
    breaking: bool = False

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ConventionalCommit":
        return cls(
            description=_text(raw, "description"),
            type=_text(raw, "type"),
            scope=_text(raw, "scope"),
            hash=_text(raw, "hash"),
            breaking=bool(raw.get("breaking", False)),
        )


@dataclass(frozen=True)
class CategorizedChanges:
    """Changes grouped by kind. An empty instance still counts as present."""

    features: tuple[ConventionalCommit, ...] = ()
    fixes: tuple[ConventionalCommit, ...] = ()
    breaking: tuple[ConventionalCommit, ...] = ()

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "CategorizedChanges":
        def _commits(key: str) -> tuple[ConventionalCommit, ...]:
            items = raw.get(key) or []
            return tuple(ConventionalCommit.from_dict(item) for item in items if isinstance(item, Mapping))

        return cls(
            features=_commits("features"),
            fixes=_commits("fixes"),
            breaking=_commits("breaking"),
        )


@dataclass(frozen=True)
class ReleaseEvent:
    """What happened in the release pipeline for this invocation."""

    version: str = ""
    previous_version: str = ""
    tag_name: str = ""
    release_type: str = ""
    branch: str = ""
    commit_sha: str = ""
    repository_url: str = ""
    release_notes: str = ""
    changes: Optional[CategorizedChanges] = None

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]]) -> "ReleaseEvent":
        """Build an event from the loosely-typed mapping the host sends."""

        raw = raw or {}
        changes_raw = raw.get("changes")
        changes = CategorizedChanges.from_dict(changes_raw) if isinstance(changes_raw, Mapping) else None
        return cls(
            version=_text(raw, "version"),
            previous_version=_text(raw, "previous_version"),
            tag_name=_text(raw, "tag_name"),
            release_type=_text(raw, "release_type"),
            branch=_text(raw, "branch"),
            commit_sha=_text(raw, "commit_sha"),
            repository_url=_text(raw, "repository_url"),
            release_notes=_text(raw, "release_notes"),
            changes=changes,
        )


@dataclass(frozen=True)
class ExecuteResult:
    """Outcome of one hook execution as reported back to the host."""

    success: bool
    message: str = ""
    error: str = ""
    outputs: Optional[dict[str, Any]] = None

    @classmethod
    def ok(cls, message: str, outputs: Optional[dict[str, Any]] = None) -> "ExecuteResult":
        return cls(success=True, message=message, outputs=outputs)

    @classmethod
    def failed(cls, error: str) -> "ExecuteResult":
        return cls(success=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": self.success}
        if self.success:
            payload["message"] = self.message
        else:
            payload["error"] = self.error
        if self.outputs:
            payload["outputs"] = dict(self.outputs)
        return payload


@dataclass(frozen=True)
class ValidationIssue:
    """A single configuration problem."""

    field: str
    message: str
    code: str


@dataclass(frozen=True)
class ValidationResult:
    """Result of validating a raw configuration map."""

    errors: tuple[ValidationIssue, ...] = field(default_factory=tuple)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [
                {"field": issue.field, "message": issue.message, "code": issue.code}
                for issue in self.errors
            ],
        }
