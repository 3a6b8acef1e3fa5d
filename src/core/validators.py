"""Validation helpers for notifier configuration."""

from __future__ import annotations

from core.models import ValidationIssue, ValidationResult

CODE_REQUIRED = "required"
CODE_FORMAT = "format"

_HEX_DIGITS = set("0123456789abcdefABCDEF")


def theme_color_error(value: str) -> str | None:
    """Return why a theme color is malformed, or None when it is fine."""

    color = value[1:] if value.startswith("#") else value
    if len(color) != 6:
        return "theme_color must be a 6-character hex color (e.g., '0076D7')"
    if any(ch not in _HEX_DIGITS for ch in color):
        return "theme_color must contain only hexadecimal characters"
    return None


class ValidationBuilder:
    """Collects validation issues and produces a ValidationResult."""

    def __init__(self) -> None:
        self._errors: list[ValidationIssue] = []

    def add_error(self, field: str, message: str, code: str) -> "ValidationBuilder":
        self._errors.append(ValidationIssue(field=field, message=message, code=code))
        return self

    def build(self) -> ValidationResult:
        return ValidationResult(errors=tuple(self._errors))
