"""Local content checks run before anything is sent to the store."""

from __future__ import annotations

from dataclasses import dataclass

from private_chat.exceptions import ValidationError

MAX_MESSAGE_LENGTH = 1000
MAX_DISPLAY_NAME_LENGTH = 50


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: str | None = None

    def raise_for_error(self) -> None:
        if not self.valid:
            raise ValidationError(self.error)


def validate_message(content: str) -> ValidationResult:
    trimmed = content.strip()
    if not trimmed:
        return ValidationResult(False, "Message cannot be empty")
    if len(trimmed) > MAX_MESSAGE_LENGTH:
        return ValidationResult(
            False, f"Message exceeds {MAX_MESSAGE_LENGTH} character limit"
        )
    return ValidationResult(True)


def validate_display_name(name: str) -> ValidationResult:
    trimmed = name.strip()
    if not trimmed:
        return ValidationResult(False, "Display name cannot be empty")
    if len(trimmed) > MAX_DISPLAY_NAME_LENGTH:
        return ValidationResult(
            False, f"Display name must be {MAX_DISPLAY_NAME_LENGTH} characters or less"
        )
    return ValidationResult(True)
