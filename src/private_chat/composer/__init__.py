"""Input validation and composer state."""

from private_chat.composer.composer import MessageComposer
from private_chat.composer.forms import NewChatForm, ProfileEditor
from private_chat.composer.validation import (
    MAX_DISPLAY_NAME_LENGTH,
    MAX_MESSAGE_LENGTH,
    ValidationResult,
    validate_display_name,
    validate_message,
)

__all__ = [
    "MessageComposer",
    "NewChatForm",
    "ProfileEditor",
    "MAX_DISPLAY_NAME_LENGTH",
    "MAX_MESSAGE_LENGTH",
    "ValidationResult",
    "validate_display_name",
    "validate_message",
]
