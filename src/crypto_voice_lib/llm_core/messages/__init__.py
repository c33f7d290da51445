"""Expose provider-agnostic message types and the per-query conversation state."""

from .models import BaseMessage, UserMessage, AssistantMessage, ToolResultsMessage
from .conversation import ConversationState

__all__ = [
    "BaseMessage",
    "UserMessage",
    "AssistantMessage",
    "ToolResultsMessage",
    "ConversationState",
]
