"""Re-export the model backend interface and the vendor-neutral turn types."""

from .base import ModelBackend, ModelTurn, TextBlock, ToolCallBlock, ContentBlock

__all__ = [
    "ModelBackend",
    "ModelTurn",
    "TextBlock",
    "ToolCallBlock",
    "ContentBlock",
]
