"""Tool-related data models."""

from .models import ToolDescriptor
from .tool_call import ToolCallRequest, ToolCallResult

__all__ = ["ToolDescriptor", "ToolCallRequest", "ToolCallResult"]
