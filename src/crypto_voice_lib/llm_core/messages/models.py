"""Provider-agnostic message models for one query's conversation."""

from abc import ABC
from typing import List

from pydantic import BaseModel, Field

from ..tools.models import ToolCallRequest, ToolCallResult


class BaseMessage(ABC, BaseModel):
    """Base model for messages exchanged with an LLM.

    Attributes:
        author: Role associated with the message.
        content: Text payload of the message.
    """

    author: str
    content: str = ""


class UserMessage(BaseMessage):
    """Message authored by an end user."""

    author: str = "user"


class AssistantMessage(BaseMessage):
    """Message authored by the assistant, optionally containing tool calls."""

    author: str = "assistant"
    tool_calls: List[ToolCallRequest] = Field(default_factory=list)


class ToolResultsMessage(BaseMessage):
    """User-role message carrying the results for one round of tool calls."""

    author: str = "user"
    results: List[ToolCallResult] = Field(default_factory=list)
