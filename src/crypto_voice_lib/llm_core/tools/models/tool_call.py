"""Data models for tool execution."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class ToolCallRequest:
    """Represents a normalized tool call request from a model turn."""

    call_id: str
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolCallResult:
    """Represents the outcome of executing a tool call.

    ``content`` is always a string: the provider payload for successful calls,
    or a JSON ``{"error": ...}`` object for failed ones.
    """

    call_id: str
    name: str
    content: str
    success: bool = True

    @classmethod
    def failure(cls, request: ToolCallRequest, message: str) -> "ToolCallResult":
        """Build a failed result carrying ``message`` as an error payload."""
        return cls(
            call_id=request.call_id,
            name=request.name,
            content=json.dumps({"error": message}, ensure_ascii=False),
            success=False,
        )
