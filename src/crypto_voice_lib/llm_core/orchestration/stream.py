"""Incremental assembly of a streamed model turn."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Optional

from ..base import ModelTurn, TextBlock, ToolCallBlock
from ..logger import get_logger

logger = get_logger(__name__)


@dataclass
class _PartialToolCall:
    call_id: str
    name: str
    order: int
    argument_parts: List[str] = field(default_factory=list)


class StreamAccumulator:
    """
    Collects streamed deltas into a ``ModelTurn``.

    Text deltas go into one buffer. Tool-call argument deltas are buffered per
    content block, identified by whatever key the vendor uses (an index), and
    decoded only when that block is closed. A block whose arguments are not a
    JSON object is logged and dropped; the rest of the turn is kept.
    """

    def __init__(self) -> None:
        self._text: List[str] = []
        self._open: Dict[Hashable, _PartialToolCall] = {}
        self._closed: List[tuple[int, ToolCallBlock]] = []
        self._counter = 0
        self.dropped: List[str] = []

    def add_text(self, delta: Optional[str]) -> None:
        if delta:
            self._text.append(delta)

    def start_tool_call(self, key: Hashable, call_id: Optional[str] = None, name: Optional[str] = None) -> None:
        """Open a tool-call block, or fill in the id/name of one already open."""
        partial = self._open.get(key)
        if partial is None:
            self._open[key] = _PartialToolCall(call_id=call_id or "", name=name or "", order=self._counter)
            self._counter += 1
            return
        if call_id and not partial.call_id:
            partial.call_id = call_id
        if name and not partial.name:
            partial.name = name

    def add_tool_arguments(self, key: Hashable, partial_json: Optional[str]) -> None:
        if not partial_json:
            return
        partial = self._open.get(key)
        if partial is None:
            logger.warning("Dropping argument delta for unknown content block %r.", key)
            return
        partial.argument_parts.append(partial_json)

    def add_tool_call(self, call_id: str, name: str, arguments: Optional[Dict[str, Any]]) -> None:
        """Record a tool call that arrived complete (batched responses)."""
        block = ToolCallBlock(id=call_id, name=name, arguments=dict(arguments or {}))
        self._closed.append((self._counter, block))
        self._counter += 1

    def close_block(self, key: Hashable) -> None:
        """Finalize the tool-call block ``key``. Unknown keys (text blocks) are ignored."""
        partial = self._open.pop(key, None)
        if partial is None:
            return

        raw = "".join(partial.argument_parts)
        try:
            arguments = json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError as exc:
            logger.warning("Failed to parse arguments for tool '%s': %s. Dropping call.", partial.name, exc)
            self.dropped.append(partial.name)
            return

        if not isinstance(arguments, dict):
            logger.warning("Arguments for tool '%s' are not a JSON object. Dropping call.", partial.name)
            self.dropped.append(partial.name)
            return

        if not partial.name or not partial.call_id:
            logger.warning("Tool call block %r is missing its id or name. Dropping call.", key)
            self.dropped.append(partial.name or "<unnamed>")
            return

        self._closed.append((partial.order, ToolCallBlock(id=partial.call_id, name=partial.name, arguments=arguments)))

    def finish(self, stop_reason: Optional[str] = None, truncated: bool = False) -> ModelTurn:
        """Close any open blocks and build the turn."""
        for key in list(self._open):
            self.close_block(key)

        blocks: List[Any] = []
        text = "".join(self._text)
        if text:
            blocks.append(TextBlock(value=text))
        blocks.extend(block for _, block in sorted(self._closed, key=lambda item: item[0]))
        return ModelTurn(blocks=blocks, stop_reason=stop_reason, truncated=truncated)
