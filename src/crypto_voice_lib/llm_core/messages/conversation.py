"""Append-only conversation state for a single query."""

from __future__ import annotations

from typing import List, Sequence, Set

from ..exceptions import ConversationStateError
from ..tools.models import ToolCallRequest, ToolCallResult
from .models import AssistantMessage, BaseMessage, ToolResultsMessage, UserMessage


class ConversationState:
    """
    Ordered messages of one query, with tool call / result pairing enforced.

    Every tool call appended through :meth:`add_tool_calls` must be answered by
    exactly one result in the following :meth:`add_tool_results` before the
    conversation may be sent to the model again.
    """

    def __init__(self, query: str) -> None:
        self._messages: List[BaseMessage] = [UserMessage(content=query)]
        self._pending: List[str] = []

    @property
    def messages(self) -> List[BaseMessage]:
        """A copy of the messages, oldest first."""
        return list(self._messages)

    @property
    def pending_call_ids(self) -> List[str]:
        return list(self._pending)

    def add_tool_calls(self, calls: Sequence[ToolCallRequest], text: str = "") -> None:
        """Record the assistant turn that requested ``calls``.

        Raises:
            ConversationStateError: If earlier calls are still unanswered or ids repeat.
        """
        if self._pending:
            raise ConversationStateError(f"Tool calls {self._pending} have no results yet.")
        if not calls:
            raise ConversationStateError("An assistant tool turn needs at least one tool call.")

        ids = [call.call_id for call in calls]
        if len(set(ids)) != len(ids):
            raise ConversationStateError(f"Duplicate tool call ids in one turn: {ids}")

        self._messages.append(AssistantMessage(content=text, tool_calls=list(calls)))
        self._pending = ids

    def add_tool_results(self, results: Sequence[ToolCallResult]) -> None:
        """Record the results for every pending tool call.

        Raises:
            ConversationStateError: If the results do not match the pending calls one to one.
        """
        result_ids = [result.call_id for result in results]
        expected: Set[str] = set(self._pending)

        if len(result_ids) != len(self._pending) or set(result_ids) != expected:
            missing = sorted(expected - set(result_ids))
            unexpected = sorted(set(result_ids) - expected)
            raise ConversationStateError(
                f"Tool results do not match tool calls (missing: {missing}, unexpected: {unexpected})."
            )

        self._messages.append(ToolResultsMessage(results=list(results)))
        self._pending = []

    def ensure_ready_for_model(self) -> None:
        """Raise unless every tool call so far has its result.

        Raises:
            ConversationStateError: If any tool call is unanswered.
        """
        if self._pending:
            raise ConversationStateError(f"Cannot call the model with unanswered tool calls: {self._pending}")

    def __len__(self) -> int:
        return len(self._messages)
