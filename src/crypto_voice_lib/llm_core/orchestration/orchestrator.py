"""The model / tool round-trip loop that turns a query into one answer."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List

from pydantic import BaseModel

from ..base import ModelBackend, ModelTurn
from ..exceptions import ConversationStateError, MaxRoundsExceededError, ModelResponseError
from ..logger import get_logger
from ..messages import BaseMessage, ConversationState
from ..tools import ToolCatalog, ToolExecutor

logger = get_logger(__name__)


class OrchestratorState(str, Enum):
    AWAITING_MODEL = "awaiting_model"
    EXECUTING_TOOLS = "executing_tools"
    DONE = "done"


_TRANSITIONS: Dict[OrchestratorState, FrozenSet[OrchestratorState]] = {
    OrchestratorState.AWAITING_MODEL: frozenset({OrchestratorState.EXECUTING_TOOLS, OrchestratorState.DONE}),
    OrchestratorState.EXECUTING_TOOLS: frozenset({OrchestratorState.AWAITING_MODEL}),
    OrchestratorState.DONE: frozenset(),
}


class OrchestrationResult(BaseModel):
    """Outcome of a completed query.

    Attributes:
        content: The final answer, stripped of surrounding whitespace.
        rounds: Number of tool rounds that were executed.
        history: The full conversation, including tool calls and results.
        states: Every state the query went through, in order.
    """

    content: str
    rounds: int
    history: List[BaseMessage]
    states: List[OrchestratorState]


@dataclass
class _QueryRun:
    conversation: ConversationState
    state: OrchestratorState = OrchestratorState.AWAITING_MODEL
    rounds: int = 0
    states: List[OrchestratorState] = field(default_factory=lambda: [OrchestratorState.AWAITING_MODEL])

    def transition(self, new_state: OrchestratorState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise ConversationStateError(f"Invalid transition {self.state.value} -> {new_state.value}.")
        logger.debug("State %s -> %s (round %d).", self.state.value, new_state.value, self.rounds)
        self.state = new_state
        self.states.append(new_state)


class ConversationOrchestrator:
    """
    Drives one query through model turns and tool rounds until the model answers.

    A single orchestrator serves any number of concurrent queries: all per-query
    state lives inside :meth:`run`. The model is called strictly sequentially
    within a query; the tool calls of one round run concurrently.
    """

    def __init__(
        self,
        *,
        model: ModelBackend,
        catalog: ToolCatalog,
        executor: ToolExecutor,
        max_rounds: int = 5,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            model: The language model backend.
            catalog: Tools offered to the model on every turn.
            executor: Executes the tool calls the model requests.
            max_rounds: Maximum number of tool rounds before the query fails.
        """
        if max_rounds < 0:
            raise ValueError("max_rounds must not be negative.")
        self._model = model
        self._catalog = catalog
        self._executor = executor
        self._max_rounds = max_rounds

    @property
    def max_rounds(self) -> int:
        return self._max_rounds

    async def run(self, query: str) -> OrchestrationResult:
        """Answer ``query``, which should already be formatted for speech.

        Args:
            query: The user message that seeds the conversation.

        Returns:
            The final answer and the conversation that produced it.

        Raises:
            ModelCallError: If the model API fails after retries.
            ModelResponseError: If the final turn is empty or truncated.
            MaxRoundsExceededError: If the model keeps asking for tools.
            ConversationStateError: If tool calls and results stop pairing up.
        """
        started = time.perf_counter()
        run = _QueryRun(conversation=ConversationState(query))
        tools = self._catalog.descriptors

        while True:
            run.conversation.ensure_ready_for_model()
            turn = await self._model.complete(run.conversation.messages, tools)
            calls = turn.tool_calls

            if not calls:
                answer = self._final_text(turn)
                run.transition(OrchestratorState.DONE)
                logger.info(
                    "Query answered after %d tool round(s) in %.0fms.",
                    run.rounds,
                    (time.perf_counter() - started) * 1000,
                )
                return OrchestrationResult(
                    content=answer,
                    rounds=run.rounds,
                    history=run.conversation.messages,
                    states=list(run.states),
                )

            if run.rounds >= self._max_rounds:
                msg = f"Model still requested tools after {self._max_rounds} round(s). Stopping."
                logger.error(msg)
                raise MaxRoundsExceededError(msg)

            run.rounds += 1
            run.transition(OrchestratorState.EXECUTING_TOOLS)
            logger.info(
                "Round %d/%d: executing %d tool call(s): %s",
                run.rounds,
                self._max_rounds,
                len(calls),
                ", ".join(call.name for call in calls),
            )

            run.conversation.add_tool_calls(calls, text=turn.text)
            results = await self._executor.execute_all(calls)
            run.conversation.add_tool_results(results)
            run.transition(OrchestratorState.AWAITING_MODEL)

    @staticmethod
    def _final_text(turn: ModelTurn) -> str:
        """Extract the answer from a tool-free turn.

        Raises:
            ModelResponseError: If the turn was cut off or carries no text.
        """
        if turn.truncated:
            msg = f"Model answer was cut off (stop_reason={turn.stop_reason})."
            logger.error(msg)
            raise ModelResponseError(msg)

        answer = turn.text.strip()
        if not answer:
            msg = "Model returned neither an answer nor a tool call."
            logger.error(msg)
            raise ModelResponseError(msg)
        return answer
