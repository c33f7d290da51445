"""Core abstractions for language model backends."""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Annotated, Any, Callable, Coroutine, Dict, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, Field

from ..exceptions import ModelCallError
from ..logger import get_logger
from ..messages import BaseMessage
from ..tools.models import ToolCallRequest, ToolDescriptor

logger = get_logger(__name__)


class TextBlock(BaseModel):
    """A text fragment of a model turn."""

    kind: Literal["text"] = "text"
    value: str


class ToolCallBlock(BaseModel):
    """A tool call requested by the model, with its arguments already decoded."""

    kind: Literal["tool_call"] = "tool_call"
    id: str
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)


ContentBlock = Annotated[Union[TextBlock, ToolCallBlock], Field(discriminator="kind")]


class ModelTurn(BaseModel):
    """Vendor-neutral result of one model invocation.

    Attributes:
        blocks: Text and tool-call blocks in the order the model produced them.
        stop_reason: The vendor's stop reason, if it reported one.
        truncated: True when generation stopped on the output-token budget.
    """

    blocks: List[ContentBlock] = Field(default_factory=list)
    stop_reason: Optional[str] = None
    truncated: bool = False

    @property
    def text(self) -> str:
        return "".join(block.value for block in self.blocks if isinstance(block, TextBlock))

    @property
    def tool_calls(self) -> List[ToolCallRequest]:
        return [
            ToolCallRequest(call_id=block.id, name=block.name, arguments=dict(block.arguments))
            for block in self.blocks
            if isinstance(block, ToolCallBlock)
        ]


class ModelBackend(ABC):
    """Abstract base class for language model vendors.

    Implementations translate the conversation and tool descriptors into the
    vendor's request format and reduce its (streamed or batched) answer to a
    ``ModelTurn``. Every call goes through :meth:`complete`, which retries with
    exponential backoff before giving up with ``ModelCallError``.
    """

    #: Used when no model name is configured.
    default_model: str = ""

    def __init__(
        self,
        model_name: Optional[str] = None,
        max_output_tokens: int = 1000,
        max_retries: int = 2,
        base_retry_delay: float = 0.5,
    ):
        self.model = model_name or self.default_model
        self.max_output_tokens = max_output_tokens
        self.max_retries = max_retries
        self.base_retry_delay = base_retry_delay

    async def _execute_with_retry(
        self,
        func: Callable[..., Coroutine[Any, Any, ModelTurn]],
        *args: Any,
        **kwargs: Any,
    ) -> ModelTurn:
        """
        Executes a function with retry logic.

        Args:
            func: The asynchronous function to execute.
            *args: Positional arguments for the function.
            **kwargs: Keyword arguments for the function.

        Returns:
            The result of the function call.

        Raises:
            ModelCallError: Wrapping the last encountered exception if all retries fail.
        """
        delay = self.base_retry_delay
        for attempt in range(self.max_retries + 1):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                if attempt == self.max_retries:
                    msg = f"Model call failed after {attempt + 1} attempt(s): {e}"
                    logger.error(msg)
                    raise ModelCallError(msg) from e

                logger.warning(f"API Error (Retry: {attempt + 1}/{self.max_retries}): {e}. Waiting {delay}s...")
                await asyncio.sleep(delay)
                delay *= 2  # Exponential backoff

        raise ModelCallError(f"Failed to get response after {self.max_retries} retries.")

    async def complete(self, messages: Sequence[BaseMessage], tools: Sequence[ToolDescriptor]) -> ModelTurn:
        """
        Sends the conversation to the model and returns its next turn.

        Args:
            messages: The full conversation so far.
            tools: The tools the model may request.

        Returns:
            The model's turn in vendor-neutral form.
        """
        started = time.perf_counter()
        turn = await self._execute_with_retry(self._complete_impl, list(messages), list(tools))
        logger.info(
            "Model '%s' answered in %.0fms (%d tool call(s), stop_reason=%s).",
            self.model,
            (time.perf_counter() - started) * 1000,
            len(turn.tool_calls),
            turn.stop_reason,
        )
        return turn

    async def aclose(self) -> None:
        """Release the vendor client. The default does nothing."""
        return None

    @abstractmethod
    def format_tools(self, tools: Sequence[ToolDescriptor]) -> Any:
        """Converts tool descriptors into the vendor's tool declaration format."""
        pass

    @abstractmethod
    async def _complete_impl(self, messages: List[BaseMessage], tools: List[ToolDescriptor]) -> ModelTurn:
        pass
