import json
from typing import Any, Dict, List, Optional, Sequence

from openai import AsyncOpenAI

from crypto_voice_lib.llm_core import ModelBackend, ModelTurn, StreamAccumulator, get_logger
from crypto_voice_lib.llm_core.messages import AssistantMessage, BaseMessage, ToolResultsMessage, UserMessage
from crypto_voice_lib.llm_core.tools import ToolDescriptor

logger = get_logger(__name__)


class OpenAIModel(ModelBackend):
    """
    ModelBackend for OpenAI chat completion models.

    Streams the completion. Tool-call fragments are keyed by their ``index``
    and finalized when the stream ends.
    """

    default_model = "gpt-4o-mini"

    def __init__(
        self,
        client: AsyncOpenAI,
        model_name: Optional[str] = None,
        max_output_tokens: int = 1000,
        sys_instruction: Optional[str] = None,
        temp: Optional[float] = None,
        max_retries: int = 2,
        base_retry_delay: float = 0.5,
    ):
        """
        Initializes the OpenAI backend.

        Args:
            client: The initialized AsyncOpenAI client.
            model_name: The model to use. Defaults to ``default_model``.
            max_output_tokens: The maximum number of tokens to generate per call.
            sys_instruction: Optional system message placed before the conversation.
            temp: Optional sampling temperature.
            max_retries: Retries per model call before giving up.
            base_retry_delay: First backoff delay in seconds.
        """
        super().__init__(
            model_name=model_name,
            max_output_tokens=max_output_tokens,
            max_retries=max_retries,
            base_retry_delay=base_retry_delay,
        )
        self.client = client
        self.sys_instruction = sys_instruction
        self.temperature = temp

    def format_tools(self, tools: Sequence[ToolDescriptor]) -> List[Dict[str, Any]]:
        return [
            {
                "type": "function",
                "function": {"name": t.name, "description": t.description, "parameters": t.parameters},
            }
            for t in tools
        ]

    def convert_messages(self, messages: Sequence[BaseMessage]) -> List[Dict[str, Any]]:
        """
        Converts the conversation into OpenAI chat message dictionaries.

        One tool-results message becomes one ``tool`` role message per result.
        """
        converted: List[Dict[str, Any]] = []
        if self.sys_instruction:
            converted.append({"role": "system", "content": self.sys_instruction})

        for msg in messages:
            if isinstance(msg, ToolResultsMessage):
                for result in msg.results:
                    converted.append({"role": "tool", "tool_call_id": result.call_id, "content": result.content})
            elif isinstance(msg, AssistantMessage):
                openai_msg: Dict[str, Any] = {"role": "assistant", "content": msg.content or None}
                if msg.tool_calls:
                    openai_msg["tool_calls"] = [
                        {
                            "id": call.call_id,
                            "type": "function",
                            "function": {"name": call.name, "arguments": json.dumps(call.arguments)},
                        }
                        for call in msg.tool_calls
                    ]
                converted.append(openai_msg)
            elif isinstance(msg, UserMessage):
                converted.append({"role": "user", "content": msg.content})
        return converted

    async def _complete_impl(self, messages: List[BaseMessage], tools: List[ToolDescriptor]) -> ModelTurn:
        request: Dict[str, Any] = {
            "model": self.model,
            "messages": self.convert_messages(messages),
            "max_tokens": self.max_output_tokens,
        }
        if tools:
            request["tools"] = self.format_tools(tools)
        if self.temperature is not None:
            request["temperature"] = self.temperature

        stream = await self.client.chat.completions.create(stream=True, **request)

        accumulator = StreamAccumulator()
        finish_reason: Optional[str] = None
        async with stream:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                delta = choice.delta
                if delta is not None:
                    accumulator.add_text(delta.content)
                    for tool_call in delta.tool_calls or []:
                        function = tool_call.function
                        accumulator.start_tool_call(tool_call.index, tool_call.id, function.name if function else None)
                        if function is not None:
                            accumulator.add_tool_arguments(tool_call.index, function.arguments)
                if choice.finish_reason:
                    finish_reason = choice.finish_reason

        return accumulator.finish(stop_reason=finish_reason, truncated=finish_reason == "length")

    async def aclose(self) -> None:
        await self.client.close()
