from typing import Any, Dict, List, Optional, Sequence

from anthropic import AsyncAnthropic

from crypto_voice_lib.llm_core import ModelBackend, ModelTurn, StreamAccumulator, get_logger
from crypto_voice_lib.llm_core.messages import AssistantMessage, BaseMessage, ToolResultsMessage, UserMessage
from crypto_voice_lib.llm_core.tools import ToolDescriptor

logger = get_logger(__name__)


class AnthropicModel(ModelBackend):
    """
    ModelBackend for Anthropic's Claude models.

    Uses the streaming Messages API and assembles the raw stream events
    (``content_block_start``/``delta``/``stop`` and ``message_delta``) into a
    ``ModelTurn``.
    """

    default_model = "claude-3-5-haiku-20241022"

    def __init__(
        self,
        client: AsyncAnthropic,
        model_name: Optional[str] = None,
        max_output_tokens: int = 1000,
        sys_instruction: Optional[str] = None,
        max_retries: int = 2,
        base_retry_delay: float = 0.5,
    ):
        """
        Initializes the Anthropic backend.

        Args:
            client: The initialized AsyncAnthropic client.
            model_name: The Claude model to use. Defaults to ``default_model``.
            max_output_tokens: Output-token budget per model call.
            sys_instruction: Optional system prompt.
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

    def format_tools(self, tools: Sequence[ToolDescriptor]) -> List[Dict[str, Any]]:
        return [{"name": t.name, "description": t.description, "input_schema": t.parameters} for t in tools]

    @staticmethod
    def convert_messages(messages: Sequence[BaseMessage]) -> List[Dict[str, Any]]:
        """
        Converts the conversation into Anthropic ``MessageParam`` dictionaries.

        Tool calls become ``tool_use`` blocks on the assistant message and tool
        results become ``tool_result`` blocks on the following user message.
        """
        converted: List[Dict[str, Any]] = []
        for msg in messages:
            if isinstance(msg, ToolResultsMessage):
                converted.append(
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "tool_result",
                                "tool_use_id": result.call_id,
                                "content": result.content,
                                "is_error": not result.success,
                            }
                            for result in msg.results
                        ],
                    }
                )
            elif isinstance(msg, AssistantMessage):
                content: List[Dict[str, Any]] = []
                if msg.content:
                    content.append({"type": "text", "text": msg.content})
                for call in msg.tool_calls:
                    content.append({"type": "tool_use", "id": call.call_id, "name": call.name, "input": call.arguments})
                converted.append({"role": "assistant", "content": content or msg.content})
            elif isinstance(msg, UserMessage):
                converted.append({"role": "user", "content": msg.content})
        return converted

    async def _complete_impl(self, messages: List[BaseMessage], tools: List[ToolDescriptor]) -> ModelTurn:
        request: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_output_tokens,
            "messages": self.convert_messages(messages),
        }
        # The API rejects tool_use/tool_result history without a tool list, so it is sent on every turn.
        if tools:
            request["tools"] = self.format_tools(tools)
        if self.sys_instruction:
            request["system"] = self.sys_instruction

        stream = await self.client.messages.create(stream=True, **request)

        accumulator = StreamAccumulator()
        stop_reason: Optional[str] = None
        # Leaving the context closes the HTTP response, also on cancellation.
        async with stream:
            async for event in stream:
                if event.type == "content_block_start":
                    block = event.content_block
                    if block.type == "tool_use":
                        accumulator.start_tool_call(event.index, block.id, block.name)
                    elif block.type == "text":
                        accumulator.add_text(block.text)
                elif event.type == "content_block_delta":
                    delta = event.delta
                    if delta.type == "text_delta":
                        accumulator.add_text(delta.text)
                    elif delta.type == "input_json_delta":
                        accumulator.add_tool_arguments(event.index, delta.partial_json)
                elif event.type == "content_block_stop":
                    accumulator.close_block(event.index)
                elif event.type == "message_delta":
                    stop_reason = event.delta.stop_reason or stop_reason

        return accumulator.finish(stop_reason=stop_reason, truncated=stop_reason == "max_tokens")

    async def aclose(self) -> None:
        await self.client.close()
