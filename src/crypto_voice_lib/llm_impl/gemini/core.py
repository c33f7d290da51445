import uuid
from typing import Any, Dict, List, Optional, Sequence

from google.genai import types
from google.genai.client import AsyncClient

from crypto_voice_lib.llm_core import ModelBackend, ModelTurn, StreamAccumulator, get_logger
from crypto_voice_lib.llm_core.messages import AssistantMessage, BaseMessage, ToolResultsMessage, UserMessage
from crypto_voice_lib.llm_core.tools import ToolDescriptor
from .schema_sanitizer import sanitize

logger = get_logger(__name__)


class GeminiModel(ModelBackend):
    """
    ModelBackend for Google's Gemini models.

    Uses the batched ``generate_content`` call; function calls arrive complete
    and are recorded on the accumulator as they are.
    """

    default_model = "gemini-2.0-flash"

    def __init__(
        self,
        aclient: AsyncClient,
        model_name: Optional[str] = None,
        max_output_tokens: int = 1000,
        sys_instruction: Optional[str] = None,
        temp: Optional[float] = None,
        max_retries: int = 2,
        base_retry_delay: float = 0.5,
    ):
        """
        Initializes the Gemini backend.

        Args:
            aclient: The initialized Google GenAI async client (``Client(...).aio``).
            model_name: The Gemini model to use. Defaults to ``default_model``.
            max_output_tokens: The maximum number of tokens to generate per call.
            sys_instruction: Optional system instruction.
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
        self.client = aclient
        self.sys_instruction = sys_instruction
        self.temperature = temp

    def format_tools(self, tools: Sequence[ToolDescriptor]) -> Optional[types.Tool]:
        """
        Builds one ``types.Tool`` holding a function declaration per descriptor,
        or None if there are no tools.
        """
        if not tools:
            return None

        declarations = []
        for tool in tools:
            if tool.parameters.get("properties"):
                declarations.append(
                    types.FunctionDeclaration(
                        name=tool.name, description=tool.description, parameters=sanitize(tool.parameters)
                    )
                )
            else:
                declarations.append(types.FunctionDeclaration(name=tool.name, description=tool.description))
        return types.Tool(function_declarations=declarations)

    @staticmethod
    def convert_messages(messages: Sequence[BaseMessage]) -> List[types.Content]:
        """
        Converts the conversation into Gemini ``Content`` objects.

        Assistant turns use the ``model`` role; tool results are sent back as
        ``function_response`` parts on a user turn.
        """
        contents: List[types.Content] = []
        for msg in messages:
            if isinstance(msg, ToolResultsMessage):
                parts = [
                    types.Part(
                        function_response=types.FunctionResponse(
                            id=result.call_id,
                            name=result.name,
                            response={"output": result.content} if result.success else {"error": result.content},
                        )
                    )
                    for result in msg.results
                ]
                contents.append(types.Content(role="user", parts=parts))
            elif isinstance(msg, AssistantMessage):
                parts = [types.Part(text=msg.content)] if msg.content else []
                parts.extend(
                    types.Part(function_call=types.FunctionCall(id=call.call_id, name=call.name, args=call.arguments))
                    for call in msg.tool_calls
                )
                contents.append(types.Content(role="model", parts=parts))
            elif isinstance(msg, UserMessage):
                contents.append(types.Content(role="user", parts=[types.Part(text=msg.content)]))
        return contents

    async def _complete_impl(self, messages: List[BaseMessage], tools: List[ToolDescriptor]) -> ModelTurn:
        tool = self.format_tools(tools)
        config = types.GenerateContentConfig(
            system_instruction=self.sys_instruction,
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
            tools=[tool] if tool else None,
        )

        response = await self.client.models.generate_content(
            model=self.model,
            contents=self.convert_messages(messages),  # type: ignore[arg-type]
            config=config,
        )

        accumulator = StreamAccumulator()
        candidate = response.candidates[0] if response.candidates else None
        parts = candidate.content.parts if candidate and candidate.content and candidate.content.parts else []

        for part in parts:
            if part.function_call:
                call = part.function_call
                name = call.name or ""
                # Older Gemini models do not assign call ids.
                call_id = call.id or f"{name}-{uuid.uuid4().hex[:12]}"
                accumulator.add_tool_call(call_id, name, dict(call.args or {}))
            elif part.text and not getattr(part, "thought", False):
                accumulator.add_text(part.text)

        finish_reason = candidate.finish_reason if candidate else None
        stop_reason = self._finish_reason_name(finish_reason)
        return accumulator.finish(stop_reason=stop_reason, truncated=stop_reason == "MAX_TOKENS")

    @staticmethod
    def _finish_reason_name(finish_reason: Any) -> Optional[str]:
        if finish_reason is None:
            return None
        return str(getattr(finish_reason, "name", finish_reason))
