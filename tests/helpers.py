"""Test doubles shared by the test modules: a scripted model, a fake data provider, a vendor stream and a manual clock."""

import inspect
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from crypto_voice_lib.llm_core import ModelBackend, ModelTurn, TextBlock, ToolCallBlock, ToolDescriptor
from crypto_voice_lib.llm_core.messages import BaseMessage

ScriptItem = Union[ModelTurn, Exception]


def text_turn(text: str, stop_reason: str = "end_turn", truncated: bool = False) -> ModelTurn:
    return ModelTurn(blocks=[TextBlock(value=text)], stop_reason=stop_reason, truncated=truncated)


def tool_turn(*calls: Tuple[str, str, Dict[str, Any]], text: str = "") -> ModelTurn:
    blocks: List[Any] = [TextBlock(value=text)] if text else []
    blocks.extend(ToolCallBlock(id=call_id, name=name, arguments=args) for call_id, name, args in calls)
    return ModelTurn(blocks=blocks, stop_reason="tool_use")


class ScriptedModel(ModelBackend):
    """Returns pre-scripted turns in order. With ``repeat_last`` the last turn is returned forever."""

    default_model = "scripted-model"

    def __init__(self, turns: Sequence[ScriptItem], repeat_last: bool = False, max_retries: int = 0) -> None:
        super().__init__(max_retries=max_retries, base_retry_delay=0.0)
        self._turns = list(turns)
        self._repeat_last = repeat_last
        self.calls: List[List[BaseMessage]] = []
        self.tools_seen: List[List[str]] = []
        self.closed = False

    def format_tools(self, tools: Sequence[ToolDescriptor]) -> List[str]:
        return [t.name for t in tools]

    async def _complete_impl(self, messages: List[BaseMessage], tools: List[ToolDescriptor]) -> ModelTurn:
        self.calls.append(messages)
        self.tools_seen.append(self.format_tools(tools))
        if not self._turns:
            raise AssertionError("ScriptedModel ran out of turns")
        item = self._turns[0] if (self._repeat_last and len(self._turns) == 1) else self._turns.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def aclose(self) -> None:
        self.closed = True


class FakeProvider:
    """DataProvider double.

    ``responses`` maps tool names to a value, an exception to raise, or a
    (sync or async) callable receiving the arguments.
    """

    def __init__(self, responses: Dict[str, Any], descriptors: Optional[List[ToolDescriptor]] = None) -> None:
        self.responses = responses
        self.descriptors = descriptors
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    async def list_tools(self) -> List[ToolDescriptor]:
        if self.descriptors is not None:
            return self.descriptors
        return [
            ToolDescriptor(name=name, description=f"{name} tool", parameters={"type": "object", "properties": {}})
            for name in self.responses
        ]

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> Any:
        self.calls.append((name, dict(arguments)))
        response = self.responses[name]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = response(**arguments)
            if inspect.isawaitable(response):
                response = await response
        return response

    def call_count(self, name: str) -> int:
        return sum(1 for called, _ in self.calls if called == name)


class ManualClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


ProviderFactory = Callable[..., FakeProvider]


class FakeStream:
    """Vendor SDK stream double: async iterable and async context manager.

    An exception among ``items`` is raised when the iteration reaches it.
    """

    def __init__(self, items: Sequence[Any]) -> None:
        self.items = list(items)
        self.closed = False

    async def __aenter__(self) -> "FakeStream":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.closed = True

    async def __aiter__(self):
        for item in self.items:
            if isinstance(item, Exception):
                raise item
            yield item
