import json
import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from typing import Any, List, Optional

from openai import AsyncOpenAI

from crypto_voice_lib.llm_core import ToolCallRequest, ToolCallResult, ToolDescriptor
from crypto_voice_lib.llm_core.messages import AssistantMessage, ToolResultsMessage, UserMessage
from crypto_voice_lib.llm_impl import OpenAIModel
from helpers import FakeStream

GET_PRICE = ToolDescriptor(
    name="get_price",
    description="Current price of a coin.",
    parameters={"type": "object", "properties": {"id": {"type": "string"}}},
)


def _chunk(content: Optional[str] = None, tool_calls=None, finish_reason: Optional[str] = None) -> SimpleNamespace:
    delta = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(delta=delta, finish_reason=finish_reason)])


def _tool_delta(index: int, call_id=None, name=None, arguments=None) -> SimpleNamespace:
    return SimpleNamespace(index=index, id=call_id, function=SimpleNamespace(name=name, arguments=arguments))


def _stream(chunks: List[Any]) -> FakeStream:
    return FakeStream(chunks)


@pytest.fixture
def mock_openai_client() -> Any:
    client = MagicMock(spec=AsyncOpenAI)
    client.chat = MagicMock()
    client.chat.completions = MagicMock()
    client.chat.completions.create = AsyncMock()
    client.close = AsyncMock()
    return client


def test_initialization(mock_openai_client: Any) -> None:
    model = OpenAIModel(client=mock_openai_client, model_name="gpt-4", sys_instruction="You are a helper.")
    assert model.model == "gpt-4"
    assert model.client == mock_openai_client
    assert model.sys_instruction == "You are a helper."


def test_format_tools(mock_openai_client: Any) -> None:
    model = OpenAIModel(client=mock_openai_client)
    assert model.format_tools([GET_PRICE]) == [
        {
            "type": "function",
            "function": {
                "name": "get_price",
                "description": "Current price of a coin.",
                "parameters": GET_PRICE.parameters,
            },
        }
    ]


def test_convert_messages(mock_openai_client: Any) -> None:
    model = OpenAIModel(client=mock_openai_client, sys_instruction="You are a helper.")
    messages = [
        UserMessage(content="Prices?"),
        AssistantMessage(
            tool_calls=[
                ToolCallRequest("call_1", "get_price", {"id": "bitcoin"}),
                ToolCallRequest("call_2", "get_price", {"id": "ethereum"}),
            ]
        ),
        ToolResultsMessage(
            results=[
                ToolCallResult(call_id="call_1", name="get_price", content='{"price": 1}'),
                ToolCallResult(call_id="call_2", name="get_price", content='{"price": 2}'),
            ]
        ),
    ]

    converted = model.convert_messages(messages)

    assert converted[0] == {"role": "system", "content": "You are a helper."}
    assert converted[1] == {"role": "user", "content": "Prices?"}
    assistant = converted[2]
    assert assistant["content"] is None
    assert [c["id"] for c in assistant["tool_calls"]] == ["call_1", "call_2"]
    assert json.loads(assistant["tool_calls"][0]["function"]["arguments"]) == {"id": "bitcoin"}
    assert converted[3:] == [
        {"role": "tool", "tool_call_id": "call_1", "content": '{"price": 1}'},
        {"role": "tool", "tool_call_id": "call_2", "content": '{"price": 2}'},
    ]


@pytest.mark.asyncio
async def test_stream_with_parallel_tool_calls(mock_openai_client: Any) -> None:
    mock_openai_client.chat.completions.create.return_value = _stream(
        [
            _chunk(tool_calls=[_tool_delta(0, "call_1", "get_price", "")]),
            _chunk(tool_calls=[_tool_delta(0, arguments='{"id": "bit')]),
            _chunk(tool_calls=[_tool_delta(1, "call_2", "get_price", '{"id": ')]),
            _chunk(tool_calls=[_tool_delta(0, arguments='coin"}')]),
            _chunk(tool_calls=[_tool_delta(1, arguments='"solana"}')]),
            _chunk(finish_reason="tool_calls"),
            SimpleNamespace(choices=[]),
        ]
    )
    model = OpenAIModel(client=mock_openai_client, model_name="gpt-test", temp=0.2)

    turn = await model.complete([UserMessage(content="q")], [GET_PRICE])

    assert turn.tool_calls == [
        ToolCallRequest("call_1", "get_price", {"id": "bitcoin"}),
        ToolCallRequest("call_2", "get_price", {"id": "solana"}),
    ]
    assert turn.stop_reason == "tool_calls"

    kwargs = mock_openai_client.chat.completions.create.call_args.kwargs
    assert kwargs["stream"] is True
    assert kwargs["temperature"] == 0.2
    assert kwargs["max_tokens"] == 1000


@pytest.mark.asyncio
async def test_stream_text_answer(mock_openai_client: Any) -> None:
    mock_openai_client.chat.completions.create.return_value = _stream(
        [_chunk("Bitcoin is "), _chunk("at $67,000."), _chunk(finish_reason="stop")]
    )
    model = OpenAIModel(client=mock_openai_client)

    turn = await model.complete([UserMessage(content="q")], [])

    assert turn.text == "Bitcoin is at $67,000."
    assert not turn.truncated
    assert "tools" not in mock_openai_client.chat.completions.create.call_args.kwargs


@pytest.mark.asyncio
async def test_length_finish_marks_turn_truncated(mock_openai_client: Any) -> None:
    mock_openai_client.chat.completions.create.return_value = _stream([_chunk("Bitcoin"), _chunk(finish_reason="length")])
    model = OpenAIModel(client=mock_openai_client)

    turn = await model.complete([UserMessage(content="q")], [])

    assert turn.truncated


@pytest.mark.asyncio
async def test_stream_is_closed_after_reading(mock_openai_client: Any) -> None:
    stream = _stream([_chunk("Bitcoin"), _chunk(finish_reason="stop")])
    mock_openai_client.chat.completions.create.return_value = stream
    model = OpenAIModel(client=mock_openai_client)

    await model.complete([UserMessage(content="q")], [])

    assert stream.closed
