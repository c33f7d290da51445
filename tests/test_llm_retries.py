import pytest
from unittest.mock import AsyncMock, patch
from typing import List

from crypto_voice_lib.llm_core import ModelBackend, ModelCallError, ModelTurn, TextBlock, ToolDescriptor
from crypto_voice_lib.llm_core.messages import BaseMessage, UserMessage
from crypto_voice_lib.llm_impl import AnthropicModel, OpenAIModel


# Mock implementation for testing ModelBackend base logic
class MockModel(ModelBackend):
    default_model = "mock-model"

    def __init__(self, max_retries: int = 3, base_retry_delay: float = 0.01):
        super().__init__(max_retries=max_retries, base_retry_delay=base_retry_delay)
        self.complete_impl_mock = AsyncMock()

    def format_tools(self, tools):
        return list(tools)

    async def _complete_impl(self, messages: List[BaseMessage], tools: List[ToolDescriptor]) -> ModelTurn:
        return await self.complete_impl_mock(messages, tools)


ANSWER = ModelTurn(blocks=[TextBlock(value="Success")], stop_reason="end_turn")
MESSAGES = [UserMessage(content="hello")]


def test_initialization():
    llm = MockModel(max_retries=5, base_retry_delay=2.0)
    assert llm.max_retries == 5
    assert llm.base_retry_delay == 2.0
    assert llm.model == "mock-model"


@pytest.mark.asyncio
async def test_complete_happy_path():
    llm = MockModel()
    llm.complete_impl_mock.return_value = ANSWER

    result = await llm.complete(MESSAGES, [])
    assert result == ANSWER
    assert llm.complete_impl_mock.call_count == 1


@pytest.mark.asyncio
async def test_complete_retry_success():
    """Fails twice, then succeeds."""
    llm = MockModel(max_retries=3)
    llm.complete_impl_mock.side_effect = [Exception("Fail 1"), Exception("Fail 2"), ANSWER]

    result = await llm.complete(MESSAGES, [])
    assert result == ANSWER
    assert llm.complete_impl_mock.call_count == 3


@pytest.mark.asyncio
async def test_complete_failure_wraps_last_error():
    llm = MockModel(max_retries=2)
    llm.complete_impl_mock.side_effect = Exception("Persistent Failure")

    with pytest.raises(ModelCallError) as excinfo:
        await llm.complete(MESSAGES, [])

    assert "Persistent Failure" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, Exception)
    # Initial call + 2 retries = 3 calls
    assert llm.complete_impl_mock.call_count == 3


@pytest.mark.asyncio
async def test_zero_retries():
    """Edge Case: max_retries 0 means a single attempt."""
    llm = MockModel(max_retries=0)
    llm.complete_impl_mock.side_effect = Exception("Fail immediately")

    with pytest.raises(ModelCallError, match="Fail immediately"):
        await llm.complete(MESSAGES, [])

    assert llm.complete_impl_mock.call_count == 1


@pytest.mark.asyncio
async def test_backoff_doubles_delay():
    llm = MockModel(max_retries=3, base_retry_delay=0.5)
    llm.complete_impl_mock.side_effect = [Exception("1"), Exception("2"), Exception("3"), ANSWER]

    with patch("crypto_voice_lib.llm_core.base.base.asyncio.sleep", new_callable=AsyncMock) as sleep_mock:
        await llm.complete(MESSAGES, [])

    assert [c.args[0] for c in sleep_mock.call_args_list] == [0.5, 1.0, 2.0]


@pytest.mark.asyncio
async def test_anthropic_retry_integration():
    """AnthropicModel goes through the shared retry logic."""
    model = AnthropicModel(client=AsyncMock(), model_name="test-model", max_retries=2, base_retry_delay=0.01)

    with patch.object(model, "_complete_impl", side_effect=[Exception("Anthropic Fail"), ANSWER]) as mock_impl:
        result = await model.complete(MESSAGES, [])

        assert result.text == "Success"
        assert mock_impl.call_count == 2


@pytest.mark.asyncio
async def test_openai_retry_integration():
    model = OpenAIModel(client=AsyncMock(), model_name="test-model", max_retries=2, base_retry_delay=0.01)

    with patch.object(
        model, "_complete_impl", side_effect=[Exception("Fail 1"), Exception("Fail 2"), ANSWER]
    ) as mock_impl:
        result = await model.complete(MESSAGES, [])

        assert result.text == "Success"
        assert mock_impl.call_count == 3
