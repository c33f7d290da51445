from typing import Annotated
from unittest.mock import patch

import pytest
from pydantic import Field

from crypto_voice_lib import CryptoVoiceService, Settings, VoiceResponse
from crypto_voice_lib.llm_core import (
    SPEECH_INSTRUCTIONS,
    CatalogLoadError,
    ConfigurationError,
    MaxRoundsExceededError,
    QueryError,
    QueryValidationError,
)
from crypto_voice_lib.providers import LocalToolProvider
from helpers import FakeProvider, ScriptedModel, text_turn, tool_turn


@pytest.fixture
def local_provider() -> LocalToolProvider:
    provider = LocalToolProvider()
    calls = []

    @provider.tool
    async def get_price(id: Annotated[str, Field(description="CoinGecko coin id")]) -> dict:
        """Current USD price of a coin."""
        calls.append(id)
        return {"price": 67000}

    provider.calls = calls  # type: ignore[attr-defined]
    return provider


@pytest.mark.asyncio
async def test_answer_round_trip(settings: Settings, local_provider: LocalToolProvider):
    model = ScriptedModel(
        [tool_turn(("toolu_1", "get_price", {"id": "bitcoin"})), text_turn("Bitcoin is at $67,000.")]
    )

    async with await CryptoVoiceService.create(settings, provider=local_provider, model=model) as service:
        answer = await service.answer("  What's the price of bitcoin?  ")

    assert answer == "Bitcoin is at $67,000."
    assert local_provider.calls == ["bitcoin"]  # type: ignore[attr-defined]
    # The model sees the formatted query
    first_message = model.calls[0][0]
    assert first_message.content.startswith("What's the price of bitcoin?\n\n")
    assert first_message.content.endswith(SPEECH_INSTRUCTIONS)
    assert model.closed


@pytest.mark.asyncio
async def test_respond_success_envelope(settings: Settings, local_provider: LocalToolProvider):
    service = await CryptoVoiceService.create(settings, provider=local_provider, model=ScriptedModel([text_turn("Hi.")]))

    response = await service.respond("hello")
    await service.shutdown()

    assert isinstance(response, VoiceResponse)
    assert response.success
    assert response.speech == "Hi."
    assert response.error is None
    assert response.query == "hello"


@pytest.mark.asyncio
async def test_respond_error_envelope(settings: Settings, local_provider: LocalToolProvider):
    model = ScriptedModel([tool_turn(("c", "get_price", {"id": "bitcoin"}))], repeat_last=True)
    service = await CryptoVoiceService.create(settings, provider=local_provider, model=model)

    response = await service.respond("loop forever")
    await service.shutdown()

    assert not response.success
    assert response.speech is None
    assert "round" in response.error
    # settings.max_rounds == 3
    assert len(model.calls) == 4


@pytest.mark.asyncio
async def test_answer_raises_query_errors(settings: Settings, local_provider: LocalToolProvider):
    model = ScriptedModel([tool_turn(("c", "get_price", {"id": "bitcoin"}))], repeat_last=True)

    async with await CryptoVoiceService.create(settings, provider=local_provider, model=model) as service:
        with pytest.raises(MaxRoundsExceededError):
            await service.answer("loop forever")


@pytest.mark.asyncio
@pytest.mark.parametrize("query", ["", "   "])
async def test_empty_query_rejected(settings: Settings, local_provider: LocalToolProvider, query: str):
    model = ScriptedModel([])

    async with await CryptoVoiceService.create(settings, provider=local_provider, model=model) as service:
        with pytest.raises(QueryValidationError):
            await service.answer(query)
        response = await service.respond(query)

    assert not response.success
    assert model.calls == []


@pytest.mark.asyncio
async def test_shutdown_is_idempotent(settings: Settings, local_provider: LocalToolProvider):
    model = ScriptedModel([])
    service = await CryptoVoiceService.create(settings, provider=local_provider, model=model)

    await service.shutdown()
    await service.shutdown()

    assert model.closed
    with pytest.raises(QueryError, match="shut down"):
        await service.answer("bitcoin?")

    response = await service.respond("bitcoin?")
    assert not response.success
    assert "shut down" in response.error


@pytest.mark.asyncio
async def test_provider_context_is_entered_and_exited(settings: Settings):
    class SessionProvider(FakeProvider):
        events: list = []

        async def __aenter__(self):
            self.events.append("enter")
            return self

        async def __aexit__(self, *exc_info):
            self.events.append("exit")

    provider = SessionProvider({"get_price": {"price": 1}})

    service = await CryptoVoiceService.create(settings, provider=provider, model=ScriptedModel([]))
    assert provider.events == ["enter"]

    await service.shutdown()
    assert provider.events == ["enter", "exit"]


@pytest.mark.asyncio
async def test_catalog_failure_closes_provider(settings: Settings):
    class BrokenProvider(FakeProvider):
        exited = False

        async def __aenter__(self):
            return self

        async def __aexit__(self, *exc_info):
            BrokenProvider.exited = True

        async def list_tools(self):
            raise ConnectionError("MCP server went away")

    with pytest.raises(CatalogLoadError):
        await CryptoVoiceService.create(settings, provider=BrokenProvider({}), model=ScriptedModel([]))

    assert BrokenProvider.exited


@pytest.mark.asyncio
async def test_create_requires_credentials(monkeypatch: pytest.MonkeyPatch):
    for name in ("ANTHROPIC_API_KEY", "COINGECKO_PRO_API_KEY", "CRYPTO_VOICE_MODEL_PROVIDER"):
        monkeypatch.delenv(name, raising=False)

    with pytest.raises(ConfigurationError, match="Missing required credentials"):
        await CryptoVoiceService.create(Settings(_env_file=None))


@pytest.mark.asyncio
async def test_create_builds_backend_from_settings(settings: Settings, local_provider: LocalToolProvider):
    model = ScriptedModel([text_turn("ok")])

    with patch("crypto_voice_lib.service.create_backend", return_value=model) as factory:
        async with await CryptoVoiceService.create(settings, provider=local_provider) as service:
            assert await service.answer("ping") == "ok"

    factory.assert_called_once_with(settings)
