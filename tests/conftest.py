from typing import Any, Dict

import pytest
import pytest_asyncio

from crypto_voice_lib.config import Settings
from crypto_voice_lib.llm_core import ResultCache, ToolCatalog, ToolExecutor
from helpers import FakeProvider, ManualClock


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def cache(clock: ManualClock) -> ResultCache:
    return ResultCache(ttl=15.0, clock=clock)


@pytest.fixture
def price_provider() -> FakeProvider:
    """Provider with a single ``get_price`` tool returning a fixed quote."""
    return FakeProvider({"get_price": {"price": 67000}})


@pytest_asyncio.fixture
async def price_catalog(price_provider: FakeProvider) -> ToolCatalog:
    return await ToolCatalog.load(price_provider)


@pytest.fixture
def price_executor(price_catalog: ToolCatalog, price_provider: FakeProvider, cache: ResultCache) -> ToolExecutor:
    return ToolExecutor(catalog=price_catalog, provider=price_provider, cache=cache, tool_timeout=1.0)


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the developer's environment and .env file."""
    values: Dict[str, Any] = {
        "anthropic_api_key": "test-anthropic-key",
        "coingecko_pro_api_key": "test-coingecko-key",
        "max_rounds": 3,
        "tool_timeout": 1.0,
    }
    return Settings(_env_file=None, **values)
