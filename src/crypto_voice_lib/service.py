"""The voice answering service: owns the provider session, catalog, cache and model backend."""

from __future__ import annotations

from contextlib import AsyncExitStack
from datetime import datetime, timezone
from types import TracebackType
from typing import Callable, Optional, Type

from pydantic import BaseModel, Field

from .config import Settings
from .llm_core import (
    ConversationOrchestrator,
    CryptoVoiceError,
    DataProvider,
    ModelBackend,
    QueryError,
    QueryValidationError,
    ResultCache,
    ToolCatalog,
    ToolExecutor,
    format_query,
    get_logger,
)
from .llm_impl import create_backend
from .mcp_wrapper import CoinGeckoMCPProvider

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VoiceResponse(BaseModel):
    """Envelope handed to the voice front end for a single query.

    Exactly one of ``speech`` and ``error`` is set.
    """

    success: bool
    query: str
    speech: Optional[str] = None
    error: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utcnow)


class CryptoVoiceService:
    """
    Answers spoken cryptocurrency questions.

    Build one with :meth:`create` (or assemble the parts yourself for tests),
    share it between requests, and call :meth:`shutdown` when done. It is also
    an async context manager::

        async with await CryptoVoiceService.create() as service:
            print(await service.answer("What is the price of bitcoin?"))
    """

    def __init__(
        self,
        orchestrator: ConversationOrchestrator,
        *,
        formatter: Callable[[str], str] = format_query,
        exit_stack: Optional[AsyncExitStack] = None,
    ) -> None:
        """Initialize the service from already built parts.

        Args:
            orchestrator: The orchestrator that answers formatted queries.
            formatter: Turns the raw query into the model's user message.
            exit_stack: Resources (provider sessions) to release on shutdown.
        """
        self._orchestrator = orchestrator
        self._formatter = formatter
        self._exit_stack = exit_stack or AsyncExitStack()
        self._closed = False

    @classmethod
    async def create(
        cls,
        settings: Optional[Settings] = None,
        *,
        provider: Optional[DataProvider] = None,
        model: Optional[ModelBackend] = None,
    ) -> "CryptoVoiceService":
        """Connect to the data provider, load the tool catalog and build the service.

        Args:
            settings: Settings to use. Loaded from the environment when omitted.
            provider: Data provider to use instead of the CoinGecko MCP server.
                It is used as an async context manager if it is one.
            model: Model backend to use instead of the one named in settings.
                The service closes it on shutdown.

        Returns:
            The ready service.

        Raises:
            ConfigurationError: If required credentials are missing.
            CatalogLoadError: If the tool catalog cannot be built.
        """
        settings = settings or Settings()
        if provider is None and model is None:
            settings.require_credentials()

        exit_stack = AsyncExitStack()
        try:
            if provider is None:
                provider = CoinGeckoMCPProvider.from_settings(settings)
            if hasattr(provider, "__aenter__"):
                await exit_stack.enter_async_context(provider)  # type: ignore[arg-type]

            catalog = await ToolCatalog.load(provider)
            model = model or create_backend(settings)
            exit_stack.push_async_callback(model.aclose)
        except BaseException:
            await exit_stack.aclose()
            raise

        executor = ToolExecutor(
            catalog=catalog,
            provider=provider,
            cache=ResultCache(ttl=settings.cache_ttl, max_entries=settings.cache_max_entries),
            tool_timeout=settings.tool_timeout,
        )
        orchestrator = ConversationOrchestrator(
            model=model, catalog=catalog, executor=executor, max_rounds=settings.max_rounds
        )
        logger.info(
            "Crypto voice service ready (provider=%s, model=%s, tools=%d).",
            settings.model_provider,
            model.model,
            len(catalog),
        )
        return cls(orchestrator, exit_stack=exit_stack)

    async def answer(self, query: str) -> str:
        """Answer ``query`` with a short, speakable text.

        Raises:
            QueryValidationError: If the query is empty.
            QueryError: If the query cannot be answered.
        """
        if self._closed:
            raise QueryError("CryptoVoiceService has been shut down.")
        if not query or not query.strip():
            raise QueryValidationError("Query cannot be empty")

        logger.info('Processing voice query: "%s"', query)
        result = await self._orchestrator.run(self._formatter(query.strip()))
        return result.content

    async def respond(self, query: str) -> VoiceResponse:
        """Like :meth:`answer`, but reports library errors inside the envelope instead of raising."""
        try:
            speech = await self.answer(query)
        except CryptoVoiceError as e:
            logger.error("Error processing voice query: %s", e)
            return VoiceResponse(success=False, query=query, error=str(e))
        return VoiceResponse(success=True, query=query, speech=speech)

    async def shutdown(self) -> None:
        """Close the provider session and model client. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        logger.info("Shutting down crypto voice service...")
        await self._exit_stack.aclose()

    async def __aenter__(self) -> "CryptoVoiceService":
        return self

    async def __aexit__(
        self, exc_type: Optional[Type[BaseException]], exc_val: Optional[BaseException], exc_tb: Optional[TracebackType]
    ) -> None:
        await self.shutdown()
