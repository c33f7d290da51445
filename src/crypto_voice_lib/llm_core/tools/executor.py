"""Executes model-requested tool calls against the data provider."""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..exceptions import ToolExecutionError, ToolNotFoundError, ToolValidationError
from ..logger import get_logger
from .cache import MISS, CacheKey, ResultCache, canonical_arguments
from .catalog import ToolCatalog
from .models import ToolCallRequest, ToolCallResult
from .provider import DataProvider

logger = get_logger(__name__)


@dataclass(frozen=True)
class _Outcome:
    """What a provider call produced, independent of the request that asked for it."""

    success: bool
    # The serialized payload, or the error message of a failed call.
    content: str


class ToolExecutor:
    """Runs tool calls and normalizes every outcome into a ``ToolCallResult``.

    A failing tool call never raises out of :meth:`execute`: unknown tools,
    malformed arguments, provider errors and timeouts all become failed results
    so the model can explain or route around them in its answer. So does a
    result that cannot be serialized for the model.

    With a cache, identical calls (same tool, same canonical arguments) that
    arrive while the first one is still running wait for its result instead of
    reaching the provider again.
    """

    def __init__(
        self,
        *,
        catalog: ToolCatalog,
        provider: DataProvider,
        cache: Optional[ResultCache] = None,
        tool_timeout: Optional[float] = 10.0,
    ) -> None:
        """Initialize the executor.

        Args:
            catalog: Catalog used to resolve tool names.
            provider: Data provider that performs the calls.
            cache: Optional shared result cache.
            tool_timeout: Timeout in seconds for a single provider call, or None for no limit.
        """
        self._catalog = catalog
        self._provider = provider
        self._cache = cache
        self._tool_timeout = tool_timeout
        self._in_flight: Dict[CacheKey, "asyncio.Future[_Outcome]"] = {}

    async def execute(self, request: ToolCallRequest) -> ToolCallResult:
        """Execute a single tool call request.

        Args:
            request: The tool call request containing id, name and arguments.

        Returns:
            The result of the tool execution, including any errors.
        """
        logger.debug("Handling tool call: %s (ID: %s)", request.name, request.call_id)

        try:
            arguments = self._normalize_arguments(request.name, request.arguments)
        except ToolValidationError as exc:
            logger.warning("Argument normalization failed for '%s': %s", request.name, exc)
            return ToolCallResult.failure(request, str(exc))

        if self._cache is not None:
            cached = self._cache.get(request.name, arguments)
            if cached is not MISS:
                return self._to_result(request, self._serialize_outcome(request.name, cached))

        if request.name not in self._catalog:
            msg = str(ToolNotFoundError(f"Tool '{request.name}' is not available."))
            logger.warning(msg)
            return ToolCallResult.failure(request, msg)

        if self._cache is None:
            outcome = await self._fetch(request.name, arguments)
        else:
            outcome = await self._shared_fetch(request.name, arguments)
        return self._to_result(request, outcome)

    async def execute_all(self, requests: Sequence[ToolCallRequest]) -> List[ToolCallResult]:
        """Execute every request of one round concurrently.

        All requests are dispatched before any result is awaited. The returned
        list follows the order of ``requests``; each result carries the call id
        of the request it answers.
        """
        if not requests:
            return []

        logger.info("Executing %d tool call(s) in parallel.", len(requests))
        # gather keeps argument order, whatever order the calls finish in
        results = await asyncio.gather(*(self.execute(request) for request in requests))
        return list(results)

    async def _shared_fetch(self, name: str, arguments: Dict[str, Any]) -> _Outcome:
        """Fetch through the provider, joining an identical call that is still in flight.

        The provider call runs as its own task. A caller that is cancelled stops
        waiting, but the call still completes for the others and fills the cache.
        """
        key: CacheKey = (name, canonical_arguments(arguments))
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch_once(key, name, arguments))
            self._in_flight[key] = task
        else:
            logger.debug("Joining in-flight call to '%s'.", name)
        return await asyncio.shield(task)

    async def _fetch_once(self, key: CacheKey, name: str, arguments: Dict[str, Any]) -> _Outcome:
        try:
            return await self._fetch(name, arguments)
        finally:
            self._in_flight.pop(key, None)

    async def _fetch(self, name: str, arguments: Dict[str, Any]) -> _Outcome:
        started = time.perf_counter()
        try:
            value = await self._call_provider(name, arguments)
        except Exception as exc:
            msg = f"Error calling tool '{name}': {exc}"
            logger.warning("%s (%s)", msg, type(exc).__name__)
            return _Outcome(success=False, content=msg)

        logger.info("Tool '%s' completed in %.0fms.", name, (time.perf_counter() - started) * 1000)

        outcome = self._serialize_outcome(name, value)
        # Values that fail to serialize are never cached.
        if outcome.success and self._cache is not None:
            self._cache.put(name, arguments, value)
        return outcome

    async def _call_provider(self, name: str, arguments: Dict[str, Any]) -> Any:
        """Call the provider, bounded by the configured timeout.

        Raises:
            ToolExecutionError: If the call times out.
        """
        try:
            return await asyncio.wait_for(self._provider.call_tool(name, arguments), timeout=self._tool_timeout)
        except asyncio.TimeoutError as exc:
            raise ToolExecutionError(f"Tool execution timed out after {self._tool_timeout} seconds.") from exc

    def _serialize_outcome(self, name: str, value: Any) -> _Outcome:
        try:
            content = self.serialize(value)
        except (TypeError, ValueError) as exc:
            msg = f"Tool '{name}' returned a result that cannot be serialized: {exc}"
            logger.warning(msg)
            return _Outcome(success=False, content=msg)
        return _Outcome(success=True, content=content)

    @staticmethod
    def _to_result(request: ToolCallRequest, outcome: _Outcome) -> ToolCallResult:
        if not outcome.success:
            return ToolCallResult.failure(request, outcome.content)
        content = outcome.content
        logger.debug(
            "Tool '%s' result: %s", request.name, content[:200] + "..." if len(content) > 200 else content
        )
        return ToolCallResult(call_id=request.call_id, name=request.name, content=content, success=True)

    @staticmethod
    def serialize(value: Any) -> str:
        """Turn a raw provider value into the string handed to the model.

        Raises:
            TypeError: If the value holds keys JSON cannot represent.
            ValueError: If the value is circular.
        """
        if isinstance(value, str):
            return value
        return json.dumps(value, ensure_ascii=False, default=str)

    @staticmethod
    def _normalize_arguments(tool_name: str, raw_args: Any) -> Dict[str, Any]:
        """Normalize tool arguments into a dictionary.

        Handles JSON strings, dictionaries, or None values.

        Raises:
            ToolValidationError: If arguments cannot be parsed or are not an object.
        """
        if raw_args is None or raw_args == "":
            return {}

        if isinstance(raw_args, dict):
            return raw_args

        if isinstance(raw_args, str):
            try:
                parsed = json.loads(raw_args)
            except json.JSONDecodeError as exc:
                raise ToolValidationError(f"Failed to parse arguments for tool '{tool_name}': {exc}") from exc
            if parsed is None:
                return {}
            if isinstance(parsed, dict):
                return parsed

        raise ToolValidationError(f"Arguments for tool '{tool_name}' must be a JSON object.")
