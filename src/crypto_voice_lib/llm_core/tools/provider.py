"""Protocol for the data services that back the tool catalog."""

from __future__ import annotations

from typing import Any, Dict, Protocol, Sequence, runtime_checkable

from .models import ToolDescriptor


@runtime_checkable
class DataProvider(Protocol):
    """
    A source of callable data operations, such as the CoinGecko MCP server.
    """

    async def list_tools(self) -> Sequence[ToolDescriptor]:
        """Returns the descriptors of every operation the provider offers."""
        ...

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> Any:
        """Invokes one operation and returns its raw result, raising on failure."""
        ...
