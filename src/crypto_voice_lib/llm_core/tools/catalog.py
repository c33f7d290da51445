"""Immutable catalog of the tools a model may call."""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Sequence

from ..exceptions import CatalogLoadError, LLMToolError
from ..logger import get_logger
from .models import ToolDescriptor
from .provider import DataProvider
from .schema import SchemaValidator

logger = get_logger(__name__)


class ToolCatalog:
    """
    A read-only mapping from tool name to ``ToolDescriptor``.

    The catalog is built once at startup (see :meth:`load`) and then shared by
    every query. Model backends turn ``descriptors`` into their own tool format.
    """

    def __init__(self, descriptors: Sequence[ToolDescriptor]) -> None:
        """Initialize the catalog.

        Args:
            descriptors: Tool descriptors with unique names.

        Raises:
            CatalogLoadError: If two descriptors share a name.
        """
        tools: Dict[str, ToolDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.name in tools:
                msg = f"Tool '{descriptor.name}' is provided more than once."
                logger.error(msg)
                raise CatalogLoadError(msg)
            tools[descriptor.name] = descriptor
        self._tools: Mapping[str, ToolDescriptor] = MappingProxyType(tools)

    @classmethod
    async def load(cls, provider: DataProvider) -> "ToolCatalog":
        """Fetch the provider's tools and build a catalog from them.

        Every parameter schema is resolved and sanitized before it is stored.

        Args:
            provider: The data provider to list tools from.

        Returns:
            The loaded catalog.

        Raises:
            CatalogLoadError: If the provider cannot list its tools or a tool is unusable.
        """
        try:
            raw_descriptors = await provider.list_tools()
        except Exception as e:
            msg = f"Failed to list tools from data provider: {e}"
            logger.error(msg, exc_info=True)
            raise CatalogLoadError(msg) from e

        descriptors: List[ToolDescriptor] = []
        for raw in raw_descriptors:
            try:
                parameters = SchemaValidator.prepare(raw.parameters)
            except LLMToolError as e:
                raise CatalogLoadError(f"Tool '{raw.name}' has an unusable parameter schema: {e}") from e
            descriptors.append(raw.model_copy(update={"parameters": parameters}))

        catalog = cls(descriptors)
        logger.info("Loaded tool catalog with %d tools: %s", len(catalog), ", ".join(catalog.names[:5]))
        return catalog

    @property
    def tools(self) -> Mapping[str, ToolDescriptor]:
        """The name to descriptor mapping. Read-only."""
        return self._tools

    @property
    def descriptors(self) -> List[ToolDescriptor]:
        return list(self._tools.values())

    @property
    def names(self) -> List[str]:
        return list(self._tools.keys())

    def get(self, name: str) -> Optional[ToolDescriptor]:
        return self._tools.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ToolDescriptor]:
        return iter(self._tools.values())
