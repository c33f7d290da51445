from .models import ToolDescriptor, ToolCallRequest, ToolCallResult
from .provider import DataProvider
from .catalog import ToolCatalog
from .cache import ResultCache, CacheEntry, MISS, canonical_arguments
from .executor import ToolExecutor
from .schema import SchemaValidator

__all__ = [
    "ToolDescriptor",
    "ToolCallRequest",
    "ToolCallResult",
    "DataProvider",
    "ToolCatalog",
    "ResultCache",
    "CacheEntry",
    "MISS",
    "canonical_arguments",
    "ToolExecutor",
    "SchemaValidator",
]
