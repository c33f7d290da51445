"""Crypto Voice Library - spoken answers to cryptocurrency questions via LLM tool calling."""

from .llm_core import (
    ConversationOrchestrator,
    OrchestrationResult,
    OrchestratorState,
    ModelBackend,
    ModelTurn,
    ToolCatalog,
    ToolExecutor,
    ResultCache,
    ToolDescriptor,
    ToolCallRequest,
    ToolCallResult,
    DataProvider,
    CryptoVoiceError,
    QueryError,
    format_query,
)
from .config import Settings
from .llm_impl import AnthropicModel, OpenAIModel, GeminiModel, create_backend
from .mcp_wrapper import MCPDataProvider, CoinGeckoMCPProvider
from .providers import LocalToolProvider
from .service import CryptoVoiceService, VoiceResponse

__all__ = [
    "ConversationOrchestrator",
    "OrchestrationResult",
    "OrchestratorState",
    "ModelBackend",
    "ModelTurn",
    "ToolCatalog",
    "ToolExecutor",
    "ResultCache",
    "ToolDescriptor",
    "ToolCallRequest",
    "ToolCallResult",
    "DataProvider",
    "CryptoVoiceError",
    "QueryError",
    "format_query",
    "Settings",
    "AnthropicModel",
    "OpenAIModel",
    "GeminiModel",
    "create_backend",
    "MCPDataProvider",
    "CoinGeckoMCPProvider",
    "LocalToolProvider",
    "CryptoVoiceService",
    "VoiceResponse",
]
