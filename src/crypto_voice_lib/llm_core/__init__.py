"""Public exports for the core orchestration abstractions and utilities."""

from .base import ModelBackend, ModelTurn, TextBlock, ToolCallBlock
from .exceptions import (
    CryptoVoiceError,
    ConfigurationError,
    CatalogLoadError,
    LLMToolError,
    ToolRegistrationError,
    ToolNotFoundError,
    ToolExecutionError,
    ToolValidationError,
    QueryError,
    QueryValidationError,
    ModelCallError,
    ModelResponseError,
    MaxRoundsExceededError,
    ConversationStateError,
)
from .formatting import format_query, SPEECH_INSTRUCTIONS
from .logger import get_logger, setup_logging
from .messages import (
    BaseMessage,
    UserMessage,
    AssistantMessage,
    ToolResultsMessage,
    ConversationState,
)
from .orchestration import ConversationOrchestrator, OrchestrationResult, OrchestratorState, StreamAccumulator
from .tools import (
    ToolDescriptor,
    ToolCallRequest,
    ToolCallResult,
    DataProvider,
    ToolCatalog,
    ResultCache,
    MISS,
    canonical_arguments,
    ToolExecutor,
    SchemaValidator,
)

__all__ = [
    "ModelBackend",
    "ModelTurn",
    "TextBlock",
    "ToolCallBlock",
    "CryptoVoiceError",
    "ConfigurationError",
    "CatalogLoadError",
    "LLMToolError",
    "ToolRegistrationError",
    "ToolNotFoundError",
    "ToolExecutionError",
    "ToolValidationError",
    "QueryError",
    "QueryValidationError",
    "ModelCallError",
    "ModelResponseError",
    "MaxRoundsExceededError",
    "ConversationStateError",
    "format_query",
    "SPEECH_INSTRUCTIONS",
    "get_logger",
    "setup_logging",
    "BaseMessage",
    "UserMessage",
    "AssistantMessage",
    "ToolResultsMessage",
    "ConversationState",
    "ConversationOrchestrator",
    "OrchestrationResult",
    "OrchestratorState",
    "StreamAccumulator",
    "ToolDescriptor",
    "ToolCallRequest",
    "ToolCallResult",
    "DataProvider",
    "ToolCatalog",
    "ResultCache",
    "MISS",
    "canonical_arguments",
    "ToolExecutor",
    "SchemaValidator",
]
