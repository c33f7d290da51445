"""Export the exception hierarchy used across startup, tool execution and query paths."""

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

__all__ = [
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
]
