"""
Custom exception classes for the crypto voice library.

The hierarchy mirrors how failures are treated at runtime:

* startup errors (``ConfigurationError``, ``CatalogLoadError``) stop the service
  from being created at all,
* tool errors (``LLMToolError`` and subclasses) are recoverable and are handed
  back to the model as failed tool results,
* query errors (``QueryError`` and subclasses) end a single query and are
  reported to the caller as one error outcome.
"""


class CryptoVoiceError(Exception):
    """Base exception for all library errors."""

    pass


class ConfigurationError(CryptoVoiceError):
    """Raised when required settings or credentials are missing or invalid."""

    pass


class CatalogLoadError(CryptoVoiceError):
    """Raised when the tool catalog cannot be built from the data provider."""

    pass


class LLMToolError(CryptoVoiceError):
    """Base exception for all tool-related errors."""

    pass


class ToolRegistrationError(LLMToolError):
    """Raised when there is an error registering a tool."""

    pass


class ToolNotFoundError(LLMToolError):
    """Raised when a requested tool is not found in the catalog."""

    pass


class ToolExecutionError(LLMToolError):
    """Raised when a tool fails during execution."""

    pass


class ToolValidationError(LLMToolError):
    """Raised when tool parameters or definition are invalid."""

    pass


class QueryError(CryptoVoiceError):
    """Base exception for errors that end a single query."""

    pass


class QueryValidationError(QueryError):
    """Raised when the inbound query is empty or blank."""

    pass


class ModelCallError(QueryError):
    """Raised when the language model API cannot be reached or rejects a request."""

    pass


class ModelResponseError(QueryError):
    """Raised when the model's final turn is empty or was cut off."""

    pass


class MaxRoundsExceededError(QueryError):
    """Raised when the model keeps requesting tools past the round limit."""

    pass


class ConversationStateError(QueryError):
    """Raised when tool calls and tool results in a conversation do not pair up."""

    pass
