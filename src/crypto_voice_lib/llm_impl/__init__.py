"""Model backends for the supported vendors and a factory that picks one from settings."""

from typing import TYPE_CHECKING

from anthropic import AsyncAnthropic
from google import genai
from openai import AsyncOpenAI

from crypto_voice_lib.llm_core import ModelBackend
from crypto_voice_lib.llm_core.exceptions import ConfigurationError
from .anthropic_api import AnthropicModel
from .gemini import GeminiModel
from .openai_api import OpenAIModel

if TYPE_CHECKING:
    from crypto_voice_lib.config import Settings


def create_backend(settings: "Settings") -> ModelBackend:
    """Build the model backend selected by ``settings.model_provider``.

    Args:
        settings: Service settings holding the provider choice and its credential.

    Returns:
        A ready backend with its vendor client.

    Raises:
        ConfigurationError: If the provider's API key is missing.
    """
    api_key = settings.model_api_key()
    if not api_key:
        raise ConfigurationError(f"No API key configured for model provider '{settings.model_provider}'.")

    common = dict(
        model_name=settings.model_name,
        max_output_tokens=settings.max_output_tokens,
        max_retries=settings.model_max_retries,
        base_retry_delay=settings.model_retry_delay,
    )

    if settings.model_provider == "anthropic":
        return AnthropicModel(client=AsyncAnthropic(api_key=api_key), **common)  # type: ignore[arg-type]

    if settings.model_provider == "openai":
        client = AsyncOpenAI(api_key=api_key, base_url=settings.openai_base_url)
        return OpenAIModel(client=client, **common)  # type: ignore[arg-type]

    if settings.model_provider == "gemini":
        return GeminiModel(aclient=genai.Client(api_key=api_key).aio, **common)  # type: ignore[arg-type]

    raise ConfigurationError(f"Unknown model provider '{settings.model_provider}'.")


__all__ = ["AnthropicModel", "OpenAIModel", "GeminiModel", "create_backend"]
