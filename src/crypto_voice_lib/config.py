"""Environment-based configuration using pydantic-settings.

Values come from the process environment and from a ``.env`` file, which is
located with python-dotenv. Credentials are read under their conventional
names (``ANTHROPIC_API_KEY``, ``COINGECKO_PRO_API_KEY`` ...); tuning knobs use
the ``CRYPTO_VOICE_`` prefix::

    CRYPTO_VOICE_MODEL_PROVIDER=openai
    CRYPTO_VOICE_CACHE_TTL=30
    CRYPTO_VOICE_MAX_ROUNDS=3
"""

from __future__ import annotations

from typing import Literal, Optional

from dotenv import find_dotenv
from pydantic import AliasChoices, Field, PositiveFloat, PositiveInt, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .llm_core.exceptions import ConfigurationError

ModelProvider = Literal["anthropic", "openai", "gemini"]

DEFAULT_MCP_SERVER_URL = "https://mcp.pro-api.coingecko.com/sse"


class Settings(BaseSettings):
    """Settings for the crypto voice service."""

    model_config = SettingsConfigDict(
        env_prefix="CRYPTO_VOICE_",
        env_file=find_dotenv(usecwd=True) or None,
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Language model
    model_provider: ModelProvider = "anthropic"
    model_name: Optional[str] = Field(default=None, description="Vendor model id; vendor default when unset")
    max_output_tokens: PositiveInt = 1000
    model_max_retries: int = Field(default=2, ge=0, le=10)
    model_retry_delay: PositiveFloat = 0.5
    anthropic_api_key: Optional[SecretStr] = Field(
        default=None, validation_alias=AliasChoices("ANTHROPIC_API_KEY", "CRYPTO_VOICE_ANTHROPIC_API_KEY")
    )
    openai_api_key: Optional[SecretStr] = Field(
        default=None, validation_alias=AliasChoices("OPENAI_API_KEY", "CRYPTO_VOICE_OPENAI_API_KEY")
    )
    openai_base_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("OPENAI_BASE_URL", "CRYPTO_VOICE_OPENAI_BASE_URL")
    )
    gemini_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY", "CRYPTO_VOICE_GEMINI_API_KEY"),
    )

    # CoinGecko MCP server
    coingecko_pro_api_key: Optional[SecretStr] = Field(
        default=None, validation_alias=AliasChoices("COINGECKO_PRO_API_KEY", "CRYPTO_VOICE_COINGECKO_PRO_API_KEY")
    )
    coingecko_environment: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("COINGECKO_ENVIRONMENT", "CRYPTO_VOICE_COINGECKO_ENVIRONMENT")
    )
    mcp_server_url: str = Field(
        default=DEFAULT_MCP_SERVER_URL, validation_alias=AliasChoices("MCP_SERVER_URL", "CRYPTO_VOICE_MCP_SERVER_URL")
    )
    mcp_command: str = "npx"

    # Orchestration
    cache_ttl: float = Field(default=15.0, description="Tool result cache TTL in seconds, 0 disables the cache")
    cache_max_entries: PositiveInt = 1024
    max_rounds: int = Field(default=5, ge=0, le=20, description="Maximum tool rounds per query")
    tool_timeout: PositiveFloat = Field(default=10.0, description="Timeout for one tool call in seconds")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    def model_api_key(self) -> Optional[str]:
        """The API key of the selected model provider, if configured."""
        secret = {
            "anthropic": self.anthropic_api_key,
            "openai": self.openai_api_key,
            "gemini": self.gemini_api_key,
        }[self.model_provider]
        return secret.get_secret_value() if secret else None

    def require_credentials(self) -> None:
        """Check that every credential needed to serve queries is present.

        Raises:
            ConfigurationError: If the model key or the CoinGecko key is missing.
        """
        missing = []
        if not self.model_api_key():
            missing.append(f"{self.model_provider.upper()} API key")
        if not self.coingecko_pro_api_key:
            missing.append("COINGECKO_PRO_API_KEY")
        if missing:
            raise ConfigurationError(f"Missing required credentials: {', '.join(missing)}")
