"""Expose the Anthropic (Claude) model backend."""

from .core import AnthropicModel

__all__ = ["AnthropicModel"]
