"""Expose the OpenAI chat completion model backend."""

from .core import OpenAIModel

__all__ = ["OpenAIModel"]
