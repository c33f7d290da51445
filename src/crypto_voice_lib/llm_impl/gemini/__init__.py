"""Expose the Gemini model backend."""

from .core import GeminiModel

__all__ = ["GeminiModel"]
