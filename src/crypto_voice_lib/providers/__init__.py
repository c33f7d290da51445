"""In-process data providers."""

from .local import LocalToolProvider, LocalTool

__all__ = ["LocalToolProvider", "LocalTool"]
