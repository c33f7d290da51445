"""MCP-backed data providers."""

from .wrapper import MCPDataProvider, CoinGeckoMCPProvider

__all__ = ["MCPDataProvider", "CoinGeckoMCPProvider"]
