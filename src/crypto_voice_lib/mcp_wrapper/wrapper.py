"""Serve MCP server tools as a DataProvider through an async stdio client session."""

from contextlib import AsyncExitStack
from types import TracebackType
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Type, cast

from mcp import ClientSession
from mcp.client.stdio import StdioServerParameters, stdio_client
from mcp.types import CallToolResult, TextContent

from crypto_voice_lib.llm_core import ToolDescriptor, get_logger
from crypto_voice_lib.llm_core.exceptions import ConfigurationError, ToolExecutionError

if TYPE_CHECKING:
    from crypto_voice_lib.config import Settings

logger = get_logger(__name__)

__all__ = ["MCPDataProvider", "CoinGeckoMCPProvider"]

CLIENT_NAME = "coingecko-voice-client"


class MCPDataProvider:
    """DataProvider backed by a Model Context Protocol (MCP) server started over stdio."""

    def __init__(self, command: str, args: list[str], env: Optional[dict[str, str]] = None):
        """Initializes the provider with parameters for the MCP server process.

        Args:
            command: The command to run the server.
            args: List of arguments for the command.
            env: Optional extra environment variables for the server process.
        """
        self._server_params = StdioServerParameters(command=command, args=args, env=env)
        self._session: Optional[ClientSession] = None
        self._exit_stack = AsyncExitStack()

    @property
    def connected(self) -> bool:
        return self._session is not None

    async def __aenter__(self) -> "MCPDataProvider":
        """Opens the connection (transport) and initializes the session.

        Returns:
            The connected provider.
        """
        logger.debug("Starting MCP server: %s %s", self._server_params.command, self._server_params.args[:2])
        try:
            read, write = await self._exit_stack.enter_async_context(stdio_client(self._server_params))
            self._session = await self._exit_stack.enter_async_context(ClientSession(read, write))
            await self._session.initialize()
        except BaseException:
            await self._exit_stack.aclose()
            self._session = None
            raise
        logger.info("MCP client session initialized successfully.")
        return self

    async def __aexit__(
        self, exc_type: Optional[Type[BaseException]], exc_val: Optional[BaseException], exc_tb: Optional[TracebackType]
    ) -> None:
        """Cleanly closes all connections."""
        logger.debug("Closing MCP client session...")
        await self._exit_stack.aclose()
        self._session = None
        logger.info("MCP client session closed.")

    def _require_session(self) -> ClientSession:
        if not self._session:
            raise RuntimeError("MCP client is not connected. Use 'async with'.")
        return self._session

    async def list_tools(self) -> List[ToolDescriptor]:
        """Lists the server's tools as descriptors.

        Raises:
            RuntimeError: If the MCP Client is not connected.
        """
        session = self._require_session()
        logger.debug("Fetching tools from MCP server...")
        result = await session.list_tools()
        logger.info("Found %d tools from MCP server.", len(result.tools))

        return [
            ToolDescriptor(
                name=tool.name,
                description=tool.description or f"Tool {tool.name} provided by MCP server.",
                parameters=dict(tool.inputSchema or {}),
            )
            for tool in result.tools
        ]

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> str:
        """Calls one server tool and returns its content flattened to text.

        Raises:
            RuntimeError: If the MCP Client is not connected.
            ToolExecutionError: If the server reports the call as failed.
        """
        session = self._require_session()
        logger.info("Delegating tool '%s' to MCP server...", name)
        logger.debug("Tool arguments: %s", arguments)

        mcp_result = await session.call_tool(name, arguments=arguments)
        text = self.flatten_content(mcp_result)

        if mcp_result.isError:
            raise ToolExecutionError(text or f"MCP tool '{name}' reported an error.")
        return text

    @staticmethod
    def flatten_content(result: CallToolResult) -> str:
        """Joins MCP content blocks into one string; non-text blocks are passed on as their JSON form."""
        if not result.content:
            return "Success"

        output = []
        for c in result.content:
            if c.type == "text":
                output.append(cast(TextContent, c).text)
            else:
                output.append(c.model_dump_json(by_alias=True, exclude_none=True))
        return "\n".join(output)


class CoinGeckoMCPProvider(MCPDataProvider):
    """The CoinGecko Pro MCP server, reached through the ``mcp-remote`` stdio bridge."""

    @classmethod
    def from_settings(cls, settings: "Settings") -> "CoinGeckoMCPProvider":
        """Builds the ``npx mcp-remote`` command line from settings.

        Raises:
            ConfigurationError: If no CoinGecko Pro API key is configured.
        """
        if not settings.coingecko_pro_api_key:
            raise ConfigurationError("COINGECKO_PRO_API_KEY is required for the CoinGecko MCP connection.")

        api_key = settings.coingecko_pro_api_key.get_secret_value()
        env: Dict[str, str] = {"COINGECKO_PRO_API_KEY": api_key}
        args = ["-y", "mcp-remote", settings.mcp_server_url, "--header", f"x-cg-pro-api-key: {api_key}"]
        if settings.coingecko_environment:
            env["COINGECKO_ENVIRONMENT"] = settings.coingecko_environment

        return cls(command=settings.mcp_command, args=args, env=env)
