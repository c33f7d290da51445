"""Expose plain Python callables as a DataProvider."""

import asyncio
import inspect
from dataclasses import dataclass
from typing import Annotated, Any, Callable, Dict, List, Optional, Tuple, Type, cast, get_args, get_origin

from pydantic import BaseModel, Field, ValidationError, create_model
from pydantic.fields import FieldInfo

from crypto_voice_lib.llm_core import ToolDescriptor, get_logger
from crypto_voice_lib.llm_core.exceptions import ToolNotFoundError, ToolRegistrationError, ToolValidationError
from crypto_voice_lib.llm_core.tools.schema import SchemaValidator

logger = get_logger(__name__)

_VARIADIC = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


@dataclass(frozen=True)
class LocalTool:
    descriptor: ToolDescriptor
    func: Callable[..., Any]
    args_model: Type[BaseModel]


def _parameter_field(tool_name: str, param: inspect.Parameter) -> Tuple[Any, FieldInfo]:
    """Build the ``create_model`` field definition for one function parameter.

    The annotation must be ``Annotated[<type>, Field(description="...")]``;
    the description is what the model reads to fill the argument in.

    Raises:
        ToolValidationError: For ``*args``/``**kwargs`` or a parameter without a description.
    """
    if param.kind in _VARIADIC:
        msg = f"Tool '{tool_name}' cannot take variadic parameter '{param.name}'."
        logger.error(msg)
        raise ToolValidationError(msg)

    description = None
    if get_origin(param.annotation) is Annotated:
        description = next(
            (meta.description for meta in get_args(param.annotation)[1:] if isinstance(meta, FieldInfo)),
            None,
        )
    if not description:
        msg = (
            f"Parameter '{param.name}' in tool '{tool_name}' is missing a description.\n"
            f"Usage: {param.name}: Annotated[Type, Field(description='...')] = ..."
        )
        logger.error(msg)
        raise ToolValidationError(msg)

    default = ... if param.default is inspect.Parameter.empty else param.default
    return param.annotation, Field(default=default, description=description)


class LocalToolProvider:
    """
    A DataProvider whose tools are Python functions.

    Parameter schemas are generated from the signature. Every parameter needs
    ``Annotated[<type>, Field(description="...")]`` and the function needs a
    docstring, which becomes the tool description::

        provider = LocalToolProvider()

        @provider.tool
        async def get_price(coin_id: Annotated[str, Field(description="CoinGecko coin id")]) -> dict:
            '''Current USD price of a coin.'''
            ...

    Sync functions run in a worker thread.
    """

    def __init__(self) -> None:
        self._tools: Dict[str, LocalTool] = {}

    def register(self, func: Callable[..., Any], name: Optional[str] = None, description: Optional[str] = None) -> None:
        """Register ``func`` as a tool.

        Raises:
            ToolRegistrationError: If a tool with the same name exists.
            ToolValidationError: If the docstring or a parameter description is missing.
        """
        tool = self._build_tool(func, name=name, description=description)
        if tool.descriptor.name in self._tools:
            msg = f"Tool '{tool.descriptor.name}' is already registered."
            logger.error(msg)
            raise ToolRegistrationError(msg)

        self._tools[tool.descriptor.name] = tool
        logger.info("Successfully registered tool: '%s'", tool.descriptor.name)

    def tool(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """A decorator to turn a function into a tool. Returns the function unchanged."""
        self.register(func)
        return func

    async def list_tools(self) -> List[ToolDescriptor]:
        return [tool.descriptor for tool in self._tools.values()]

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> Any:
        """Validate ``arguments`` against the generated model and call the function.

        Raises:
            ToolNotFoundError: If no tool is registered under ``name``.
            ToolValidationError: If the arguments do not fit the signature.
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(f"Tool '{name}' not found.")

        try:
            validated = tool.args_model(**arguments)
        except ValidationError as e:
            raise ToolValidationError(f"Argument validation failed: {e}") from e

        # Keep validated field objects (no model_dump) so nested models arrive as models.
        kwargs = {field: getattr(validated, field) for field in type(validated).model_fields}

        if inspect.iscoroutinefunction(tool.func):
            return await tool.func(**kwargs)
        return await asyncio.to_thread(tool.func, **kwargs)

    @staticmethod
    def _build_tool(func: Callable[..., Any], name: Optional[str], description: Optional[str]) -> LocalTool:
        tool_name = name or func.__name__
        doc = description or inspect.getdoc(func)
        if not doc:
            msg = f"Tool '{tool_name}' missing docstring. LLMs need a description of what the tool does."
            logger.error(msg)
            raise ToolValidationError(msg)

        fields: Dict[str, Tuple[Any, FieldInfo]] = {}
        for param in inspect.signature(func).parameters.values():
            if param.name == "self":
                continue
            fields[param.name] = _parameter_field(tool_name, param)

        args_model = create_model(f"{tool_name}Params", **cast(Dict[str, Any], fields))
        parameters = SchemaValidator.prepare(args_model.model_json_schema())

        return LocalTool(
            descriptor=ToolDescriptor(name=tool_name, description=doc, parameters=parameters),
            func=func,
            args_model=args_model,
        )
