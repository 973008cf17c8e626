"""Tool registry and dispatcher.

Domain modules describe their tools with ``ToolModule``; the registry
aggregates the resulting ``ModuleDefinition``s and is the one place a tool
call is validated, executed and translated into an MCP result or error.
"""

import inspect
import json
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Type

import pydantic
import structlog
from mcp.types import TextContent, Tool, ToolAnnotations
from pydantic import BaseModel, ConfigDict

from twentyi_mcp.errors import (
    MissingArgumentsError,
    RegistryError,
    UnknownToolError,
    to_mcp_error,
)
from twentyi_mcp.validation import check_arguments, from_pydantic

logger = structlog.get_logger()

HandlerFunc = Callable[[BaseModel], Awaitable[Any]]


class NoArguments(BaseModel):
    """Input for tools that take no arguments."""
    model_config = ConfigDict(extra="forbid")


@dataclass(frozen=True)
class ToolHandler:
    """A handler bound to the pydantic model its arguments are parsed into."""

    func: HandlerFunc
    input_model: Type[BaseModel]

    def parse(self, schema: Mapping[str, Any], arguments: Mapping[str, Any]) -> BaseModel:
        check_arguments(schema, arguments)
        try:
            return self.input_model.model_validate(dict(arguments))
        except pydantic.ValidationError as e:
            raise from_pydantic(e) from e

    async def __call__(self, params: BaseModel) -> Any:
        return await self.func(params)


@dataclass
class ModuleDefinition:
    """Tools contributed by one domain module.

    Every tool has exactly one handler and every handler one tool.
    """

    name: str
    tools: List[Tool] = field(default_factory=list)
    handlers: Dict[str, ToolHandler] = field(default_factory=dict)

    def __post_init__(self) -> None:
        names = [tool.name for tool in self.tools]
        if len(names) != len(set(names)):
            raise RegistryError(f"Module '{self.name}' declares a tool name twice")
        if set(names) != set(self.handlers):
            unmatched = sorted(set(names) ^ set(self.handlers))
            raise RegistryError(
                f"Module '{self.name}' has tools without handlers or handlers "
                f"without tools: {', '.join(unmatched)}"
            )


def _without_params(func: Callable[[], Awaitable[Any]]) -> HandlerFunc:
    async def call(params: BaseModel) -> Any:
        return await func()

    return call


def _input_model_for(func: HandlerFunc) -> Type[BaseModel]:
    params = list(inspect.signature(func).parameters.values())
    if not params:
        return NoArguments
    annotation = params[0].annotation
    if inspect.isclass(annotation) and issubclass(annotation, BaseModel):
        return annotation
    raise RegistryError(
        f"Handler '{func.__name__}' must annotate its argument with a pydantic model"
    )


class ToolModule:
    """Collects tool declarations for one domain module.

    Usage::

        module = ToolModule("domains")

        @module.tool(name="get_domain_info", title="Get Domain Info", read_only=True)
        async def get_domain_info(params: GetDomainInfoInput) -> Any:
            ...

        return module.definition()
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._tools: List[Tool] = []
        self._handlers: Dict[str, ToolHandler] = {}

    def tool(
        self,
        name: str,
        title: str,
        read_only: bool = False,
        destructive: bool = False,
        idempotent: Optional[bool] = None,
    ) -> Callable[[HandlerFunc], HandlerFunc]:
        def decorator(func: HandlerFunc) -> HandlerFunc:
            if name in self._handlers:
                raise RegistryError(f"Module '{self.name}' declares tool '{name}' twice")
            input_model = _input_model_for(func)
            description = inspect.cleandoc(func.__doc__ or title)
            self._tools.append(
                Tool(
                    name=name,
                    description=description,
                    inputSchema=input_model.model_json_schema(),
                    annotations=ToolAnnotations(
                        title=title,
                        readOnlyHint=read_only,
                        destructiveHint=destructive,
                        idempotentHint=read_only if idempotent is None else idempotent,
                        openWorldHint=True,
                    ),
                )
            )
            bound = func if inspect.signature(func).parameters else _without_params(func)
            self._handlers[name] = ToolHandler(func=bound, input_model=input_model)
            return func

        return decorator

    def definition(self) -> ModuleDefinition:
        return ModuleDefinition(name=self.name, tools=list(self._tools), handlers=dict(self._handlers))


class ToolRegistry:
    """Append-only name → (descriptor, handler) map with one dispatch entry point."""

    def __init__(self) -> None:
        self._tools: Dict[str, Tool] = {}
        self._handlers: Dict[str, ToolHandler] = {}
        self._owners: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def register(self, module: ModuleDefinition) -> None:
        """Add every tool of ``module``.

        Raises:
            RegistryError: A tool name is already registered. Nothing from
                ``module`` is added in that case.
        """
        for tool in module.tools:
            if tool.name in self._tools:
                raise RegistryError(
                    f"Tool '{tool.name}' from module '{module.name}' is already "
                    f"registered by module '{self._owners[tool.name]}'"
                )
        for tool in module.tools:
            self._tools[tool.name] = tool
            self._handlers[tool.name] = module.handlers[tool.name]
            self._owners[tool.name] = module.name
        logger.debug("tool_registered_module", module=module.name, tools=len(module.tools))

    def list_tools(self) -> List[Tool]:
        return list(self._tools.values())

    async def dispatch(
        self, name: str, arguments: Optional[Mapping[str, Any]]
    ) -> List[TextContent]:
        """Validate and run one tool call.

        Returns the JSON-serialised result as a single text content item.

        Raises:
            McpError: ``INVALID_REQUEST`` when ``arguments`` is missing,
                ``METHOD_NOT_FOUND`` for unknown tools, ``INVALID_PARAMS`` for
                argument errors and ``INTERNAL_ERROR`` for anything raised by
                the handler.
        """
        try:
            if arguments is None:
                raise MissingArgumentsError(name)
            handler = self._handlers.get(name)
            if handler is None:
                raise UnknownToolError(name)
            params = handler.parse(self._tools[name].inputSchema, arguments)
        except Exception as e:
            logger.info("tool_call_rejected", tool=name, error=str(e))
            raise to_mcp_error(e, name) from e

        try:
            result = await handler(params)
        except Exception as e:
            logger.warning(
                "tool_call_failed",
                tool=name,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise to_mcp_error(e, name, from_handler=True) from e

        return [TextContent(type="text", text=json.dumps(result, indent=2, default=str))]
