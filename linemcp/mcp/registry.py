"""Registry of method handlers, tools, resources and resource templates."""

import importlib
import logging
import re
from typing import Any, Callable, Mapping, Sequence
from urllib.parse import unquote

from pydantic import BaseModel, ValidationError

from linemcp.mcp.errors import (
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    MCPError,
    summarize_validation_error,
)
from linemcp.mcp.models import (
    ReadResourceParams,
    ReadResourceResult,
    Resource,
    ResourcesListResult,
    ResourceTemplate,
    ResourceTemplatesListResult,
    Tool,
    ToolCallParams,
    ToolCallResult,
    ToolsListResult,
)

logger = logging.getLogger(__name__)

# Type aliases for the callables the registry stores
ContentItem = BaseModel | Mapping[str, Any]
MethodHandler = Callable[[dict[str, Any]], Any]
ToolHandler = Callable[[dict[str, Any]], Sequence[ContentItem]]
ResourceReader = Callable[[str], Sequence[ContentItem]]

_TEMPLATE_PARAM = re.compile(r"\{([^{}]+)\}")


def content_to_dict(item: ContentItem) -> dict[str, Any]:
    """Normalize a content item (pydantic model or mapping) to a plain dict."""
    if isinstance(item, BaseModel):
        return item.model_dump()
    if isinstance(item, Mapping):
        return dict(item)
    raise TypeError(f"Unsupported content item: {type(item).__name__}")


def compile_template(uri_template: str) -> re.Pattern[str]:
    """Compile a `{param}` URI template into an anchored regular expression."""
    pattern = []
    position = 0
    for match in _TEMPLATE_PARAM.finditer(uri_template):
        pattern.append(re.escape(uri_template[position:match.start()]))
        pattern.append("([^/]+)")
        position = match.end()
    pattern.append(re.escape(uri_template[position:]))
    return re.compile("^" + "".join(pattern) + "$")


def template_params(uri_template: str) -> list[str]:
    """Placeholder names of a URI template, in order of appearance."""
    return _TEMPLATE_PARAM.findall(uri_template)


class ToolDefinition:
    """A registered tool with its metadata and handler."""

    def __init__(
        self,
        name: str,
        description: str,
        input_schema: dict[str, Any],
        handler: ToolHandler,
    ):
        self.name = name
        self.description = description
        self.input_schema = input_schema
        self.handler = handler

    def to_mcp_tool(self) -> Tool:
        """Convert to the descriptor reported by list_tools (no handler)."""
        return Tool(
            name=self.name,
            description=self.description,
            input_schema=self.input_schema,
        )


class Registry:
    """
    Sole owner of method handlers and tool/resource descriptors.

    Registering a tool, resource, template or reader (re)installs the matching
    built-in methods, so introspection always reflects the current contents.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, MethodHandler] = {}
        self._tools: dict[str, ToolDefinition] = {}
        self._resources: dict[str, Resource] = {}
        self._templates: dict[str, ResourceTemplate] = {}
        self._template_patterns: dict[str, tuple[re.Pattern[str], list[str]]] = {}
        self._reader: ResourceReader | None = None
        self._providers: set[str] = set()

    # -------------------------------------------------------------------------
    # Method handlers
    # -------------------------------------------------------------------------

    def register_handler(self, method: str, handler: MethodHandler) -> None:
        """Install or replace the handler for a method name."""
        if not method:
            raise ValueError("method name must not be empty")
        self._handlers[method] = handler

    def get_handler(self, method: str) -> MethodHandler | None:
        """Get the handler for a method name."""
        return self._handlers.get(method)

    @property
    def method_names(self) -> list[str]:
        """Names of all installed methods, in installation order."""
        return list(self._handlers)

    # -------------------------------------------------------------------------
    # Tools
    # -------------------------------------------------------------------------

    def register_tool(
        self,
        name: str,
        description: str,
        input_schema: dict[str, Any],
        handler: ToolHandler,
    ) -> None:
        """Register a tool and (re)install list_tools and call_tool."""
        if name in self._tools:
            logger.warning(f"Tool '{name}' already registered, overwriting")
        self._tools[name] = ToolDefinition(
            name=name,
            description=description,
            input_schema=input_schema,
            handler=handler,
        )
        self.register_handler("list_tools", self._list_tools)
        self.register_handler("call_tool", self._call_tool)
        logger.info(f"Registered tool: {name}")

    def get_tool(self, name: str) -> ToolDefinition | None:
        """Get a tool by name."""
        return self._tools.get(name)

    def list_tools(self) -> list[Tool]:
        """List all registered tools in registration order."""
        return [tool.to_mcp_tool() for tool in self._tools.values()]

    @property
    def tool_count(self) -> int:
        """Return the number of registered tools."""
        return len(self._tools)

    def _list_tools(self, params: dict[str, Any]) -> dict[str, Any]:
        return ToolsListResult(tools=self.list_tools()).model_dump()

    def _call_tool(self, params: dict[str, Any]) -> dict[str, Any]:
        try:
            call_params = ToolCallParams(**params)
        except ValidationError as e:
            message = summarize_validation_error(e)
            raise MCPError(INVALID_PARAMS, f"Invalid call_tool params: {message}") from e

        tool = self.get_tool(call_params.name) if call_params.name is not None else None
        if tool is None:
            raise MCPError(METHOD_NOT_FOUND, f"Unknown tool: {call_params.name}")

        logger.info(f"Calling tool: {tool.name}")
        content = tool.handler(call_params.arguments)
        result = ToolCallResult(content=[content_to_dict(item) for item in content])
        return result.model_dump()

    # -------------------------------------------------------------------------
    # Resources
    # -------------------------------------------------------------------------

    def register_resource(
        self,
        uri: str,
        name: str,
        mime_type: str | None = None,
        description: str | None = None,
    ) -> None:
        """Register a static resource and (re)install list_resources."""
        if uri in self._resources:
            logger.warning(f"Resource '{uri}' already registered, overwriting")
        self._resources[uri] = Resource(
            uri=uri, name=name, mime_type=mime_type, description=description
        )
        self.register_handler("list_resources", self._list_resources)
        logger.info(f"Registered resource: {uri}")

    def list_resources(self) -> list[Resource]:
        """List all registered resources in registration order."""
        return list(self._resources.values())

    @property
    def resource_count(self) -> int:
        """Return the number of registered resources."""
        return len(self._resources)

    def _list_resources(self, params: dict[str, Any]) -> dict[str, Any]:
        return ResourcesListResult(resources=self.list_resources()).model_dump()

    def register_resource_template(
        self,
        uri_template: str,
        name: str,
        mime_type: str | None = None,
        description: str | None = None,
    ) -> None:
        """Register a resource template and (re)install list_resource_templates."""
        if uri_template in self._templates:
            logger.warning(f"Resource template '{uri_template}' already registered, overwriting")
        self._templates[uri_template] = ResourceTemplate(
            uri_template=uri_template,
            name=name,
            mime_type=mime_type,
            description=description,
        )
        self._template_patterns[uri_template] = (
            compile_template(uri_template),
            template_params(uri_template),
        )
        self.register_handler("list_resource_templates", self._list_resource_templates)
        logger.info(f"Registered resource template: {uri_template}")

    def list_resource_templates(self) -> list[ResourceTemplate]:
        """List all registered resource templates in registration order."""
        return list(self._templates.values())

    def _list_resource_templates(self, params: dict[str, Any]) -> dict[str, Any]:
        return ResourceTemplatesListResult(
            resource_templates=self.list_resource_templates()
        ).model_dump()

    def match_template(self, uri: str) -> tuple[ResourceTemplate, dict[str, str]] | None:
        """
        Find the first registered template matching a URI.

        Returns the template and its URL-decoded parameter values, or None.
        """
        for uri_template, (pattern, names) in self._template_patterns.items():
            match = pattern.match(uri)
            if match:
                values = {name: unquote(value) for name, value in zip(names, match.groups())}
                return self._templates[uri_template], values
        return None

    def set_resource_reader(self, reader: ResourceReader) -> None:
        """Set the process-wide resource reader and (re)install read_resource."""
        if self._reader is not None:
            logger.warning("Resource reader already set, overwriting")
        self._reader = reader
        self.register_handler("read_resource", self._read_resource)

    def _read_resource(self, params: dict[str, Any]) -> dict[str, Any]:
        try:
            read_params = ReadResourceParams(**params)
        except ValidationError as e:
            message = summarize_validation_error(e)
            raise MCPError(INVALID_PARAMS, f"Invalid read_resource params: {message}") from e
        if read_params.uri is None:
            raise MCPError(INVALID_PARAMS, "Missing required parameter: uri")

        if self._reader is None:
            raise MCPError(METHOD_NOT_FOUND, "Method not found: read_resource")
        contents = self._reader(read_params.uri)
        result = ReadResourceResult(contents=[content_to_dict(item) for item in contents])
        return result.model_dump()

    # -------------------------------------------------------------------------
    # Providers
    # -------------------------------------------------------------------------

    def load_provider(self, provider_name: str) -> bool:
        """
        Load a provider module and register its tools and resources.

        Providers are expected to be in linemcp/tools/<provider_name>/
        and have a register_tools(registry) function.
        """
        if provider_name in self._providers:
            logger.debug(f"Provider '{provider_name}' already loaded")
            return True

        module_path = f"linemcp.tools.{provider_name}.tools"
        try:
            module = importlib.import_module(module_path)
        except ImportError as e:
            logger.warning(f"Could not import provider '{provider_name}': {e}")
            return False

        if not hasattr(module, "register_tools"):
            logger.warning(f"Provider '{provider_name}' has no register_tools function")
            return False

        module.register_tools(self)
        self._providers.add(provider_name)
        logger.info(f"Loaded provider: {provider_name}")
        return True

    def load_providers(self, provider_names: list[str]) -> dict[str, bool]:
        """Load multiple providers, returning success status for each."""
        results = {}
        for name in provider_names:
            results[name] = self.load_provider(name)
        return results

    @property
    def provider_count(self) -> int:
        """Return the number of loaded providers."""
        return len(self._providers)
