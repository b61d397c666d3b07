"""Tool decorator and registration helpers for provider modules."""

from typing import Any, Callable

from linemcp.mcp.registry import Registry, ToolHandler


def tool(
    name: str,
    description: str,
    input_schema: dict[str, Any],
) -> Callable[[ToolHandler], ToolHandler]:
    """
    Decorator to mark a function as an MCP tool.

    Usage:
        @tool(
            name="hello_world",
            description="Say hello to someone",
            input_schema={"type": "object", "properties": {}}
        )
        def hello(arguments: dict) -> list[TextContent]:
            return [TextContent(text="Hello!")]

    The function is returned unchanged with _tool_metadata attached.
    """
    def decorator(func: ToolHandler) -> ToolHandler:
        func._tool_metadata = {  # type: ignore[attr-defined]
            "name": name,
            "description": description,
            "input_schema": input_schema,
        }
        return func

    return decorator


def get_tool_metadata(func: Callable) -> dict[str, Any] | None:
    """Get tool metadata from a decorated function."""
    return getattr(func, "_tool_metadata", None)


def register_decorated(registry: Registry, *funcs: ToolHandler) -> None:
    """Register functions decorated with @tool, in the order given."""
    for func in funcs:
        metadata = get_tool_metadata(func)
        if metadata is None:
            raise ValueError(f"{func.__name__} is not decorated with @tool")
        registry.register_tool(handler=func, **metadata)
