"""Pydantic models for the line-delimited MCP JSON-RPC protocol."""

from typing import Any, Literal

from pydantic import (
    BaseModel,
    Field,
    StrictInt,
    StrictStr,
    confloat,
    field_validator,
    model_validator,
)

# Request ids round-trip unchanged: booleans are not ints, NaN and inf are not ids
RequestId = StrictInt | confloat(strict=True, allow_inf_nan=False) | StrictStr | None


class CompactModel(BaseModel):
    """Base model whose dumps omit optional fields that were never supplied."""

    def model_dump(self, **kwargs: Any) -> dict[str, Any]:
        kwargs.setdefault("exclude_none", True)
        return super().model_dump(**kwargs)


# =============================================================================
# JSON-RPC 2.0 Base Models
# =============================================================================


class JsonRpcRequest(BaseModel):
    """JSON-RPC 2.0 request object."""

    jsonrpc: Literal["2.0"] = "2.0"
    id: RequestId = None
    method: str
    params: dict[str, Any] = Field(default_factory=dict)

    @field_validator("params", mode="before")
    @classmethod
    def _default_params(cls, value: Any) -> Any:
        return {} if value is None else value


class JsonRpcError(BaseModel):
    """JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any = None

    def model_dump(self, **kwargs: Any) -> dict[str, Any]:
        """Serialize, leaving out data when there is none."""
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


class JsonRpcResponse(BaseModel):
    """JSON-RPC 2.0 response object carrying either a result or an error."""

    jsonrpc: Literal["2.0"] = "2.0"
    id: RequestId = None
    result: Any = None
    error: JsonRpcError | None = None

    @model_validator(mode="after")
    def _result_xor_error(self) -> "JsonRpcResponse":
        if self.error is not None and "result" in self.model_fields_set:
            raise ValueError("a response carries either result or error, not both")
        return self

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def model_dump(self, **kwargs: Any) -> dict[str, Any]:
        """Custom serialization emitting exactly one of result and error."""
        data: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            data["error"] = self.error.model_dump()
        else:
            data["result"] = self.result
        return data


# =============================================================================
# MCP Content Types
# =============================================================================


class TextContent(CompactModel):
    """Text content returned by tools."""

    type: Literal["text"] = "text"
    text: str
    is_error: bool | None = None


class ResourceContent(CompactModel):
    """Content returned when a resource is read."""

    uri: str
    mime_type: str | None = None
    text: str


# =============================================================================
# MCP Tool and Resource Descriptors
# =============================================================================


class Tool(BaseModel):
    """MCP tool definition as reported by list_tools."""

    name: str = Field(..., description="Unique tool name")
    description: str = Field(..., description="Human-readable description")
    input_schema: dict[str, Any] = Field(
        ..., description="JSON Schema for tool input"
    )


class Resource(CompactModel):
    """A static resource addressed by an exact URI."""

    uri: str
    name: str
    mime_type: str | None = None
    description: str | None = None


class ResourceTemplate(CompactModel):
    """A family of resources addressed by a URI pattern with {param} slots."""

    uri_template: str
    name: str
    mime_type: str | None = None
    description: str | None = None


# =============================================================================
# MCP Protocol Models
# =============================================================================


class ServerInfo(BaseModel):
    """Server identity, fixed for the lifetime of the process."""

    name: str
    version: str


class ServerInfoResult(BaseModel):
    """Result of get_server_info."""

    name: str
    version: str
    capabilities: dict[str, Any] = Field(default_factory=dict)


class ToolsListResult(BaseModel):
    """Result of list_tools."""

    tools: list[Tool]


class ToolCallParams(BaseModel):
    """Parameters for call_tool."""

    name: str | None = None
    arguments: dict[str, Any] = Field(default_factory=dict)

    @field_validator("arguments", mode="before")
    @classmethod
    def _default_arguments(cls, value: Any) -> Any:
        return {} if value is None else value


class ToolCallResult(BaseModel):
    """Result of call_tool."""

    content: list[dict[str, Any]]


class ResourcesListResult(BaseModel):
    """Result of list_resources."""

    resources: list[Resource]

    def model_dump(self, **kwargs: Any) -> dict[str, Any]:
        return {"resources": [r.model_dump() for r in self.resources]}


class ResourceTemplatesListResult(BaseModel):
    """Result of list_resource_templates."""

    resource_templates: list[ResourceTemplate]

    def model_dump(self, **kwargs: Any) -> dict[str, Any]:
        return {"resource_templates": [t.model_dump() for t in self.resource_templates]}


class ReadResourceParams(BaseModel):
    """Parameters for read_resource."""

    uri: str | None = None


class ReadResourceResult(BaseModel):
    """Result of read_resource."""

    contents: list[dict[str, Any]]
