# mefs_mcp/tool_modules/__init__.py
"""MCP tool handlers for MEFS storage and the shared response envelope."""

from .envelope import ToolResponse, ValidationEnvelopeMiddleware, execute_tool, error_payload
from .storage_tools import (
    UploadInput,
    RetrieveInput,
    MefsStorageTools,
    register_storage_tools
)

__all__ = [
    "ToolResponse",
    "ValidationEnvelopeMiddleware",
    "execute_tool",
    "error_payload",
    "UploadInput",
    "RetrieveInput",
    "MefsStorageTools",
    "register_storage_tools"
]
