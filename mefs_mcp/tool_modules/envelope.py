# mefs_mcp/tool_modules/envelope.py
"""
Uniform request/response shaping for MEFS tools.

Every tool call goes through ``execute_tool``: arguments are validated against
a pydantic input model, the operation runs, and the outcome becomes a
``ToolResponse`` holding one JSON payload. Errors never cross the tool
boundary as exceptions; they become ``{name, message, cause}`` payloads with
``is_error`` set.
"""
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Type, TypeVar

from fastmcp.exceptions import ToolError
from fastmcp.server.middleware import Middleware, MiddlewareContext
from pydantic import BaseModel, ValidationError

from ..mefs.errors import MefsError, ToolValidationError

logger = logging.getLogger(__name__)

InputT = TypeVar("InputT", bound=BaseModel)


class ToolResponse(BaseModel):
    """Result of one tool invocation: a JSON payload plus an error flag."""
    payload: Dict[str, Any]
    is_error: bool = False

    @property
    def text(self) -> str:
        return json.dumps(self.payload)

    def to_fastmcp_result(self) -> Dict[str, Any]:
        """
        Hand the response to FastMCP: payload dicts are returned as the tool
        result, error payloads are raised as ToolError so the MCP result is
        flagged with isError and carries the JSON envelope as its text.
        """
        if self.is_error:
            raise ToolError(self.text)
        return self.payload


def error_payload(error: BaseException) -> Dict[str, Any]:
    if isinstance(error, MefsError):
        return error.detail
    cause = error.__cause__
    return {
        "name": type(error).__name__,
        "message": str(error) or "Unknown error",
        "cause": str(cause) if cause is not None else None,
    }


def _validation_error(tool_name: str, error: ValidationError) -> ToolValidationError:
    first_issue = error.errors()[0] if error.errors() else None
    if first_issue is not None:
        location = ".".join(str(part) for part in first_issue.get("loc", ())) or "input"
        message = f"{location}: {first_issue.get('msg', 'invalid value')}"
    else:
        message = f"Invalid arguments for tool '{tool_name}'"
    return ToolValidationError(message, cause=error)


async def execute_tool(
    tool_name: str,
    input_model: Type[InputT],
    arguments: Mapping[str, Any],
    operation: Callable[[InputT], Awaitable[Dict[str, Any]]]
) -> ToolResponse:
    """Validate ``arguments``, run ``operation`` and shape the outcome."""
    try:
        params = input_model.model_validate(dict(arguments))
    except ValidationError as e:
        error = _validation_error(tool_name, e)
        logger.warning(f"Tool '{tool_name}' rejected invalid arguments: {error.message}")
        return ToolResponse(payload=error.detail, is_error=True)

    try:
        result = await operation(params)
    except MefsError as e:
        logger.error(f"Tool '{tool_name}' failed: {e.name}: {e.message}")
        return ToolResponse(payload=e.detail, is_error=True)
    except Exception as e:
        logger.error(f"Tool '{tool_name}': Unexpected error: {e}", exc_info=True)
        return ToolResponse(payload=error_payload(e), is_error=True)

    return ToolResponse(payload=result)


class ValidationEnvelopeMiddleware(Middleware):
    """
    FastMCP validates tool arguments against the registered signature before
    the tool body runs. This turns those rejections into the same
    ToolValidationError envelope that ``execute_tool`` produces.
    """

    async def on_call_tool(self, context: MiddlewareContext, call_next):
        tool_name = getattr(context.message, "name", "unknown")
        try:
            return await call_next(context)
        except ValidationError as e:
            error = _validation_error(tool_name, e)
        except ToolError as e:
            if not isinstance(e.__cause__, ValidationError):
                raise
            error = _validation_error(tool_name, e.__cause__)

        logger.warning(f"Tool '{tool_name}' rejected invalid arguments: {error.message}")
        raise ToolError(ToolResponse(payload=error.detail, is_error=True).text) from error
