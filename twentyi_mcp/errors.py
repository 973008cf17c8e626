"""Error taxonomy and translation into MCP error envelopes.

Lower layers raise freely; the dispatcher is the only place that calls
``to_mcp_error``.
"""

from typing import Any, Optional

from mcp.shared.exceptions import McpError
from mcp.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    ErrorData,
)


class TwentyIError(Exception):
    """Base class for every error raised by this package."""

    code: int = INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# ─── Startup ─────────────────────────────────────────────────────────────────


class CredentialError(TwentyIError):
    """No complete credential source was found."""


class RegistryError(TwentyIError):
    """A module or registry invariant was broken at construction time."""


# ─── Upstream ────────────────────────────────────────────────────────────────


class ContextResolutionError(TwentyIError):
    """The account identifier could not be determined. Retryable."""


class HtmlResponseError(TwentyIError):
    """The backend answered with an HTML page instead of JSON."""

    def __init__(self, status: int, preview: str) -> None:
        super().__init__(
            f"API returned HTML instead of JSON (status {status}). "
            f"This usually indicates an authentication error or invalid endpoint. "
            f"Preview: {preview}"
        )
        self.status = status
        self.preview = preview


class ResponseFormatError(TwentyIError):
    """The backend answered with a string that is neither JSON nor HTML.

    ``kind`` is ``"object_literal"`` for unquoted pseudo-JSON and
    ``"unparseable"`` for anything else.
    """

    OBJECT_LITERAL = "object_literal"
    UNPARSEABLE = "unparseable"

    def __init__(self, kind: str, preview: str) -> None:
        if kind == self.OBJECT_LITERAL:
            message = (
                "API returned invalid format (object literal instead of JSON). "
                "The endpoint or authentication may be incorrect."
            )
        else:
            message = f"API returned unparseable response: {preview}"
        super().__init__(message)
        self.kind = kind
        self.preview = preview


class UpstreamApiError(TwentyIError):
    """The backend returned a non-2xx status or an error payload."""

    def __init__(self, status: int, message: str, method: str, path: str) -> None:
        super().__init__(f"API error {status} on {method} {path}: {message}")
        self.status = status
        self.upstream_message = message
        self.method = method
        self.path = path


class TransportError(TwentyIError):
    """The request never produced a response (network failure or timeout)."""

    def __init__(self, message: str, method: str, path: str) -> None:
        super().__init__(f"{message} ({method} {path})")
        self.method = method
        self.path = path


# ─── Caller-side request defects ────────────────────────────────────────────


class MissingArgumentsError(TwentyIError):
    code = INVALID_REQUEST

    def __init__(self, tool: str) -> None:
        super().__init__(f"No arguments provided for tool: {tool}")
        self.tool = tool


class UnknownToolError(TwentyIError):
    code = METHOD_NOT_FOUND

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class ValidationError(TwentyIError):
    code = INVALID_PARAMS

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"Invalid argument '{field}': {message}")
        self.field = field


# ─── Translation ─────────────────────────────────────────────────────────────


def to_mcp_error(
    exc: BaseException, tool: Optional[str] = None, from_handler: bool = False
) -> McpError:
    """Convert any exception into an MCP error with a stable code.

    Request defects keep their own code. With ``from_handler`` set, the
    exception escaped a tool handler and is always an internal error.
    """
    if not from_handler:
        if isinstance(exc, McpError):
            return exc
        if isinstance(exc, TwentyIError) and exc.code != INTERNAL_ERROR:
            return McpError(ErrorData(code=exc.code, message=exc.message))

    if isinstance(exc, McpError):
        detail = exc.error.message
    else:
        detail = str(exc) or type(exc).__name__
    message = f"Tool '{tool}' failed: {detail}" if tool else detail
    data: Any = None
    status = getattr(exc, "status", None)
    if status is not None:
        data = {"status": status}
    return McpError(ErrorData(code=INTERNAL_ERROR, message=message, data=data))
