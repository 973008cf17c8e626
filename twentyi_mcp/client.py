"""Async HTTP client for the 20i REST API.

Every response body passes through ``normalize_response`` before a caller
sees it, and every failure is classified once, here:

* ``text/html`` responses raise ``HtmlResponseError`` (wrong auth or path).
* Empty or ``null`` bodies become ``{}``.
* JSON bodies are returned as parsed.
* A bare account identifier (the backend sometimes sends one unquoted) is
  returned as a string.
* Unquoted ``key: value`` pseudo-JSON raises ``ResponseFormatError`` with
  kind ``object_literal``; any other junk raises it with kind
  ``unparseable``.
* Non-2xx statuses, and 2xx bodies that report an error, raise
  ``UpstreamApiError``; network failures and timeouts raise
  ``TransportError``.
"""

import base64
import json
import re
from typing import Any, Dict, Optional

import httpx
import structlog

from twentyi_mcp.config import BASE_URL, REQUEST_TIMEOUT
from twentyi_mcp.credentials import Credentials
from twentyi_mcp.errors import (
    HtmlResponseError,
    ResponseFormatError,
    TransportError,
    TwentyIError,
    UpstreamApiError,
)

logger = structlog.get_logger()

ACCOUNT_ID_PATTERN = re.compile(r"^[a-f0-9-]{36}$", re.IGNORECASE)

HTML_PREVIEW_LENGTH = 200
TEXT_PREVIEW_LENGTH = 100

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")

_STATUS_HINTS = {
    401: "Authentication failed. Check TWENTYI_API_KEY.",
    403: "Permission denied for this resource.",
    404: "Resource not found. Check the ID is correct.",
    429: "Rate limit exceeded. Wait a moment and retry.",
}


def build_headers(credentials: Credentials) -> Dict[str, str]:
    """Return authorization headers for the 20i API."""
    token = base64.b64encode(credentials.api_key.encode("utf-8")).decode("ascii")
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
        "Accept": "application/json",
    }


def _is_html(response: httpx.Response) -> bool:
    return "text/html" in response.headers.get("content-type", "").lower()


def html_preview(text: str, limit: int = HTML_PREVIEW_LENGTH) -> str:
    """Strip tags from an HTML page and keep the first ``limit`` characters."""
    stripped = _WHITESPACE_RE.sub(" ", _TAG_RE.sub(" ", text)).strip()
    return stripped[:limit]


def normalize_response(response: httpx.Response) -> Any:
    """Turn a raw 2xx response into a structured value or raise."""
    if _is_html(response):
        raise HtmlResponseError(response.status_code, html_preview(response.text))

    text = response.text.strip()
    if not text:
        return {}

    try:
        data = json.loads(text)
    except ValueError:
        pass
    else:
        return {} if data is None else data

    if ACCOUNT_ID_PATTERN.match(text):
        return text
    if ":" in text and not text.startswith(("{", "[")):
        raise ResponseFormatError(ResponseFormatError.OBJECT_LITERAL, text[:TEXT_PREVIEW_LENGTH])
    raise ResponseFormatError(ResponseFormatError.UNPARSEABLE, text[:TEXT_PREVIEW_LENGTH])


def _upstream_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict):
        for key in ("message", "error", "errors"):
            value = data.get(key)
            if value:
                return value if isinstance(value, str) else json.dumps(value)
        if data:
            return json.dumps(data)
    elif isinstance(data, str) and data:
        return data

    hint = _STATUS_HINTS.get(response.status_code)
    if hint:
        return hint
    text = response.text.strip()
    return text[:500] if text else response.reason_phrase


def classify_failure(response: httpx.Response, method: str, path: str) -> TwentyIError:
    """Map a non-2xx response onto the error taxonomy."""
    if _is_html(response):
        return HtmlResponseError(response.status_code, html_preview(response.text))
    return UpstreamApiError(response.status_code, _upstream_message(response), method, path)


def payload_error(data: Any, status: int, method: str, path: str) -> Optional[UpstreamApiError]:
    """Detect an error reported inside a 2xx body.

    The backend sometimes answers 200 with ``{"error": ...}`` or
    ``{"status": "error", "message": ...}``.
    """
    if not isinstance(data, dict):
        return None
    error = data.get("error")
    if error:
        return UpstreamApiError(
            status, error if isinstance(error, str) else json.dumps(error), method, path
        )
    if data.get("status") == "error":
        return UpstreamApiError(status, data.get("message") or "Unknown error", method, path)
    return None


class TwentyIClient:
    """One shared ``httpx.AsyncClient`` bound to the 20i base URL.

    Stateless apart from its fixed configuration; safe to share across
    concurrent tool calls.
    """

    def __init__(
        self,
        credentials: Credentials,
        base_url: str = BASE_URL,
        timeout: float = REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout = timeout
        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers=build_headers(credentials),
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "TwentyIClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Make an authenticated request and return the normalized body."""
        method = method.upper()
        try:
            response = await self._http.request(method, path, json=body, params=params)
        except httpx.TimeoutException as e:
            logger.warning("api_request_failed", method=method, path=path, error="timeout")
            raise TransportError(
                f"Request timed out after {self._timeout:g}s", method, path
            ) from e
        except httpx.HTTPError as e:
            logger.warning("api_request_failed", method=method, path=path, error=type(e).__name__)
            raise TransportError(f"Network error: {e}", method, path) from e

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "api_request_failed",
                method=method,
                path=path,
                status=response.status_code,
            )
            raise classify_failure(response, method, path) from e

        data = normalize_response(response)
        error = payload_error(data, response.status_code, method, path)
        if error is not None:
            logger.warning(
                "api_request_failed",
                method=method,
                path=path,
                status=response.status_code,
                error="payload",
            )
            raise error
        return data

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, body: Any = None) -> Any:
        return await self.request("POST", path, body=body)

    async def put(self, path: str, body: Any = None) -> Any:
        return await self.request("PUT", path, body=body)

    async def patch(self, path: str, body: Any = None) -> Any:
        return await self.request("PATCH", path, body=body)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)
