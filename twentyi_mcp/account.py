"""Lazy, single-flight resolution of the reseller (account) id.

Most 20i paths live under ``/reseller/{id}/...``. The id is not supplied by
the caller; it is discovered once through ``GET /reseller`` and reused for
the life of the process. Concurrent callers share one in-flight lookup, and
a failed lookup is never cached.
"""

import asyncio
from typing import Any, Dict, Optional

import structlog

from twentyi_mcp.client import ACCOUNT_ID_PATTERN, TwentyIClient
from twentyi_mcp.errors import ContextResolutionError, TwentyIError

logger = structlog.get_logger()

ACCOUNT_INFO_PATH = "/reseller"


def normalize_account_info(data: Any) -> Dict[str, Any]:
    """Coerce the observed ``/reseller`` response shapes into a dict with ``id``.

    The endpoint answers with an object, a one-element list of objects, or a
    bare identifier string.
    """
    if isinstance(data, list) and data:
        data = data[0]
    if isinstance(data, str) and ACCOUNT_ID_PATTERN.match(data.strip()):
        return {"id": data.strip()}
    if not isinstance(data, dict):
        raise ContextResolutionError(
            f"Invalid response from {ACCOUNT_INFO_PATH}: expected object, got {type(data).__name__}"
        )
    return data


def _consume_exception(task: "asyncio.Task[str]") -> None:
    # Marks the failure as retrieved when every waiter was cancelled first.
    if not task.cancelled():
        task.exception()


class AccountContext:
    """Memoized account id for one ``TwentyIClient``."""

    def __init__(self, client: TwentyIClient) -> None:
        self._client = client
        self._account_id: Optional[str] = None
        self._inflight: Optional["asyncio.Task[str]"] = None

    @property
    def account_id(self) -> Optional[str]:
        """The cached id, or ``None`` before the first successful lookup."""
        return self._account_id

    async def fetch_account_info(self) -> Dict[str, Any]:
        """Fetch and normalize account info. Not cached."""
        try:
            data = await self._client.get(ACCOUNT_INFO_PATH)
        except ContextResolutionError:
            raise
        except TwentyIError as e:
            raise ContextResolutionError(f"Unable to fetch account information: {e}") from e
        return normalize_account_info(data)

    async def get_account_id(self) -> str:
        """Return the account id, resolving it on first use.

        Raises:
            ContextResolutionError: The id could not be determined. A later
                call will try again.
        """
        if self._account_id is not None:
            return self._account_id

        task = self._inflight
        if task is None:
            task = asyncio.ensure_future(self._resolve())
            task.add_done_callback(_consume_exception)
            self._inflight = task
        # Cancelling one waiter must not cancel the lookup the others share.
        return await asyncio.shield(task)

    async def _resolve(self) -> str:
        try:
            info = await self.fetch_account_info()
            account_id = info.get("id")
            if not account_id:
                raise ContextResolutionError(
                    "Unable to determine reseller ID from account information"
                )
            self._account_id = str(account_id)
            logger.info("account_id_resolved")
            return self._account_id
        except ContextResolutionError as e:
            logger.warning("account_id_resolution_failed", error=e.message)
            raise
        finally:
            self._inflight = None

    async def path(self, suffix: str = "") -> str:
        """Build ``/reseller/{id}{suffix}`` for account-scoped endpoints."""
        account_id = await self.get_account_id()
        return f"{ACCOUNT_INFO_PATH}/{account_id}{suffix}"
