"""Reseller account tools: account info and balance."""

from typing import Any

import structlog

from twentyi_mcp.context import ServerContext
from twentyi_mcp.errors import UpstreamApiError
from twentyi_mcp.registry import ModuleDefinition, ToolModule

logger = structlog.get_logger()

# Some accounts have no balance record at all; the backend answers these
# with 403 or 404 instead of a zero balance.
NO_BALANCE_STATUSES = (403, 404)


def create_module(ctx: ServerContext) -> ModuleDefinition:
    module = ToolModule("reseller")

    @module.tool(name="get_reseller_info", title="Get Reseller Info", read_only=True)
    async def get_reseller_info() -> Any:
        """Get reseller account information, including the reseller ID.

        Every 20i account has its own reseller ID; it is discovered here
        rather than configured.
        """
        return await ctx.account.fetch_account_info()

    @module.tool(name="get_account_balance", title="Get Account Balance", read_only=True)
    async def get_account_balance() -> Any:
        """Get the reseller account balance.

        Accounts without a balance record report a zero balance with
        status ``unavailable`` instead of failing.
        """
        path = await ctx.account.path("/accountBalance")
        try:
            data = await ctx.client.get(path)
        except UpstreamApiError as e:
            if e.status not in NO_BALANCE_STATUSES:
                raise
            logger.info("account_balance_unavailable", status=e.status)
            return {"balance": 0, "currency": "USD", "status": "unavailable"}

        if not data:
            return {"balance": 0, "currency": "USD", "status": "empty"}
        return data

    return module.definition()
