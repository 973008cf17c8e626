"""Website IP blocking tools."""

from typing import Any, List

import structlog
from pydantic import Field, field_validator

from twentyi_mcp import validation
from twentyi_mcp.context import ServerContext
from twentyi_mcp.modules.common import PackageInput, segment
from twentyi_mcp.registry import ModuleDefinition, ToolModule

logger = structlog.get_logger()


class IpBlockInput(PackageInput):
    """Input for blocking or unblocking one IP address."""

    ip_address: str = Field(..., description="IPv4 or IPv6 address (e.g., '203.0.113.7')", min_length=1)

    @field_validator("ip_address")
    @classmethod
    def _check_ip(cls, v: str) -> str:
        return validation.ip_address(v)


def create_module(ctx: ServerContext) -> ModuleDefinition:
    module = ToolModule("security")

    def blocked_path(package_id: str) -> str:
        return f"/package/{segment(package_id)}/web/blockedIpAddresses"

    async def current_blocked(package_id: str) -> List[str]:
        data = await ctx.client.get(blocked_path(package_id))
        return [str(ip) for ip in data] if isinstance(data, list) else []

    @module.tool(name="get_blocked_ip_addresses", title="Get Blocked IP Addresses", read_only=True)
    async def get_blocked_ip_addresses(params: PackageInput) -> Any:
        """List IP addresses blocked from a package's websites."""
        return await ctx.client.get(blocked_path(params.package_id))

    @module.tool(name="add_ip_block", title="Block IP Address", idempotent=True)
    async def add_ip_block(params: IpBlockInput) -> Any:
        """Block an IP address from a package's websites."""
        blocked = await current_blocked(params.package_id)
        if params.ip_address in blocked:
            return {"message": "IP address is already blocked", "blocked_ips": blocked}
        blocked.append(params.ip_address)
        logger.info("ip_block_added", package_id=params.package_id, blocked=len(blocked))
        return await ctx.client.post(blocked_path(params.package_id), {"ip_addresses": blocked})

    @module.tool(name="remove_ip_block", title="Unblock IP Address", idempotent=True)
    async def remove_ip_block(params: IpBlockInput) -> Any:
        """Remove an IP address from a package's block list."""
        blocked = await current_blocked(params.package_id)
        remaining = [ip for ip in blocked if ip != params.ip_address]
        return await ctx.client.post(blocked_path(params.package_id), {"ip_addresses": remaining})

    return module.definition()
