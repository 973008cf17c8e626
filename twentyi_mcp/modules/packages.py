"""Hosting package tools."""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from twentyi_mcp import validation
from twentyi_mcp.context import ServerContext
from twentyi_mcp.modules.common import PackageInput, segment
from twentyi_mcp.registry import ModuleDefinition, ToolModule


class CreatePackageInput(BaseModel):
    """Input for creating a hosting package."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    domain_name: str = Field(..., description="Primary domain for the package (e.g., 'example.com')", min_length=1)
    package_type: str = Field(..., description="Package type ID (see get_package_types)", min_length=1)
    username: str = Field(..., description="Hosting account username", min_length=1)
    password: str = Field(..., description="Hosting account password (8+ characters)")
    extra_domain_names: Optional[List[str]] = Field(default=None, description="Additional domains to attach")
    stack_user: Optional[str] = Field(default=None, description="StackCP user to assign the package to")

    @field_validator("domain_name")
    @classmethod
    def _check_domain(cls, v: str) -> str:
        return validation.domain_name(v)

    @field_validator("password")
    @classmethod
    def _check_password(cls, v: str) -> str:
        return validation.password(v)

    @field_validator("extra_domain_names")
    @classmethod
    def _check_extra_domains(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return None if v is None else [validation.domain_name(d) for d in validation.non_empty_strings(v)]


class SuspendPackageInput(PackageInput):
    """Input for suspending a hosting package."""

    reason: Optional[str] = Field(default=None, description="Reason recorded with the suspension", max_length=500)


def create_module(ctx: ServerContext) -> ModuleDefinition:
    module = ToolModule("packages")

    @module.tool(name="list_hosting_packages", title="List Hosting Packages", read_only=True)
    async def list_hosting_packages() -> Any:
        """List all hosting packages on the account."""
        return await ctx.client.get("/package")

    @module.tool(name="get_hosting_package_info", title="Get Hosting Package Info", read_only=True)
    async def get_hosting_package_info(params: PackageInput) -> Any:
        """Get details for a hosting package."""
        return await ctx.client.get(f"/package/{segment(params.package_id)}")

    @module.tool(name="get_hosting_package_web_info", title="Get Hosting Package Web Info", read_only=True)
    async def get_hosting_package_web_info(params: PackageInput) -> Any:
        """Get web hosting details (document roots, PHP version, IPs) for a package."""
        return await ctx.client.get(f"/package/{segment(params.package_id)}/web")

    @module.tool(name="get_hosting_package_limits", title="Get Hosting Package Limits", read_only=True)
    async def get_hosting_package_limits(params: PackageInput) -> Any:
        """Get quotas and limits for a package."""
        return await ctx.client.get(f"/package/{segment(params.package_id)}/limits")

    @module.tool(name="get_hosting_package_usage", title="Get Hosting Package Usage", read_only=True)
    async def get_hosting_package_usage(params: PackageInput) -> Any:
        """Get disk and bandwidth usage for a package."""
        return await ctx.client.get(f"/package/{segment(params.package_id)}/web/usage")

    @module.tool(name="create_hosting_package", title="Create Hosting Package")
    async def create_hosting_package(params: CreatePackageInput) -> Any:
        """Create a new web hosting package under the reseller account."""
        body = {
            "domain_name": params.domain_name,
            "package_type": params.package_type,
            "username": params.username,
            "password": params.password,
        }
        if params.extra_domain_names:
            body["extra_domain_names"] = params.extra_domain_names
        if params.stack_user:
            body["stackUser"] = params.stack_user
        path = await ctx.account.path("/addWeb")
        return await ctx.client.post(path, body)

    @module.tool(name="delete_hosting_package", title="Delete Hosting Package", destructive=True)
    async def delete_hosting_package(params: PackageInput) -> Any:
        """Permanently delete a hosting package and all of its data."""
        return await ctx.client.delete(f"/package/{segment(params.package_id)}")

    @module.tool(name="get_package_types", title="Get Package Types", read_only=True)
    async def get_package_types() -> Any:
        """List the package types available to the reseller."""
        path = await ctx.account.path("/packageTypes")
        return await ctx.client.get(path)

    @module.tool(name="suspend_package", title="Suspend Package", idempotent=True)
    async def suspend_package(params: SuspendPackageInput) -> Any:
        """Suspend a hosting package. Sites stop serving until unsuspended."""
        body = {"reason": params.reason} if params.reason else {}
        return await ctx.client.post(f"/package/{segment(params.package_id)}/suspend", body)

    @module.tool(name="unsuspend_package", title="Unsuspend Package", idempotent=True)
    async def unsuspend_package(params: PackageInput) -> Any:
        """Lift a suspension from a hosting package."""
        return await ctx.client.post(f"/package/{segment(params.package_id)}/unsuspend", {})

    return module.definition()
