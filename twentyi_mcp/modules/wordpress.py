"""WordPress management tools for hosting packages."""

from typing import Any, Literal

from pydantic import Field

from twentyi_mcp.context import ServerContext
from twentyi_mcp.modules.common import PackageInput, segment
from twentyi_mcp.registry import ModuleDefinition, ToolModule


class WordPressSettingInput(PackageInput):
    """Input for changing one WordPress option."""

    option_name: str = Field(..., description="WordPress option name (e.g., 'blogname')", min_length=1)
    option_value: str = Field(..., description="New value for the option")


class ManagePluginInput(PackageInput):
    """Input for activating, deactivating or removing a plugin."""

    action: Literal["activate", "deactivate", "remove"] = Field(..., description="Action to apply")
    plugin_name: str = Field(..., description="Plugin slug (e.g., 'akismet')", min_length=1)


def create_module(ctx: ServerContext) -> ModuleDefinition:
    module = ToolModule("wordpress")

    def web(params: PackageInput, leaf: str) -> str:
        return f"/package/{segment(params.package_id)}/web/{leaf}"

    @module.tool(name="is_wordpress_installed", title="Is WordPress Installed", read_only=True)
    async def is_wordpress_installed(params: PackageInput) -> Any:
        """Check whether WordPress is installed on a package."""
        return await ctx.client.get(web(params, "wordpressIsInstalled"))

    @module.tool(name="get_wordpress_version", title="Get WordPress Version", read_only=True)
    async def get_wordpress_version(params: PackageInput) -> Any:
        """Get the installed WordPress version."""
        return await ctx.client.get(web(params, "wordpressVersion"))

    @module.tool(name="get_wordpress_settings", title="Get WordPress Settings", read_only=True)
    async def get_wordpress_settings(params: PackageInput) -> Any:
        """Get WordPress options (site URL, title, etc.)."""
        return await ctx.client.get(web(params, "wordpressSettings"))

    @module.tool(name="set_wordpress_settings", title="Set WordPress Settings", idempotent=True)
    async def set_wordpress_settings(params: WordPressSettingInput) -> Any:
        """Set one WordPress option."""
        return await ctx.client.post(
            web(params, "wordpressSettings"),
            {"option_name": params.option_name, "option_value": params.option_value},
        )

    @module.tool(name="get_wordpress_plugins", title="Get WordPress Plugins", read_only=True)
    async def get_wordpress_plugins(params: PackageInput) -> Any:
        """List installed plugins and their status."""
        return await ctx.client.get(web(params, "wordpressPlugins"))

    @module.tool(name="manage_wordpress_plugin", title="Manage WordPress Plugin")
    async def manage_wordpress_plugin(params: ManagePluginInput) -> Any:
        """Activate, deactivate or remove a WordPress plugin."""
        return await ctx.client.post(
            web(params, "wordpressPlugins"),
            {"type": params.action, "name": params.plugin_name},
        )

    @module.tool(name="update_wordpress", title="Update WordPress")
    async def update_wordpress(params: PackageInput) -> Any:
        """Update WordPress core to the latest version."""
        return await ctx.client.post(web(params, "wordpressUpdate"))

    return module.definition()
