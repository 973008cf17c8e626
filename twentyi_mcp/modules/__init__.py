"""Domain modules. Each contributes a ``ModuleDefinition`` built from a ``ServerContext``."""

from typing import Callable, Dict

import structlog

from twentyi_mcp.context import ServerContext
from twentyi_mcp.modules import domains, packages, reseller, security, wordpress
from twentyi_mcp.registry import ModuleDefinition, ToolRegistry

logger = structlog.get_logger()

MODULE_FACTORIES: Dict[str, Callable[[ServerContext], ModuleDefinition]] = {
    "reseller": reseller.create_module,
    "domains": domains.create_module,
    "packages": packages.create_module,
    "wordpress": wordpress.create_module,
    "security": security.create_module,
}


def load_all_modules(ctx: ServerContext) -> ToolRegistry:
    """Build a registry holding every domain module's tools.

    Raises:
        RegistryError: Two modules declare the same tool name.
    """
    registry = ToolRegistry()
    for create_module in MODULE_FACTORIES.values():
        registry.register(create_module(ctx))
    logger.info("tools_loaded", modules=len(MODULE_FACTORIES), tools=len(registry))
    return registry
