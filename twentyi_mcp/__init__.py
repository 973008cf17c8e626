"""MCP server exposing the 20i hosting API as agent tools."""

__version__ = "0.1.0"
