# mefs_mcp/mcp_handlers/__init__.py
"""FastMCP server assembly for the MEFS storage tools."""

from .mefs_mcp_app import MefsMCPApp

__all__ = ["MefsMCPApp"]
