# mefs_mcp/__init__.py
"""
MEFS MCP Storage Server.

Exposes MEFS decentralized storage to MCP clients through 'upload' and
'retrieve' tools, authenticated with wallet-signed login challenges.
"""

__version__ = "0.1.0"
