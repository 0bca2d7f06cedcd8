# mefs_mcp/mcp_handlers/mefs_mcp_app.py
from typing import Literal, Optional
import logging

import httpx
from fastmcp import FastMCP

from ..settings import Settings, build_mefs_config
from ..mefs.auth import AuthSession
from ..mefs.client import MefsStorageClient
from ..tool_modules.envelope import ValidationEnvelopeMiddleware
from ..tool_modules.storage_tools import MefsStorageTools, register_storage_tools

logger = logging.getLogger(__name__)

# Parent logger of every logger FastMCP creates
FASTMCP_LOGGER_NAME = "FastMCP"


def _create_fastmcp_instance(app_settings: Settings) -> FastMCP:
    """Create the FastMCP server that hosts the MEFS tools."""
    log_level_to_use = app_settings.fastmcp_log_level.upper()
    logger.info(f"Creating FastMCP instance with log level: {log_level_to_use}")
    logging.getLogger(FASTMCP_LOGGER_NAME).setLevel(log_level_to_use)

    mefs_mcp = FastMCP(
        name=app_settings.app_name,
        instructions=(
            "Stores and retrieves files on MEFS decentralized storage. "
            "Use 'upload' with base64 file content and 'retrieve' with the returned CID."
        ),
        mask_error_details=not app_settings.debug_mode,
    )
    mefs_mcp.add_middleware(ValidationEnvelopeMiddleware())
    logger.info(f"FastMCP instance created with ID: {id(mefs_mcp)}")
    return mefs_mcp


class MefsMCPApp:
    """
    Wires configuration, the shared HTTP client, the auth session and the
    storage tools into one FastMCP server.

    The app owns the httpx client unless one is injected, and closes it when
    the server stops.
    """

    def __init__(self, app_settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = app_settings
        self.config = build_mefs_config(app_settings)

        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(timeout=app_settings.mefs_http_timeout)

        self.session = AuthSession(self.http_client, self.config.api_base_url, self.config.origin)
        self.storage = MefsStorageClient(self.http_client, self.config.api_base_url)
        self.tools = MefsStorageTools(self.config, self.session, self.storage)

        self.fastmcp = _create_fastmcp_instance(app_settings)
        register_storage_tools(self.fastmcp, self.tools)

    async def run(
        self,
        transport: Optional[Literal["stdio", "http", "sse"]] = None,
        host: Optional[str] = None,
        port: Optional[int] = None
    ) -> None:
        """Serve the tools until the transport shuts down."""
        transport = transport or self.settings.mcp_transport_mode
        try:
            if transport in ("http", "sse"):
                host = host or self.settings.mcp_http_host
                port = port or self.settings.mcp_http_port
                logger.info(f"Starting MEFS MCP server over {transport.upper()} on {host}:{port}")
                await self.fastmcp.run_async(
                    transport=transport,
                    host=host,
                    port=port,
                    log_level=self.settings.fastmcp_log_level.lower(),
                )
            else:
                logger.info("Starting MEFS MCP server over stdio")
                await self.fastmcp.run_async(transport="stdio")
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client and not self.http_client.is_closed:
            await self.http_client.aclose()
            logger.info("MEFS HTTP client closed")
