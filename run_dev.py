import asyncio
from dotenv import load_dotenv
import os
from pathlib import Path
import logging

# Configure logging before any application imports to ensure visibility
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s RUN_DEV.PY - [%(levelname)s] - %(message)s'
)
logger = logging.getLogger("run_dev_script")

if __name__ == "__main__":
    # Determine project root and .env file location
    project_root = Path(__file__).parent.resolve()
    dotenv_path_explicit = project_root / ".env"

    logger.info(f"Current working directory: {os.getcwd()}")
    logger.info(f"Expected .env path for load_dotenv: {dotenv_path_explicit}")

    if dotenv_path_explicit.exists():
        logger.info(f".env file FOUND at: {dotenv_path_explicit}")
        # Override existing OS environment variables with .env values
        load_dotenv(dotenv_path=dotenv_path_explicit, override=True)
    else:
        logger.warning(f".env file NOT FOUND at: {dotenv_path_explicit}. "
                      "Will rely on OS environment variables or pydantic-settings defaults.")

    # Log key environment variables for verification (secrets masked)
    logger.info(f"MEFS_API_BASE_URL: {os.getenv('MEFS_API_BASE_URL')}")
    logger.info(f"MEFS_ORIGIN: {os.getenv('MEFS_ORIGIN')}")
    logger.info(f"MEFS_CHAIN_ID: {os.getenv('MEFS_CHAIN_ID')}")
    logger.info(f"MEFS_PRIVATE_KEY: {'********' if os.getenv('MEFS_PRIVATE_KEY') else 'None'}")
    logger.info(f"DEBUG_MODE: {os.getenv('DEBUG_MODE')}")
    logger.info(f"MCP_HTTP_HOST: {os.getenv('MCP_HTTP_HOST')}")
    logger.info(f"MCP_HTTP_PORT: {os.getenv('MCP_HTTP_PORT')}")

    from mefs_mcp.settings import Settings
    from mefs_mcp.mcp_handlers.mefs_mcp_app import MefsMCPApp

    app_settings = Settings()

    # Development server always uses the HTTP transport; host and port come from MCP_HTTP_HOST/PORT
    logger.info(f"Starting MEFS MCP dev server on {app_settings.mcp_http_host}:{app_settings.mcp_http_port}")
    mefs_app = MefsMCPApp(app_settings)
    asyncio.run(mefs_app.run(transport="http"))
