# mefs_mcp/settings.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, SecretStr, field_validator
from typing import Literal, Optional
import logging
from pathlib import Path

from .mefs.errors import MefsError
from .mefs.models import MefsConfig
from .mefs.signer import private_key_to_address

logger = logging.getLogger(__name__)

# This settings.py file is at <project>/mefs_mcp/settings.py
PROJECT_ROOT = Path(__file__).parent.parent.resolve()
DOTENV_PATH = PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Server settings with environment variable and .env support."""

    app_name: str = "MEFS MCP Storage Server"
    debug_mode: bool = False
    fastmcp_log_level: str = "INFO"

    # MEFS API configuration
    mefs_api_base_url: str = "https://api.mefs.io:10000/produce"
    mefs_origin: str = "https://memo.io"
    mefs_chain_id: int = Field(default=985, gt=0)
    mefs_private_key: Optional[SecretStr] = Field(
        default=None,
        description="Hex private key used to sign MEFS login challenges."
    )
    mefs_http_timeout: float = Field(default=60.0, gt=0)

    # MCP transport configuration
    mcp_transport_mode: Literal["stdio", "http", "sse"] = "stdio"
    mcp_http_host: str = "127.0.0.1"
    mcp_http_port: int = 8000

    model_config = SettingsConfigDict(
        env_file=DOTENV_PATH if DOTENV_PATH.exists() else None,
        extra="ignore",
        env_file_encoding='utf-8'
    )

    @field_validator("fastmcp_log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level


def build_mefs_config(app_settings: Settings) -> MefsConfig:
    """
    Resolve the MEFS connection config, deriving the wallet address from the
    private key. A missing or unusable key is logged but does not stop startup;
    authenticated tool calls will fail until it is fixed.
    """
    private_key = app_settings.mefs_private_key
    address: Optional[str] = None

    if private_key is None or not private_key.get_secret_value():
        logger.warning("MEFS_PRIVATE_KEY not provided. Authentication will fail.")
        private_key = None
    else:
        try:
            address = private_key_to_address(private_key.get_secret_value())
        except MefsError as e:
            logger.warning(f"Failed to convert private key to address: {e.message}")

    config = MefsConfig(
        api_base_url=app_settings.mefs_api_base_url,
        origin=app_settings.mefs_origin,
        chain_id=app_settings.mefs_chain_id,
        private_key=private_key,
        address=address,
    )
    logger.info(
        f"MEFS config resolved: api_base_url='{config.api_base_url}', origin='{config.origin}', "
        f"chain_id={config.chain_id}, address={config.address}, "
        f"private_key={'********' if config.private_key else 'None'}"
    )
    return config
