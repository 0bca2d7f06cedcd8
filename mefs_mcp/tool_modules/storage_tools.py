# mefs_mcp/tool_modules/storage_tools.py
import logging
from typing import Annotated, Any, Dict, Mapping, Optional

from fastmcp import FastMCP
from pydantic import BaseModel, Field

from ..mefs.auth import AuthSession
from ..mefs.client import MefsStorageClient
from ..mefs.errors import MefsHTTPError
from ..mefs.models import MefsConfig, UploadOptions
from ..mefs.utils import base64_to_bytes, bytes_to_base64
from .envelope import ToolResponse, execute_tool

logger = logging.getLogger(__name__)

UPLOAD_DESCRIPTION = (
    "Upload a file to MEFS storage. The file must be provided as a base64 encoded string. "
    "Returns the CID (Mid) of the uploaded file."
)
RETRIEVE_DESCRIPTION = (
    "Retrieve a file from MEFS storage by its CID (Content ID). "
    "Returns the file content as a base64 encoded string."
)


class UploadInput(BaseModel):
    file: str = Field(min_length=1, description="The content of the file encoded as a base64 string")
    name: str = Field(
        min_length=1,
        description="Name for the uploaded file (must include file extension for MIME type detection)"
    )
    key: Optional[str] = Field(default=None, description="Encryption key for the file (optional)")
    public: Optional[bool] = Field(default=None, description="Whether the file should be public (default: false)")


class RetrieveInput(BaseModel):
    cid: str = Field(min_length=1, description="The Content ID (CID) of the file to retrieve from MEFS")
    key: Optional[str] = Field(default=None, description="Decryption key for encrypted files (optional)")


class MefsStorageTools:
    """
    Tool handlers for MEFS upload and retrieve.

    Each call authenticates through the shared AuthSession, talks to MEFS via
    the storage client and returns a ToolResponse envelope.
    """

    def __init__(self, config: MefsConfig, session: AuthSession, storage: MefsStorageClient):
        self.config = config
        self.session = session
        self.storage = storage

    async def upload(self, arguments: Mapping[str, Any]) -> ToolResponse:
        return await execute_tool("upload", UploadInput, arguments, self._upload)

    async def retrieve(self, arguments: Mapping[str, Any]) -> ToolResponse:
        return await execute_tool("retrieve", RetrieveInput, arguments, self._retrieve)

    async def _upload(self, params: UploadInput) -> Dict[str, Any]:
        # Decoded before authenticating so bad payloads never reach the network
        file_bytes = base64_to_bytes(params.file)
        tokens = await self.session.get_tokens(self.config.identity)

        logger.info(f"Tool 'upload' called for '{params.name}' ({len(file_bytes)} bytes)")
        try:
            result = await self.storage.upload_file(
                tokens.access_token,
                file_bytes,
                params.name,
                UploadOptions(key=params.key, is_public=params.public),
            )
        except MefsHTTPError as e:
            self._invalidate_if_unauthorized(e)
            raise

        return {"cid": result.cid, "filename": params.name, "size": len(file_bytes)}

    async def _retrieve(self, params: RetrieveInput) -> Dict[str, Any]:
        tokens = await self.session.get_tokens(self.config.identity)

        logger.info(f"Tool 'retrieve' called for CID {params.cid}")
        try:
            result = await self.storage.download_file(tokens.access_token, params.cid, params.key)
        except MefsHTTPError as e:
            self._invalidate_if_unauthorized(e)
            raise

        payload: Dict[str, Any] = {
            "cid": params.cid,
            "filename": result.filename,
            "file": bytes_to_base64(result.data),
            "size": len(result.data),
        }
        if result.content_type:
            payload["contentType"] = result.content_type
        return payload

    def _invalidate_if_unauthorized(self, error: MefsHTTPError) -> None:
        # The current call still fails; the next one starts a fresh login
        if error.status_code == 401:
            logger.warning("MEFS rejected the access token (401). Clearing cached tokens.")
            self.session.invalidate()


def register_storage_tools(mcp: FastMCP, tools: MefsStorageTools) -> None:
    """Register the ``upload`` and ``retrieve`` tools on a FastMCP server."""

    @mcp.tool(name="upload", description=UPLOAD_DESCRIPTION)
    async def upload(
        file: Annotated[str, Field(description="The content of the file encoded as a base64 string")],
        name: Annotated[str, Field(description="Name for the uploaded file, including its extension")],
        key: Annotated[Optional[str], Field(description="Encryption key for the file (optional)")] = None,
        public: Annotated[Optional[bool], Field(description="Whether the file should be public")] = None,
    ) -> Dict[str, Any]:
        response = await tools.upload({"file": file, "name": name, "key": key, "public": public})
        return response.to_fastmcp_result()

    @mcp.tool(name="retrieve", description=RETRIEVE_DESCRIPTION)
    async def retrieve(
        cid: Annotated[str, Field(description="The Content ID (CID) of the file to retrieve")],
        key: Annotated[Optional[str], Field(description="Decryption key for encrypted files (optional)")] = None,
    ) -> Dict[str, Any]:
        response = await tools.retrieve({"cid": cid, "key": key})
        return response.to_fastmcp_result()

    logger.info("MEFS storage tools registered: upload, retrieve")
