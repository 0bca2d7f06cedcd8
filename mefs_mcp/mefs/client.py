# mefs_mcp/mefs/client.py
import logging
import re
from typing import Dict, Optional
from urllib.parse import quote, unquote

import httpx

from .errors import DownloadError, UploadError
from .models import DownloadResult, UploadOptions, UploadResult

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "unknown"

# filename*=UTF-8''name (RFC 5987) takes precedence over the plain parameter
_FILENAME_EXT_PATTERN = re.compile(r"filename\*\s*=\s*(?:[\w-]+)?'[^']*'([^;\s]+)", re.IGNORECASE)
_FILENAME_PATTERN = re.compile(r'filename\s*=\s*(?:"([^"]+)"|([^;"]+))', re.IGNORECASE)


def parse_content_disposition_filename(header_value: Optional[str]) -> str:
    """Extract the filename from a Content-Disposition header, or "unknown"."""
    if not header_value:
        return DEFAULT_FILENAME

    ext_match = _FILENAME_EXT_PATTERN.search(header_value)
    if ext_match:
        return unquote(ext_match.group(1))

    match = _FILENAME_PATTERN.search(header_value)
    if match:
        filename = (match.group(1) or match.group(2)).strip()
        if filename:
            return filename
    return DEFAULT_FILENAME


class MefsStorageClient:
    """Authenticated upload/download against the MEFS object API."""

    def __init__(self, client: httpx.AsyncClient, api_base_url: str):
        self.client = client
        self.api_base_url = api_base_url.rstrip("/")

    @staticmethod
    def _auth_headers(access_token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {access_token}"}

    async def upload_file(
        self,
        access_token: str,
        data: bytes,
        filename: str,
        options: Optional[UploadOptions] = None
    ) -> UploadResult:
        """
        Upload ``data`` as a multipart form to ``<base>/mefs/``.

        Returns the content identifier (``Mid``) assigned by MEFS.
        """
        options = options or UploadOptions()
        url = f"{self.api_base_url}/mefs/"

        form: Dict[str, str] = {}
        if options.key:
            form["key"] = options.key
        if options.is_public:
            form["public"] = "true"
        if options.user:
            form["user"] = options.user

        logger.debug(
            f"MEFS upload: POST {url} | filename={filename} size={len(data)} "
            f"fields={sorted(form)}"
        )
        response = await self.client.post(
            url,
            files={"file": (filename, data, "application/octet-stream")},
            data=form,
            headers=self._auth_headers(access_token),
        )

        if not response.is_success:
            logger.error(f"MEFS upload failed: {response.status_code} - {response.text}")
            raise UploadError(response.status_code, response.reason_phrase, response.text)

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(f"MEFS upload response is not JSON: {response.text}")
            raise UploadError(response.status_code, "Invalid JSON response", response.text) from e

        cid = payload.get("Mid") if isinstance(payload, dict) else None
        if not isinstance(cid, str) or not cid:
            logger.error(f"MEFS upload response missing 'Mid': {response.text}")
            raise UploadError(response.status_code, "Missing Mid in response", response.text)

        logger.info(f"Uploaded '{filename}' ({len(data)} bytes) to MEFS as {cid}")
        return UploadResult(cid=cid)

    async def download_file(
        self,
        access_token: str,
        cid: str,
        key: Optional[str] = None
    ) -> DownloadResult:
        """Download the object named by ``cid``, decrypting with ``key`` when given."""
        url = f"{self.api_base_url}/mefs/{quote(cid, safe='')}"
        params = {"key": key} if key else None

        logger.debug(f"MEFS download: GET {url} | key provided: {key is not None}")
        response = await self.client.get(url, params=params, headers=self._auth_headers(access_token))

        if not response.is_success:
            logger.error(f"MEFS download failed: {response.status_code} - {response.text}")
            raise DownloadError(response.status_code, response.reason_phrase, response.text)

        filename = parse_content_disposition_filename(response.headers.get("content-disposition"))
        content_type = response.headers.get("content-type") or None

        logger.info(f"Downloaded {cid} from MEFS ({len(response.content)} bytes, filename={filename})")
        return DownloadResult(data=response.content, filename=filename, content_type=content_type)
