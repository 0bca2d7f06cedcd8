# tests/conftest.py
import json
import re
from collections import Counter
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest
import pytest_asyncio
from eth_account import Account
from eth_account.messages import encode_defunct

from mefs_mcp.mefs.auth import AuthSession
from mefs_mcp.mefs.client import MefsStorageClient
from mefs_mcp.mefs.models import MefsConfig
from mefs_mcp.tool_modules.storage_tools import MefsStorageTools

# Well-known development key (Hardhat/Anvil account #0)
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266"
TEST_API_BASE_URL = "https://mefs.test/produce"
TEST_ORIGIN = "https://memo.io"
TEST_CHAIN_ID = 985


def parse_multipart(request: httpx.Request) -> Dict[str, Tuple[Optional[str], bytes]]:
    """Split a multipart/form-data body into {field: (filename, value)}."""
    content_type = request.headers["content-type"]
    boundary = re.search(r"boundary=([^;]+)", content_type).group(1).strip('"').encode()
    fields: Dict[str, Tuple[Optional[str], bytes]] = {}
    for part in request.content.split(b"--" + boundary):
        if not part.strip() or part.strip() == b"--":
            continue
        raw_headers, _, value = part.lstrip(b"\r\n").partition(b"\r\n\r\n")
        headers = raw_headers.decode()
        name = re.search(r'name="([^"]*)"', headers).group(1)
        filename_match = re.search(r'filename="([^"]*)"', headers)
        fields[name] = (filename_match.group(1) if filename_match else None, value[:-2])
    return fields


class FakeMefsServer:
    """
    In-memory stand-in for the MEFS HTTP API, served through httpx.MockTransport.

    Verifies login signatures against the challenge it issued and counts every
    call per (method, path) so tests can assert on network traffic.
    """

    def __init__(self, base_path: str = "/produce"):
        self.base_path = base_path
        self.calls: Counter = Counter()
        self.requests: List[httpx.Request] = []
        self.objects: Dict[str, Dict[str, Any]] = {}
        self.issued_challenges: List[str] = []
        self.issued_tokens: List[str] = []
        self.fail: Dict[str, Tuple[int, str]] = {}

    def count(self, method: str, path: str) -> int:
        return self.calls[(method, self.base_path + path)]

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls[(request.method, path)] += 1
        self.requests.append(request)

        route = path[len(self.base_path):]
        if route in self.fail:
            status, body = self.fail[route]
            return httpx.Response(status, text=body)

        if request.method == "GET" and route == "/challenge":
            return self._challenge(request)
        if request.method == "POST" and route == "/login":
            return self._login(request)
        if request.method == "POST" and route == "/mefs/":
            return self._upload(request)
        if request.method == "GET" and route.startswith("/mefs/"):
            return self._download(request, route[len("/mefs/"):])
        return httpx.Response(404, text="not found")

    def _challenge(self, request: httpx.Request) -> httpx.Response:
        address = request.url.params.get("address", "")
        message = (
            "memo.io wants you to sign in with your Ethereum account:\n"
            f"{address}\n\n"
            "The message is only used for login\n\n"
            f"URI: {request.headers.get('origin')}\n"
            "Version: 1\n"
            f"Chain ID: {request.url.params.get('chainid', '')}\n"
            f"Nonce: nonce{len(self.issued_challenges)}"
        )
        self.issued_challenges.append(message)
        return httpx.Response(200, text=message)

    def _login(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if body["message"] not in self.issued_challenges:
            return httpx.Response(401, text="unknown challenge")
        # One-time use
        self.issued_challenges.remove(body["message"])
        signer = Account.recover_message(encode_defunct(text=body["message"]), signature=body["signature"])
        if signer.lower() != TEST_ADDRESS:
            return httpx.Response(401, text="bad signature")

        token = f"access-{len(self.issued_tokens)}"
        self.issued_tokens.append(token)
        return httpx.Response(200, json={
            "accessToken": token,
            "refreshToken": f"refresh-{len(self.issued_tokens) - 1}",
            "newAccount": len(self.issued_tokens) == 1,
        })

    def _authorized(self, request: httpx.Request) -> bool:
        auth = request.headers.get("authorization", "")
        return auth.startswith("Bearer ") and auth[len("Bearer "):] in self.issued_tokens

    def _upload(self, request: httpx.Request) -> httpx.Response:
        if not self._authorized(request):
            return httpx.Response(401, text="invalid token")
        fields = parse_multipart(request)
        filename, data = fields["file"]
        cid = f"bafy{len(self.objects):04d}"
        self.objects[cid] = {
            "filename": filename,
            "data": data,
            "key": fields["key"][1].decode() if "key" in fields else None,
            "public": fields["public"][1].decode() if "public" in fields else None,
            "user": fields["user"][1].decode() if "user" in fields else None,
        }
        return httpx.Response(200, json={"Mid": cid})

    def _download(self, request: httpx.Request, cid: str) -> httpx.Response:
        if not self._authorized(request):
            return httpx.Response(401, text="invalid token")
        stored = self.objects.get(cid)
        if stored is None:
            return httpx.Response(404, text=f"object {cid} not found")
        if stored["key"] and request.url.params.get("key") != stored["key"]:
            return httpx.Response(403, text="wrong key")
        return httpx.Response(
            200,
            content=stored["data"],
            headers={
                "Content-Type": "application/octet-stream",
                "Content-Disposition": f'attachment; filename="{stored["filename"]}"',
            },
        )


@pytest.fixture
def fake_server() -> FakeMefsServer:
    return FakeMefsServer()


@pytest_asyncio.fixture
async def http_client(fake_server):
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_server.handle)) as client:
        yield client


@pytest.fixture
def mefs_config() -> MefsConfig:
    return MefsConfig(
        api_base_url=TEST_API_BASE_URL,
        origin=TEST_ORIGIN,
        chain_id=TEST_CHAIN_ID,
        private_key=TEST_PRIVATE_KEY,
        address=TEST_ADDRESS,
    )


@pytest.fixture
def auth_session(http_client, mefs_config) -> AuthSession:
    return AuthSession(http_client, mefs_config.api_base_url, mefs_config.origin)


@pytest.fixture
def storage_client(http_client, mefs_config) -> MefsStorageClient:
    return MefsStorageClient(http_client, mefs_config.api_base_url)


@pytest.fixture
def storage_tools(mefs_config, auth_session, storage_client) -> MefsStorageTools:
    return MefsStorageTools(mefs_config, auth_session, storage_client)
