# mefs_mcp/mefs/auth.py
"""
MEFS challenge/login authentication.

The flow is: GET /challenge → sign the challenge text (EIP-191) → POST /login
with the message and signature → bearer tokens. ``AuthSession`` runs that flow
at most once at a time and caches the resulting token pair until it is
explicitly invalidated.
"""
import asyncio
import logging
from typing import Dict, Optional

import httpx

from .errors import ChallengeRequestError, LoginError, MissingPrivateKeyError
from .models import Identity, LoginResult, TokenPair
from .signer import sign_message

logger = logging.getLogger(__name__)


async def get_challenge(
    client: httpx.AsyncClient,
    api_base_url: str,
    origin: str,
    address: Optional[str] = None,
    chain_id: Optional[int] = None
) -> str:
    """Fetch a one-time challenge message for ``address`` from ``<base>/challenge``."""
    params: Dict[str, str] = {}
    if address:
        params["address"] = address
    if chain_id:
        params["chainid"] = str(chain_id)

    url = f"{api_base_url}/challenge"
    logger.debug(f"MEFS challenge request: GET {url} | Params: {params}")
    response = await client.get(url, params=params, headers={"Origin": origin})

    if not response.is_success:
        logger.error(f"MEFS challenge request failed: {response.status_code} - {response.text}")
        raise ChallengeRequestError(response.status_code, response.reason_phrase, response.text)

    return response.text


async def login(
    client: httpx.AsyncClient,
    api_base_url: str,
    message: str,
    signature: str
) -> LoginResult:
    """Exchange a signed challenge for an access/refresh token pair."""
    url = f"{api_base_url}/login"
    logger.debug(f"MEFS login request: POST {url}")
    response = await client.post(
        url,
        json={"message": message, "signature": signature},
        headers={"Content-Type": "application/json"},
    )

    if not response.is_success:
        logger.error(f"MEFS login failed: {response.status_code} - {response.text}")
        raise LoginError(response.status_code, response.reason_phrase, response.text)

    # ValidationError and JSONDecodeError are both ValueErrors
    try:
        result = LoginResult.model_validate(response.json())
    except ValueError as e:
        logger.error(f"MEFS login response has no usable token pair: {response.text}")
        raise LoginError(response.status_code, "Invalid login response", response.text) from e

    logger.info(f"MEFS login succeeded. New account: {result.new_account}")
    return result


class AuthSession:
    """
    Owns the cached MEFS token pair for one server process.

    Concurrent ``get_tokens`` calls on an empty cache share a single
    authentication attempt, so a burst of tool calls consumes one challenge
    instead of one per call.
    """

    def __init__(self, client: httpx.AsyncClient, api_base_url: str, origin: str):
        self.client = client
        self.api_base_url = api_base_url.rstrip("/")
        self.origin = origin
        self._tokens: Optional[TokenPair] = None
        self._inflight: Optional[asyncio.Task] = None
        # Bumped by invalidate() so an attempt started earlier cannot repopulate the cache
        self._generation = 0

    @property
    def is_authenticated(self) -> bool:
        return self._tokens is not None

    async def get_tokens(self, identity: Identity) -> TokenPair:
        """
        Return the cached token pair, authenticating first if needed.

        Raises MissingPrivateKeyError without touching the network when the
        identity cannot sign. Challenge, signing and login errors propagate
        unchanged and leave the cache as it was.
        """
        if self._tokens is not None:
            return self._tokens

        if identity.private_key_value() is None:
            raise MissingPrivateKeyError()

        if self._inflight is None:
            logger.info(f"No cached MEFS tokens. Authenticating address {identity.address}")
            task = asyncio.ensure_future(self._authenticate(identity, self._generation))
            task.add_done_callback(self._on_attempt_done)
            self._inflight = task
        else:
            logger.debug("MEFS authentication already in flight; awaiting shared attempt")

        # Shielded so a cancelled caller does not cancel the attempt other callers wait on
        return await asyncio.shield(self._inflight)

    def invalidate(self) -> None:
        """Drop the cached token pair; the next get_tokens call re-authenticates."""
        if self._tokens is not None:
            logger.info("Invalidating cached MEFS tokens")
        self._tokens = None
        self._inflight = None
        self._generation += 1

    async def _authenticate(self, identity: Identity, generation: int) -> TokenPair:
        message = await get_challenge(
            self.client,
            self.api_base_url,
            self.origin,
            address=identity.address,
            chain_id=identity.chain_id,
        )
        signature = sign_message(identity.private_key_value(), message)
        result = await login(self.client, self.api_base_url, message, signature)

        tokens = result.token_pair()
        if generation == self._generation:
            self._tokens = tokens
        else:
            logger.info("MEFS session invalidated during authentication; result not cached")
        return tokens

    def _on_attempt_done(self, task: asyncio.Task) -> None:
        if self._inflight is task:
            self._inflight = None
        if not task.cancelled() and task.exception() is not None:
            logger.warning(f"MEFS authentication failed: {task.exception()}")
