# mefs_mcp/mefs/signer.py
import re
from typing import Optional

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount

from .errors import EmptyInputError, InvalidKeyFormatError

# 32-byte secp256k1 private key, hex encoded
PRIVATE_KEY_PATTERN = re.compile(r"^[0-9a-fA-F]{64}$")


def normalize_private_key(private_key: Optional[str]) -> str:
    """
    Validate a hex private key and return it with a single 0x prefix.

    Raises EmptyInputError for a missing key and InvalidKeyFormatError when the
    key is not exactly 64 hex characters once the optional prefix is removed.
    """
    if not private_key:
        raise EmptyInputError("Private key is required for signing messages")

    clean_key = private_key[2:] if private_key.startswith(("0x", "0X")) else private_key
    if not PRIVATE_KEY_PATTERN.match(clean_key):
        raise InvalidKeyFormatError("Invalid hex format for private key: expected 64 hex characters")
    return f"0x{clean_key}"


def _load_account(private_key: Optional[str]) -> LocalAccount:
    normalized = normalize_private_key(private_key)
    try:
        return Account.from_key(normalized)
    except Exception as e:
        # Correct length and alphabet but outside the curve order (e.g. all zeros)
        raise InvalidKeyFormatError("Private key is not a valid secp256k1 key", cause=e) from e


def sign_message(private_key: Optional[str], message: Optional[str]) -> str:
    """
    Sign ``message`` with EIP-191 personal-message signing.

    The message is signed verbatim; the "\\x19Ethereum Signed Message:\\n<len>"
    preamble is added by ``encode_defunct`` so the server can recover the
    signing address. Returns the 65-byte signature as 0x-prefixed hex.
    """
    if not private_key:
        raise EmptyInputError("Private key is required for signing messages")
    if not message:
        raise EmptyInputError("Message cannot be empty")

    account = _load_account(private_key)
    signed = account.sign_message(encode_defunct(text=message))
    return "0x" + bytes(signed.signature).hex()


def private_key_to_address(private_key: Optional[str]) -> str:
    """Derive the lowercase wallet address for a hex private key."""
    return _load_account(private_key).address.lower()
