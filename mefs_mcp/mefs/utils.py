# mefs_mcp/mefs/utils.py
import base64
import binascii
import re

from .errors import InvalidEncodingError

_DATA_URL_PREFIX = re.compile(r"^data:.*?;base64,")


def base64_to_bytes(value: str) -> bytes:
    """
    Strictly decode a base64 string, accepting an optional data URL prefix.

    Unpadded input is accepted. The decoded bytes must re-encode to the same
    text; anything else (stray characters, non-canonical trailing bits)
    raises InvalidEncodingError.
    """
    clean = _DATA_URL_PREFIX.sub("", value)
    padded = clean + "=" * (-len(clean) % 4)
    try:
        decoded = base64.b64decode(padded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidEncodingError(cause=e) from e

    reencoded = base64.b64encode(decoded).decode("ascii")
    if reencoded != clean and reencoded.rstrip("=") != clean:
        raise InvalidEncodingError()
    return decoded


def bytes_to_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")
