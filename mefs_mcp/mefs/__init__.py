# mefs_mcp/mefs/__init__.py
"""
MEFS client layer: wallet signing, challenge/login authentication with a
cached token pair, and authenticated upload/download.
"""

from .models import (
    Identity,
    TokenPair,
    LoginResult,
    UploadOptions,
    UploadResult,
    DownloadResult,
    MefsConfig
)

from .errors import (
    MefsError,
    MefsHTTPError,
    EmptyInputError,
    InvalidKeyFormatError,
    MissingPrivateKeyError,
    ChallengeRequestError,
    LoginError,
    UploadError,
    DownloadError,
    InvalidEncodingError,
    ToolValidationError
)

from .signer import sign_message, private_key_to_address
from .auth import get_challenge, login, AuthSession
from .client import MefsStorageClient, parse_content_disposition_filename
from .utils import base64_to_bytes, bytes_to_base64

__all__ = [
    # Data models
    "Identity",
    "TokenPair",
    "LoginResult",
    "UploadOptions",
    "UploadResult",
    "DownloadResult",
    "MefsConfig",

    # Exception classes
    "MefsError",
    "MefsHTTPError",
    "EmptyInputError",
    "InvalidKeyFormatError",
    "MissingPrivateKeyError",
    "ChallengeRequestError",
    "LoginError",
    "UploadError",
    "DownloadError",
    "InvalidEncodingError",
    "ToolValidationError",

    # Signing and authentication
    "sign_message",
    "private_key_to_address",
    "get_challenge",
    "login",
    "AuthSession",

    # Storage
    "MefsStorageClient",
    "parse_content_disposition_filename",
    "base64_to_bytes",
    "bytes_to_base64"
]
