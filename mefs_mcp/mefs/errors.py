# mefs_mcp/mefs/errors.py
from typing import Any, Dict, Optional


class MefsError(Exception):
    """Base class for every error raised by the MEFS auth and storage layers.

    Carries a structured ``detail`` dictionary so the tool layer can turn any
    error into the same JSON envelope without inspecting its concrete type.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.message = message
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def detail(self) -> Dict[str, Any]:
        cause = self.__cause__
        return {
            "name": self.name,
            "message": self.message,
            "cause": str(cause) if cause is not None else None,
        }


class EmptyInputError(MefsError):
    """Raised when a private key or a message to sign is missing or empty."""


class InvalidKeyFormatError(MefsError):
    """Raised when a private key is not 32 bytes of hex (optionally 0x-prefixed)."""


class MissingPrivateKeyError(MefsError):
    """Raised before any network call when the identity has no private key."""

    def __init__(self, message: str = "Private key is required for authentication"):
        super().__init__(message)


class InvalidEncodingError(MefsError):
    """Raised when a tool payload is not strict base64."""

    def __init__(self, message: str = "Invalid base64 format", cause: Optional[BaseException] = None):
        super().__init__(message, cause=cause)


class ToolValidationError(MefsError):
    """Raised when tool arguments do not match the declared input schema."""


class MefsHTTPError(MefsError):
    """
    Base class for non-success responses from the MEFS API.

    The message always embeds the numeric status, the reason phrase and the raw
    response body so failures can be diagnosed from the envelope alone.
    """

    action = "call MEFS API"

    def __init__(self, status_code: int, status_text: str, body: str):
        self.status_code = status_code
        self.status_text = status_text
        self.body = body
        super().__init__(f"Failed to {self.action}: {status_code} {status_text} - {body}")


class ChallengeRequestError(MefsHTTPError):
    action = "get challenge"


class LoginError(MefsHTTPError):
    action = "login"


class UploadError(MefsHTTPError):
    action = "upload file"


class DownloadError(MefsHTTPError):
    action = "download file"
