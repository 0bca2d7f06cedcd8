# mefs_mcp/mefs/models.py
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


class Identity(BaseModel):
    """Wallet identity used to authenticate against MEFS."""
    address: Optional[str] = Field(
        default=None,
        description="Lowercase 0x-prefixed wallet address derived from the private key."
    )
    chain_id: Optional[int] = Field(default=None, gt=0)
    # Secret so it never shows up in repr() or logs
    private_key: Optional[SecretStr] = None

    def private_key_value(self) -> Optional[str]:
        if self.private_key is None:
            return None
        return self.private_key.get_secret_value() or None


class TokenPair(BaseModel):
    """Access/refresh token pair issued by the MEFS login endpoint."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    access_token: str = Field(alias="accessToken")
    refresh_token: str = Field(alias="refreshToken")


class LoginResult(TokenPair):
    """Decoded /login response."""
    new_account: bool = Field(default=False, alias="newAccount")

    def token_pair(self) -> TokenPair:
        return TokenPair(access_token=self.access_token, refresh_token=self.refresh_token)


class UploadOptions(BaseModel):
    key: Optional[str] = Field(default=None, description="Encryption key for the stored object.")
    is_public: Optional[bool] = Field(default=None, description="Store the object as public.")
    user: Optional[str] = Field(default=None, description="User identifier forwarded to MEFS.")


class UploadResult(BaseModel):
    cid: str


class DownloadResult(BaseModel):
    data: bytes
    filename: str = "unknown"
    content_type: Optional[str] = None


class MefsConfig(BaseModel):
    """
    Resolved MEFS connection settings.

    Built once at startup from the environment-backed settings and passed
    explicitly to the auth session, the storage client and the tools.
    """
    model_config = ConfigDict(frozen=True)

    api_base_url: str
    origin: str
    chain_id: Optional[int] = Field(default=None, gt=0)
    private_key: Optional[SecretStr] = None
    address: Optional[str] = None

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def identity(self) -> Identity:
        return Identity(address=self.address, chain_id=self.chain_id, private_key=self.private_key)
