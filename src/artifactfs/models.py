"""artifactfs data models.

Credential records are pydantic models validated from the credential
configuration file. Table entries and load results are plain value types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class LoadResult(StrEnum):
    """Outcome of a credential table load."""

    LOADED = "LOADED"
    ALREADY_CACHED = "ALREADY_CACHED"
    NO_CONFIG_AVAILABLE = "NO_CONFIG_AVAILABLE"


class GCSCredential(BaseModel):
    """Google Cloud Storage credential: path to a service account JSON file."""

    model_config = ConfigDict(frozen=True)

    credential_path: str

    def __repr__(self) -> str:
        return f"GCSCredential(credential_path={self.credential_path!r})"


class S3Credential(BaseModel):
    """Amazon S3 credential.

    Attributes:
        secret_key: AWS secret access key.
        key_id: AWS access key id.
        region: Region name; empty uses the SDK default.
        session_token: Optional STS session token.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    secret_key: str = ""
    key_id: str = ""
    region: str = ""
    session_token: str = ""

    def __repr__(self) -> str:
        return f"S3Credential(key_id={self.key_id!r}, region={self.region!r})"


class AzureCredential(BaseModel):
    """Azure Blob Storage credential: account name and shared key."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    account_str: str = ""
    account_key: str = ""

    def __repr__(self) -> str:
        return f"AzureCredential(account_str={self.account_str!r})"


Credential = GCSCredential | S3Credential | AzureCredential


@dataclass(frozen=True)
class CredentialEntry:
    """One row of a backend's credential table.

    Attributes:
        prefix: Path prefix (without scheme) the credential applies to.
        credential: Backend-specific secret material.
    """

    prefix: str
    credential: Credential

    def matches(self, path: str) -> bool:
        """Return True if this entry's prefix is a literal prefix of ``path``."""
        return path.startswith(self.prefix)
