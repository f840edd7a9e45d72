from __future__ import annotations

from enum import Enum
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from .errors import MissingConfiguration

APIM_NAME_VAR = "AZURE_APIM_NAME"
RESOURCE_GROUP_VAR = "AZURE_RESOURCE_GROUP"
FUNCTION_NAME_VAR = "AZURE_FUNCTION_NAME"
REQUIRED_VARS = (APIM_NAME_VAR, RESOURCE_GROUP_VAR, FUNCTION_NAME_VAR)

ENCRYPTION_KEY_ID = "EncryptionKey"
ENCRYPTION_IV_ID = "EncryptionIV"
MCP_EXTENSION_KEY_ID = "mcp-extension-key"
MCP_EXTENSION_SYSTEM_KEY = "mcp_extension"

ENCRYPTION_KEY_BYTES = 32
ENCRYPTION_IV_BYTES = 16


class ConflictPolicy(str, Enum):
    """What to do when a named value already exists in APIM."""

    OVERWRITE = "overwrite"
    SKIP = "skip"
    FAIL = "fail"


class DeploymentContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    apim_name: str = Field(..., min_length=1, description="Target APIM service name")
    resource_group: str = Field(..., min_length=1, description="Target resource group")
    function_name: str = Field(..., min_length=1, description="Function App name")

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> DeploymentContext:
        """Build the context, naming the first missing variable on failure."""
        for name in REQUIRED_VARS:
            if not values.get(name):
                raise MissingConfiguration(name)
        return cls(
            apim_name=values[APIM_NAME_VAR],
            resource_group=values[RESOURCE_GROUP_VAR],
            function_name=values[FUNCTION_NAME_VAR],
        )


class NamedValue(BaseModel):
    """A secret named value as written to APIM."""

    model_config = ConfigDict(frozen=True)

    named_value_id: str = Field(..., min_length=1)
    display_name: str = Field(..., min_length=1)
    value: SecretStr
    secret: bool = True


class ProvisionResult(BaseModel):
    published: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
