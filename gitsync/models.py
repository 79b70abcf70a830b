"""Typed platform resources and command results."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CommandResult(BaseModel):
    """Result of an external command."""
    exit_code: int
    stdout: str
    stderr: str


class GpgKey(BaseModel):
    """Signing key attached to a git repository resource."""
    email: str
    private_key: str
    passphrase: Optional[str] = None


class GitRepository(BaseModel):
    """The git_repository resource that describes the sync target."""
    url: str
    branch: Optional[str] = None
    folder: Optional[str] = None
    gpg_key: Optional[GpgKey] = None
    is_github_app: bool = False

    @field_validator("is_github_app", mode="before")
    @classmethod
    def _null_is_false(cls, value):
        return False if value is None else value

    @property
    def subfolder(self) -> str:
        return self.folder or ""

    @property
    def pinned_branch(self) -> str:
        return self.branch or ""


class AzureServicePrincipal(BaseModel):
    """Service principal resource used to mint Azure DevOps tokens."""
    model_config = ConfigDict(populate_by_name=True)

    tenant_id: str = Field(alias="azureTenantId")
    client_id: str = Field(alias="azureClientId")
    client_secret: str = Field(alias="azureClientSecret")
