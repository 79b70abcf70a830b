"""Configuration loading for the sync jobs."""

import os
from dataclasses import dataclass
from typing import Optional


def optional_seconds(value: Optional[str]) -> Optional[int]:
    """Timeout from an env value; unset or empty means wait indefinitely."""
    return int(value) if value else None


WMILL_BIN = os.environ.get("WMILL_BIN", "wmill")
GPG_HOME = os.environ.get("GPG_HOME", "/tmp/gpg")
COMMAND_TIMEOUT = optional_seconds(os.environ.get("GITSYNC_COMMAND_TIMEOUT"))
HTTP_TIMEOUT = int(os.environ.get("GITSYNC_HTTP_TIMEOUT", "30"))

DEFAULT_BASE_URL = "http://localhost:8000"

FORKED_WORKSPACE_PREFIX = "wm-fork-"
FORKED_BRANCH_PREFIX = "wm-fork"
DEPLOY_BRANCH_PREFIX = "wm_deploy"

SETTINGS_FILE = "wmill.yaml"
LOCK_FILE = "wmill-lock.yaml"


@dataclass
class JobEnv:
    """Job-scoped values injected by the platform's job runner."""

    workspace: str = ""
    token: str = ""
    base_url: str = ""
    internal_base_url: str = ""
    email: str = ""
    username: str = ""

    @classmethod
    def from_environ(cls, environ=None) -> "JobEnv":
        """Read the job environment (defaults to os.environ)."""
        environ = os.environ if environ is None else environ
        return cls(
            workspace=environ.get("WM_WORKSPACE", ""),
            token=environ.get("WM_TOKEN", ""),
            base_url=environ.get("BASE_URL", ""),
            internal_base_url=environ.get("BASE_INTERNAL_URL", ""),
            email=environ.get("WM_EMAIL", ""),
            username=environ.get("WM_USERNAME", ""),
        )

    @property
    def api_url(self) -> str:
        """Base URL for calls made from inside the job."""
        return (self.internal_base_url or self.base_url or DEFAULT_BASE_URL).rstrip("/")

    @property
    def cli_base_url(self) -> str:
        """Base URL as the CLI expects it (trailing slash)."""
        return self.base_url + "/"
