"""Client for the workflow platform's HTTP API."""

import logging
from typing import Any, Optional
from urllib.parse import quote

import requests

from .config import HTTP_TIMEOUT, JobEnv
from .errors import AuthError, PlatformError
from .paths import repository_path

logger = logging.getLogger(__name__)


class PlatformClient:
    """Fetches resources and variables with the job's own token."""

    def __init__(self, env: JobEnv, session: Optional[requests.Session] = None):
        self.env = env
        self.session = session or requests.Session()
        self.session.headers["Authorization"] = f"Bearer {env.token}"

    def _url(self, suffix: str) -> str:
        return f"{self.env.api_url}/api/w/{self.env.workspace}/{suffix}"

    def _get(self, suffix: str) -> Any:
        try:
            resp = self.session.get(self._url(suffix), timeout=HTTP_TIMEOUT)
        except requests.RequestException as e:
            raise PlatformError(f"Could not reach platform API: {e}") from e
        if not resp.ok:
            raise PlatformError(
                f"Platform API error for {suffix}: {resp.status_code} {resp.reason}"
            )
        return resp.json()

    def get_resource(self, path: str) -> Any:
        """Resource value with variables interpolated. Accepts "$res:" paths."""
        path = repository_path(path)
        return self._get(f"resources/get_value_interpolated/{quote(path)}")

    def get_variable(self, path: str) -> Any:
        """Decrypted value of a variable."""
        return self._get(f"variables/get_value/{quote(path)}")

    def get_github_app_token(self) -> str:
        """Exchange the job token for a GitHub App installation token."""
        logger.info("Requesting GitHub App installation token")
        try:
            resp = self.session.post(
                self._url("github_app/token"),
                json={"job_token": self.env.token},
                timeout=HTTP_TIMEOUT,
            )
        except requests.RequestException as e:
            raise AuthError(f"GitHub App token error: {e}") from e
        if not resp.ok:
            raise AuthError(f"GitHub App token error: {resp.reason}")
        return resp.json()["token"]
