"""State shared by the steps of one sync job."""

import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from pydantic import ValidationError

from .config import JobEnv, SETTINGS_FILE
from .errors import PlatformError
from .git import commit_and_push, configure_identity, stage
from .gpg import signing_key
from .models import GitRepository
from .paths import repository_path

logger = logging.getLogger(__name__)

# The CLI keeps its workspace profiles under $HOME/.config
CLI_CONFIG_EXCLUDE = ":!./.config"


@dataclass
class SyncContext:
    """Everything a settings or sync operation needs once the repo is cloned."""

    workspace_id: str
    repository: str
    repo: GitRepository
    env: JobEnv
    branch: str = ""
    settings_json: Optional[str] = None
    promotion_branch: Optional[str] = None

    def settings_file_exists(self) -> bool:
        return Path(SETTINGS_FILE).exists()


def push_workspace(ctx: SyncContext, message: str) -> dict:
    """Stage everything the CLI wrote, commit (signed if configured) and push."""
    configure_identity(ctx.env.email, ctx.env.username)
    with signing_key(ctx.repo.gpg_key):
        stage("-A", CLI_CONFIG_EXCLUDE)
        result = commit_and_push(message, target_branch=ctx.branch)
    logger.info(f"Git push completed: {result['status']}")
    return result


def load_repository(client, resource_path: str) -> GitRepository:
    """Fetch the git_repository resource and validate it."""
    value = client.get_resource(resource_path)
    try:
        return GitRepository.model_validate(value)
    except ValidationError as e:
        raise PlatformError(
            f"Invalid git repository resource {repository_path(resource_path)}: {e}"
        ) from e


@contextmanager
def working_directory(path: Path) -> Iterator[Path]:
    """Restore the process working directory to path when the block exits."""
    try:
        yield path
    finally:
        logger.info(f"Changing back to original directory: {path}")
        os.chdir(path)


def prepare_home(cwd: Path) -> None:
    """Keep git --global and CLI profiles inside the job directory."""
    os.environ["HOME"] = str(cwd)
