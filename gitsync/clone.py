"""Clone the sync repository and enter its working directory."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .auth import resolve_azure_devops_url
from .errors import ShellError, SyncError
from .git import (
    add_safe_directory,
    create_or_switch_branch,
    current_branch,
    is_missing_branch_error,
    remove_safe_directory,
)
from .models import GitRepository
from .paths import fork_branch_name, is_forked_workspace
from .shell import sh_run

logger = logging.getLogger(__name__)


@dataclass
class ClonedRepo:
    """A clone the job is currently working in."""
    repo_name: str
    root: Path
    workdir: Path
    branch: str


def repo_name_from_url(url: str) -> str:
    """Directory name git would pick: last path segment without .git."""
    name = url.rstrip("/").rsplit("/", 1)[-1]
    return name[:-4] if name.endswith(".git") else name


def _clone_args(url: str, name: str, subfolder: str, branch: str, all_branches: bool) -> list[str]:
    args = ["clone", "--quiet", "--depth", "1"]
    if all_branches:
        # the deploy or fork branch may already exist on the remote
        args.append("--no-single-branch")
    if subfolder:
        args.append("--sparse")
    if branch:
        args += ["--branch", branch]
    return args + [url, name]


def _clone(url: str, name: str, subfolder: str, branch: str, all_branches: bool) -> None:
    try:
        sh_run("git", *_clone_args(url, name, subfolder, branch, all_branches), secret_position=-2)
    except ShellError as e:
        if not (branch and is_missing_branch_error(str(e))):
            raise
        # Empty repository: the configured branch has no commits yet
        logger.info(f"Branch {branch} not found, cloning without branch specification")
        sh_run("git", *_clone_args(url, name, subfolder, "", False), secret_position=-2)


def _enter_subfolder(root: Path, subfolder: str, require_subfolder: bool) -> Path:
    sh_run("git", "sparse-checkout", "add", subfolder)
    path = root / subfolder
    if not path.exists():
        if require_subfolder:
            raise SyncError(f"Subfolder {subfolder} does not exist.")
        logger.info(f"Creating subfolder {subfolder}")
        path.mkdir(parents=True)
    return path


def clone_repository(
    cwd: Path,
    repo: GitRepository,
    client,
    workspace_id: str = "",
    individual_branch: bool = False,
    require_subfolder: bool = False,
) -> ClonedRepo:
    """
    Shallow-clone repo under cwd and chdir into its working directory.

    Args:
        cwd: Directory to clone into
        repo: Repository resource (URL already authenticated)
        client: Platform client, used to resolve Azure DevOps credentials
        workspace_id: Forked workspaces are moved to their fork branch
        individual_branch: Fetch all branches so a deploy branch can be reused
        require_subfolder: Fail instead of creating a missing subfolder

    Returns:
        ClonedRepo; the process cwd is its workdir on return.

    Raises:
        ShellError if git fails, SyncError if a required subfolder is missing
    """
    url = resolve_azure_devops_url(repo.url, client)
    name = repo_name_from_url(repo.url)
    forked = is_forked_workspace(workspace_id)

    _clone(url, name, repo.subfolder, repo.pinned_branch, individual_branch or forked)

    root = Path(cwd) / name
    os.chdir(root)
    add_safe_directory(str(root))

    try:
        workdir = root
        if repo.subfolder:
            workdir = _enter_subfolder(root, repo.subfolder, require_subfolder)
            os.chdir(workdir)

        branch = current_branch()
        if forked:
            branch = fork_branch_name(workspace_id, branch)
            create_or_switch_branch(branch)
    except Exception:
        remove_safe_directory(str(root))
        raise

    return ClonedRepo(repo_name=name, root=root, workdir=workdir, branch=branch)
