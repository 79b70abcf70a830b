"""Deploy a single changed object to the git repository."""

import logging
from pathlib import Path
from typing import Optional

from .auth import authenticate_repository
from .clone import clone_repository
from .config import JobEnv, LOCK_FILE
from .git import (
    commit_and_push,
    configure_identity,
    remove_safe_directory,
    stage,
    switch_or_create_branch,
)
from .gpg import signing_key
from .job import load_repository, prepare_home, working_directory
from .models import GitRepository
from .paths import UNBRANCHED_TYPES, deploy_branch_name, include_glob, repository_path
from .platform import PlatformClient
from .wmill import wmill_run, workspace_add

logger = logging.getLogger(__name__)


def move_to_deploy_branch(
    workspace_id: str,
    path_type: str,
    path: Optional[str],
    parent_path: Optional[str],
    use_individual_branch: bool,
    group_by_folder: bool,
) -> Optional[str]:
    """Switch to the object's deploy branch. Returns it, or None if not used."""
    if not use_individual_branch or path_type in UNBRANCHED_TYPES:
        return None
    branch = deploy_branch_name(workspace_id, path_type, path, parent_path, group_by_folder)
    switch_or_create_branch(branch)
    return branch


def sync_pull_args(
    path_type: str,
    workspace_id: str,
    path: Optional[str],
    parent_path: Optional[str],
    skip_secret: bool,
    repository: str,
    use_individual_branch: bool,
    original_branch: Optional[str],
    env: JobEnv,
) -> list[str]:
    """CLI arguments that write just this object into the repository."""
    includes = [include_glob(path_type, p) for p in (path, parent_path) if p]
    args = [
        "sync",
        "pull",
        "--token",
        env.token,
        "--workspace",
        workspace_id,
        "--repository",
        repository,
        "--yes",
        "--skip-secrets" if skip_secret else "",
        "--include-schedules",
        "--include-users",
        "--include-groups",
        "--include-triggers",
    ]
    # settings and the encryption key only travel on the main branch
    if path_type == "settings" and not use_individual_branch:
        args.append("--include-settings")
    if path_type == "key" and not use_individual_branch:
        args.append("--include-key")
    if includes:
        args += ["--extra-includes", ",".join(includes)]
    if use_individual_branch and original_branch:
        logger.info(
            f"Individual branch deployment detected - using promotion settings "
            f"from '{original_branch}'"
        )
        args += ["--promotion", original_branch]
    return args


def push_object(
    path: Optional[str],
    parent_path: Optional[str],
    commit_msg: str,
    repo: GitRepository,
    env: JobEnv,
) -> dict:
    """Commit the object's files (and the lock file) and push."""
    email = repo.gpg_key.email if repo.gpg_key else env.email
    configure_identity(email, env.username)

    with signing_key(repo.gpg_key):
        for pathspec in (path, parent_path):
            if pathspec:
                stage(LOCK_FILE, f"{pathspec}**")
        return commit_and_push(commit_msg, author=f"{env.username} <{env.email}>")


def deploy_object(
    workspace_id: str,
    resource_path: str,
    path_type: str,
    skip_secret: bool = True,
    path: Optional[str] = None,
    parent_path: Optional[str] = None,
    commit_msg: str = "",
    use_individual_branch: bool = False,
    group_by_folder: bool = False,
    env: Optional[JobEnv] = None,
    client: Optional[PlatformClient] = None,
) -> dict:
    """
    Pull one object from the workspace into git and push a commit.

    parent_path is set for renames and moves so the old location is removed
    in the same commit.

    Returns:
        {"status": "changes pushed"} or {"status": "no changes pushed"}
    """
    env = env or JobEnv.from_environ()
    client = client or PlatformClient(env)

    repo = load_repository(client, resource_path)
    cwd = Path.cwd()
    prepare_home(cwd)
    logger.info(f"Syncing {path_type} {path or ''} with parent {parent_path or ''}")

    repo = authenticate_repository(repo, client)

    with working_directory(cwd):
        cloned = clone_repository(cwd, repo, client, individual_branch=use_individual_branch)
        try:
            move_to_deploy_branch(
                workspace_id, path_type, path, parent_path,
                use_individual_branch, group_by_folder,
            )
            logger.info(
                f"Pushing to repository {cloned.repo_name} in subfolder {repo.subfolder} "
                f"on branch {repo.branch or '<DEFAULT>'}"
            )
            workspace_add(workspace_id, env)
            logger.info("Pulling workspace into git repo")
            wmill_run(*sync_pull_args(
                path_type, workspace_id, path, parent_path, skip_secret,
                repository_path(resource_path), use_individual_branch, repo.branch, env,
            ))
            result = push_object(path, parent_path, commit_msg, repo, env)
        finally:
            remove_safe_directory(str(cloned.root))

    logger.info("Finished syncing")
    return result
