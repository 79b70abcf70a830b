"""Git operations run inside the cloned repository."""

import logging
from typing import Optional

from .errors import GitError, ShellError
from .shell import execute, sh_run

logger = logging.getLogger(__name__)


def is_empty_repository_error(message: str) -> bool:
    """Push failed because the remote has no commits yet."""
    return "src refspec" in message and "does not match any" in message


def is_missing_branch_error(message: str) -> bool:
    """Clone or checkout named a branch the remote doesn't have."""
    return "Remote branch" in message and "not found" in message


def is_missing_remote_ref_error(message: str) -> bool:
    """Pull failed because the remote branch does not exist yet."""
    return "no such ref was fetched" in message or "couldn't find remote ref" in message


def configure_identity(email: str, name: str) -> None:
    """Set the committer identity for this repository."""
    sh_run("git", "config", "user.email", email)
    sh_run("git", "config", "user.name", name)


def add_safe_directory(path: str) -> None:
    """Trust the clone regardless of ownership. Failures are only logged."""
    try:
        sh_run("git", "config", "--global", "--add", "safe.directory", path)
    except ShellError as e:
        logger.warning(f"Could not add safe.directory config: {e}")


def remove_safe_directory(path: str) -> None:
    """Undo add_safe_directory. Failures are only logged."""
    try:
        sh_run("git", "config", "--global", "--unset", "safe.directory", path)
    except ShellError as e:
        logger.warning(f"Could not unset safe.directory config: {e}")


def current_branch() -> str:
    """Name of the checked out branch, including an unborn one in an empty clone."""
    try:
        return sh_run("git", "rev-parse", "--abbrev-ref", "HEAD").strip()
    except ShellError:
        return sh_run("git", "symbolic-ref", "--short", "HEAD").strip()


def create_or_switch_branch(branch: str) -> None:
    """Create branch, or switch to it if it already exists."""
    try:
        sh_run("git", "checkout", "-b", branch)
    except ShellError:
        logger.info("Could not create branch, trying to switch to existing branch")
        sh_run("git", "checkout", branch)


def switch_or_create_branch(branch: str) -> None:
    """
    Switch to branch, creating it if it doesn't exist yet.

    New branches get push.autoSetupRemote so the first push creates them
    on the remote.
    """
    try:
        sh_run("git", "checkout", branch)
    except ShellError as e:
        logger.info(
            f"Error checking out branch {branch}. It is possible it doesn't exist yet, "
            f"tentatively creating it... Error was:\n{e}"
        )
        sh_run("git", "checkout", "-b", branch)
        sh_run("git", "config", "--add", "--bool", "push.autoSetupRemote", "true")
    logger.info(f"Successfully switched to branch {branch}")


def stage(*pathspecs: str) -> None:
    """Stage pathspecs. Unmatched pathspecs are logged, not fatal."""
    try:
        sh_run("git", "add", *pathspecs)
    except ShellError as e:
        logger.info(f"Unable to stage files matching {' '.join(pathspecs)}: {e}")


def has_staged_changes() -> bool:
    """True if the index differs from HEAD."""
    result = execute("git", "diff", "--cached", "--quiet")
    if result.exit_code == 0:
        return False
    if result.exit_code == 1:
        return True
    raise GitError(f"Failed to inspect staged changes: {result.stderr.strip()}")


def commit(message: str, author: Optional[str] = None) -> None:
    args = ["commit"]
    if author:
        args += ["--author", author]
    args += ["-m", message or "no commit msg"]
    sh_run("git", *args)


def _initialize_remote_branch(branch: str) -> None:
    """First push to an empty repository."""
    logger.info(f"Empty repository detected, pushing initial branch {branch}")
    sh_run("git", "branch", "-M", branch)
    sh_run("git", "push", "-u", "origin", branch)


def _push_current() -> None:
    try:
        sh_run("git", "push", "--porcelain")
    except ShellError as e:
        logger.info(f"Could not push, trying to rebase first: {e}")
        sh_run("git", "pull", "--rebase")
        sh_run("git", "push", "--porcelain")


def _push_branch(branch: str) -> None:
    try:
        sh_run("git", "push", "--set-upstream", "origin", branch)
        return
    except ShellError as e:
        if is_empty_repository_error(str(e)):
            _initialize_remote_branch(branch)
            return
        logger.info(f"First push failed, attempting rebase and retry: {e}")

    try:
        sh_run("git", "pull", "--rebase")
        sh_run("git", "push", "--set-upstream", "origin", branch)
    except ShellError as e:
        if not is_missing_remote_ref_error(str(e)):
            raise
        _initialize_remote_branch(branch)


def commit_and_push(
    message: str,
    target_branch: Optional[str] = None,
    author: Optional[str] = None,
) -> dict:
    """
    Commit staged changes and push them.

    Without target_branch the current upstream is used; with it the branch
    is pushed with --set-upstream and created on an empty remote.

    Returns {"status": "no changes pushed"} or {"status": "changes pushed"}.
    """
    if not has_staged_changes():
        logger.info("No changes detected, nothing to commit")
        return {"status": "no changes pushed"}

    commit(message, author)
    if target_branch:
        _push_branch(target_branch)
    else:
        _push_current()
    return {"status": "changes pushed"}
