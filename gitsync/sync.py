"""Whole-workspace sync operations and the repository sync job.

A "pull" job brings the repository into the platform (CLI `sync push`); a
push job writes the platform into the repository (CLI `sync pull`).
"""

import logging
from pathlib import Path
from typing import Optional

from .auth import authenticate_repository
from .clone import clone_repository
from .config import JobEnv, SETTINGS_FILE
from .errors import GitSyncError, SyncError
from .git import remove_safe_directory
from .job import (
    SyncContext,
    load_repository,
    prepare_home,
    push_workspace,
    working_directory,
)
from .paths import repository_path
from .platform import PlatformClient
from .settings import init_default_settings, run_settings_operation, settings_command
from .wmill import auth_flags, wmill_run, workspace_add

logger = logging.getLogger(__name__)


def sync_command(ctx: SyncContext, action: str, *flags: str) -> list[str]:
    """Build a `sync <action>` invocation."""
    return [
        "sync",
        action,
        *flags,
        "--workspace",
        ctx.workspace_id,
        *auth_flags(ctx.env),
        "--repository",
        ctx.repository,
    ]


def _ensure_settings(ctx: SyncContext, with_diff: bool = False) -> tuple[bool, dict]:
    """
    Make sure the repository has a wmill.yaml before syncing.

    Returns (existed, settings diff). The diff is only computed with_diff.
    """
    existed = ctx.settings_file_exists()
    diff: dict = {}
    if existed:
        if with_diff:
            diff = wmill_run(*settings_command(
                ctx, "pull", "--diff", "--override", "--json-output", with_promotion=False,
            ))
        return existed, diff

    init_default_settings(ctx)
    if with_diff:
        diff = wmill_run(*settings_command(
            ctx, "pull", "--diff", "--replace", "--json-output", with_promotion=False,
        ))
    wmill_run(*settings_command(ctx, "pull", "--replace", with_promotion=False))
    logger.info("Git-sync settings pulled successfully")
    return existed, diff


def _changes(result: dict) -> list:
    if not result.get("changes"):
        result["changes"] = []
    return result["changes"]


def sync_pull_dry_run(ctx: SyncContext) -> dict:
    """Changes a push into the repository would make, wmill.yaml included."""
    try:
        existed, settings_diff = _ensure_settings(ctx, with_diff=True)
        result = wmill_run(*sync_command(ctx, "pull", "--dry-run", "--json-output"))
    except GitSyncError as e:
        raise SyncError(f"Sync pull dry run failed: {e}") from e

    changes = _changes(result)
    if not any(change.get("path") == SETTINGS_FILE for change in changes):
        if not existed:
            changes.append({"type": "added", "path": SETTINGS_FILE})
            result["total"] = result.get("total", 0) + 1
        elif settings_diff.get("hasChanges"):
            changes.append({"type": "edited", "path": SETTINGS_FILE})
            result["total"] = result.get("total", 0) + 1
    return result


def sync_push_dry_run(ctx: SyncContext) -> dict:
    """Changes pulling the repository into the platform would make."""
    try:
        settings_diff = wmill_run(*settings_command(ctx, "push", "--diff", "--json-output"))
        result = wmill_run(*sync_command(ctx, "push", "--dry-run", "--json-output"))
    except GitSyncError as e:
        raise SyncError(f"Sync push dry run failed: {e}") from e

    _changes(result)
    if settings_diff.get("hasChanges"):
        result["settingsDiffResult"] = settings_diff
    return result


def sync_pull(ctx: SyncContext) -> dict:
    """Write the whole workspace into the repository and push it."""
    try:
        _ensure_settings(ctx)
        wmill_run(*sync_command(ctx, "pull", "--yes"))
        push_workspace(ctx, "Initialize windmill sync repo")
    except GitSyncError as e:
        raise SyncError(f"Sync pull failed: {e}") from e
    return {"success": True, "message": "CLI sync pull completed"}


def sync_push(ctx: SyncContext) -> dict:
    """Apply the repository to the platform; return the repository's settings."""
    try:
        settings = wmill_run(*settings_command(
            ctx, "push", "--diff", "--json-output",
            with_backend_settings=False, with_promotion=False,
        ))
        result = wmill_run(*sync_command(ctx, "push", "--yes", "--json-output"))
    except GitSyncError as e:
        raise SyncError(f"Sync push failed: {e}") from e

    return {
        **result,
        "success": True,
        "message": "CLI sync push completed",
        "settings_json": settings.get("local"),
    }


def run_sync_operation(ctx: SyncContext, pull: bool, dry_run: bool) -> dict:
    """Dispatch a full sync job."""
    if pull:
        return sync_push_dry_run(ctx) if dry_run else sync_push(ctx)
    return sync_pull_dry_run(ctx) if dry_run else sync_pull(ctx)


def sync_repository(
    workspace_id: str,
    resource_path: str,
    dry_run: bool,
    only_wmill_yaml: bool = False,
    pull: bool = False,
    settings_json: Optional[str] = None,
    use_promotion_overrides: bool = False,
    env: Optional[JobEnv] = None,
    client: Optional[PlatformClient] = None,
) -> dict:
    """
    Sync a workspace with its git repository.

    Args:
        workspace_id: Workspace to sync
        resource_path: Path of the git_repository resource ("$res:" allowed)
        dry_run: Only report what would change
        only_wmill_yaml: Sync the git-sync settings file only
        pull: git -> platform when True, platform -> git otherwise
        settings_json: Settings from the UI to diff or write
        use_promotion_overrides: Use the resource branch's promotion overrides

    Returns:
        The CLI's JSON result, or a success/status dict

    Raises:
        GitSyncError subclasses; temporary git config and cwd are restored
    """
    env = env or JobEnv.from_environ()
    client = client or PlatformClient(env)

    repo = load_repository(client, resource_path)
    repository = repository_path(resource_path)
    promotion_branch = repo.branch if use_promotion_overrides else None
    logger.info(
        f"Syncing workspace {workspace_id} with {repository} "
        f"(pull={pull}, dry_run={dry_run}, only_wmill_yaml={only_wmill_yaml}, "
        f"branch={repo.branch}, folder={repo.folder}, github_app={repo.is_github_app}, "
        f"gpg={repo.gpg_key is not None})"
    )

    cwd = Path.cwd()
    prepare_home(cwd)
    repo = authenticate_repository(repo, client)

    with working_directory(cwd):
        cloned = clone_repository(
            cwd, repo, client, workspace_id=workspace_id, require_subfolder=pull,
        )
        try:
            workspace_add(workspace_id, env)
            ctx = SyncContext(
                workspace_id=workspace_id,
                repository=repository,
                repo=repo,
                env=env,
                branch=cloned.branch,
                settings_json=settings_json,
                promotion_branch=promotion_branch,
            )
            if only_wmill_yaml:
                return run_settings_operation(ctx, pull, dry_run)
            return run_sync_operation(ctx, pull, dry_run)
        finally:
            remove_safe_directory(str(cloned.root))
