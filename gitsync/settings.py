"""Git-sync settings (wmill.yaml) operations.

Direction naming follows the user's point of view: a "pull" job brings git
state into the platform, so it runs the CLI's settings *push*, and vice versa.
"""

import logging

from .config import SETTINGS_FILE
from .errors import GitSyncError, SettingsError
from .git import is_empty_repository_error, is_missing_branch_error
from .job import SyncContext, push_workspace
from .wmill import auth_flags, wmill_run

logger = logging.getLogger(__name__)


def settings_command(
    ctx: SyncContext,
    action: str,
    *flags: str,
    with_backend_settings: bool = True,
    with_promotion: bool = True,
) -> list[str]:
    """Build a `gitsync-settings <action>` invocation."""
    args = [
        "gitsync-settings",
        action,
        *flags,
        "--repository",
        ctx.repository,
        "--workspace",
        ctx.workspace_id,
    ]
    if with_backend_settings and ctx.settings_json:
        args += ["--with-backend-settings", ctx.settings_json]
    if with_promotion and ctx.promotion_branch:
        args += ["--promotion", ctx.promotion_branch]
    return args + auth_flags(ctx.env)


def initial_setup_result(ctx: SyncContext, message: str) -> dict:
    return {
        "success": True,
        "hasChanges": True,
        "message": message,
        "isInitialSetup": True,
        "repository": ctx.repository,
    }


def init_default_settings(ctx: SyncContext) -> None:
    """Write a default wmill.yaml into the repository."""
    logger.info(f"No {SETTINGS_FILE} found, initializing with default settings")
    wmill_run("init", "--use-default", *auth_flags(ctx.env), "--workspace", ctx.workspace_id)


def settings_push_diff(ctx: SyncContext) -> dict:
    """Diff of what pushing the repository's wmill.yaml would change."""
    try:
        if not ctx.settings_file_exists():
            raise SettingsError(
                f"No {SETTINGS_FILE} found in the git repository. Please initialize the "
                "repository first by pushing settings from Windmill to git."
            )
        return wmill_run(*settings_command(ctx, "push", "--diff", "--json-output"))
    except GitSyncError as e:
        raise SettingsError(f"Settings push dry run failed: {e}") from e


def settings_pull_diff(ctx: SyncContext) -> dict:
    """Diff of what pulling platform settings into wmill.yaml would change."""
    if not ctx.settings_file_exists():
        # nothing to diff against on a fresh repository
        return initial_setup_result(ctx, f"{SETTINGS_FILE} will be created with repository settings")

    try:
        return wmill_run(*settings_command(ctx, "pull", "--diff", "--override", "--json-output"))
    except GitSyncError as e:
        message = str(e)
        if is_empty_repository_error(message) or is_missing_branch_error(message):
            logger.info("Empty repository detected, branch doesn't exist or has no commits")
            return initial_setup_result(ctx, "Empty repository detected - requires initialization")
        raise SettingsError(f"Settings pull dry run failed: {message}") from e


def settings_pull(ctx: SyncContext) -> dict:
    """Write platform settings into wmill.yaml and push the commit."""
    try:
        existed = ctx.settings_file_exists()
        if not existed:
            init_default_settings(ctx)
        mode = "--override" if existed else "--replace"
        wmill_run(*settings_command(ctx, "pull", mode))
        push_workspace(ctx, f"Update {SETTINGS_FILE} via settings")
    except GitSyncError as e:
        raise SettingsError(f"Settings pull failed: {e}") from e
    return {"success": True, "message": "Settings pushed to git successfully"}


def run_settings_operation(ctx: SyncContext, pull: bool, dry_run: bool) -> dict:
    """Dispatch a settings-only job."""
    if pull:
        # git -> platform; the job only reports the repository's settings
        return settings_push_diff(ctx)
    if dry_run:
        return settings_pull_diff(ctx)
    if not ctx.settings_json:
        raise SettingsError("settings_json required in this mode")
    return settings_pull(ctx)
