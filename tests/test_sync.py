"""Tests for whole-workspace sync jobs."""

import os
from pathlib import Path

import pytest

from gitsync.errors import SyncError
from gitsync.job import SyncContext
from gitsync.models import GitRepository
from gitsync.sync import (
    run_sync_operation,
    sync_command,
    sync_pull,
    sync_pull_dry_run,
    sync_push,
    sync_push_dry_run,
    sync_repository,
)


@pytest.fixture
def ctx(job_env, job_dir):
    return SyncContext(
        workspace_id="demo",
        repository="f/git/repo",
        repo=GitRepository(url="https://github.com/acme/flows.git", branch="main"),
        env=job_env,
        branch="main",
    )


@pytest.fixture
def settings_file(job_dir):
    path = job_dir / "wmill.yaml"
    path.write_text("defaultTs: bun\n")
    return path


def wmill_actions(fake_shell):
    return [call[:2] for call in fake_shell.commands("wmill")]


class TestSyncCommand:
    """Tests for building sync invocations."""

    def test_layout(self, ctx):
        assert sync_command(ctx, "pull", "--yes") == [
            "sync", "pull", "--yes", "--workspace", "demo",
            "--token", "job-token-123", "--base-url", "https://platform.example.com/",
            "--repository", "f/git/repo",
        ]


class TestSyncPullDryRun:
    """Tests for previewing a push of the workspace into git."""

    def test_fresh_repository_reports_settings_file_added(self, fake_shell, ctx):
        fake_shell.on("wmill", "sync", "pull", stdout='{"changes": [{"type": "added", "path": "f/a.py"}], "total": 1}')

        result = sync_pull_dry_run(ctx)

        assert result["changes"][-1] == {"type": "added", "path": "wmill.yaml"}
        assert result["total"] == 2
        assert wmill_actions(fake_shell)[0] == ("init", "--use-default")

    def test_existing_settings_with_changes_reported_edited(self, fake_shell, ctx, settings_file):
        fake_shell.on("wmill", "gitsync-settings", stdout='{"hasChanges": true}')
        fake_shell.on("wmill", "sync", stdout="{}")

        result = sync_pull_dry_run(ctx)

        assert result["changes"] == [{"type": "edited", "path": "wmill.yaml"}]
        assert result["total"] == 1
        assert not fake_shell.called("wmill", "init")

    def test_existing_settings_unchanged(self, fake_shell, ctx, settings_file):
        fake_shell.on("wmill", "gitsync-settings", stdout='{"hasChanges": false}')
        fake_shell.on("wmill", "sync", stdout='{"changes": []}')

        assert sync_pull_dry_run(ctx)["changes"] == []

    def test_settings_file_already_listed(self, fake_shell, ctx):
        fake_shell.on("wmill", "sync", stdout='{"changes": [{"type": "added", "path": "wmill.yaml"}], "total": 1}')

        result = sync_pull_dry_run(ctx)

        assert len(result["changes"]) == 1
        assert result["total"] == 1

    def test_cli_failure_wrapped(self, fake_shell, ctx, settings_file):
        fake_shell.on("wmill", "sync", error="connection refused")
        with pytest.raises(SyncError) as exc:
            sync_pull_dry_run(ctx)
        assert str(exc.value).startswith("Sync pull dry run failed:")


class TestSyncPushDryRun:
    """Tests for previewing a pull of git into the workspace."""

    def test_settings_diff_attached_when_changed(self, fake_shell, ctx):
        fake_shell.on("wmill", "gitsync-settings", stdout='{"hasChanges": true, "local": {}}')
        fake_shell.on("wmill", "sync", stdout="no json here")

        result = sync_push_dry_run(ctx)

        assert result == {
            "changes": [],
            "settingsDiffResult": {"hasChanges": True, "local": {}},
        }

    def test_settings_diff_omitted_when_unchanged(self, fake_shell, ctx):
        fake_shell.on("wmill", "gitsync-settings", stdout='{"hasChanges": false}')
        fake_shell.on("wmill", "sync", stdout='{"changes": [{"path": "f/a.py"}]}')

        assert "settingsDiffResult" not in sync_push_dry_run(ctx)


class TestSyncPull:
    """Tests for pushing the workspace into git."""

    def test_initializes_settings_then_pushes(self, fake_shell, ctx):
        fake_shell.on("git", "diff", "--cached", "--quiet", exit_code=1)

        result = sync_pull(ctx)

        assert wmill_actions(fake_shell) == [
            ("init", "--use-default"),
            ("gitsync-settings", "pull"),
            ("sync", "pull"),
        ]
        assert ("commit", "-m", "Initialize windmill sync repo") in fake_shell.commands()
        assert result == {"success": True, "message": "CLI sync pull completed"}

    def test_git_failure_wrapped(self, fake_shell, ctx, settings_file):
        fake_shell.on("git", "diff", "--cached", "--quiet", exit_code=1)
        fake_shell.on("git", "push", error="permission denied")
        fake_shell.on("git", "pull", error="permission denied")
        with pytest.raises(SyncError) as exc:
            sync_pull(ctx)
        assert "permission denied" in str(exc.value)


class TestSyncPush:
    """Tests for applying git to the workspace."""

    def test_returns_repository_settings(self, fake_shell, ctx):
        fake_shell.on("wmill", "gitsync-settings", stdout='{"local": {"include_path": ["f/**"]}}')
        fake_shell.on("wmill", "sync", stdout='{"changes": [], "total": 0}')

        result = sync_push(ctx)

        assert result["success"] is True
        assert result["message"] == "CLI sync push completed"
        assert result["settings_json"] == {"include_path": ["f/**"]}
        assert result["total"] == 0
        settings_args = fake_shell.commands("wmill")[0]
        assert "--with-backend-settings" not in settings_args
        assert "--promotion" not in settings_args


class TestRunSyncOperation:
    """Tests for sync job dispatch."""

    @pytest.mark.parametrize("pull,dry_run,expected", [
        (True, True, ("sync", "push", "--dry-run")),
        (True, False, ("sync", "push", "--yes")),
        (False, True, ("sync", "pull", "--dry-run")),
        (False, False, ("sync", "pull", "--yes")),
    ])
    def test_direction(self, fake_shell, ctx, settings_file, pull, dry_run, expected):
        run_sync_operation(ctx, pull, dry_run)
        assert expected in [call[:3] for call in fake_shell.commands("wmill")]


class TestSyncRepository:
    """End-to-end tests for sync_repository."""

    @pytest.fixture
    def checkout(self, fake_shell, job_dir):
        def effect(call):
            (job_dir / "flows").mkdir()
        fake_shell.on("git", "clone", effect=effect)
        fake_shell.on("git", "rev-parse", stdout="main\n")
        return job_dir / "flows"

    def test_push_workspace_into_repository(self, fake_shell, fake_client, job_env, job_dir, checkout):
        result = sync_repository(
            "demo", "$res:f/git/repo", dry_run=False, env=job_env, client=fake_client,
        )

        assert result == {"success": True, "message": "CLI sync pull completed"}
        assert fake_client.requested == ["$res:f/git/repo"]
        assert fake_shell.commands("wmill")[0][:2] == ("workspace", "add")
        repository = [c[c.index("--repository") + 1] for c in fake_shell.commands("wmill") if "--repository" in c]
        assert set(repository) == {"f/git/repo"}
        assert ("config", "--global", "--unset", "safe.directory", str(checkout)) in fake_shell.commands()
        assert Path.cwd() == job_dir
        assert os.environ["HOME"] == str(job_dir)

    def test_only_settings_file(self, fake_shell, fake_client, job_env, job_dir, checkout):
        result = sync_repository(
            "demo", "f/git/repo", dry_run=True, only_wmill_yaml=True,
            env=job_env, client=fake_client,
        )

        assert result["isInitialSetup"] is True
        assert not fake_shell.called("wmill", "sync")

    def test_promotion_overrides_use_resource_branch(self, fake_shell, fake_client, job_env, job_dir, checkout):
        sync_repository(
            "demo", "f/git/repo", dry_run=False, only_wmill_yaml=True,
            settings_json="{}", use_promotion_overrides=True,
            env=job_env, client=fake_client,
        )

        pull = next(c for c in fake_shell.commands("wmill") if c[:2] == ("gitsync-settings", "pull"))
        assert pull[pull.index("--promotion") + 1] == "main"

    def test_failure_restores_directory_and_safe_directory(self, fake_shell, fake_client, job_env, job_dir, checkout):
        fake_shell.on("wmill", "workspace", error="unauthorized")

        with pytest.raises(Exception):
            sync_repository("demo", "f/git/repo", dry_run=True, env=job_env, client=fake_client)

        assert Path.cwd() == job_dir
        assert fake_shell.called("git", "config", "--global", "--unset", "safe.directory")
