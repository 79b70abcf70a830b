"""Shared test fixtures."""

from unittest.mock import patch

import pytest

from gitsync.config import JobEnv
from gitsync.errors import ShellError
from gitsync.models import CommandResult


class FakeShell:
    """Stands in for shell.sh_run / shell.execute and records every call.

    Rules match on a prefix of (cmd, *args). The first rule with uses left
    wins; unmatched commands succeed with empty output.
    """

    def __init__(self):
        self.calls = []
        self.secret_positions = []
        self.inputs = []
        self._rules = []

    def on(self, *prefix, stdout="", error=None, exit_code=None, times=None, effect=None):
        self._rules.append({
            "prefix": prefix,
            "stdout": stdout,
            "error": error,
            "exit_code": exit_code,
            "times": times,
            "effect": effect,
        })
        return self

    def _match(self, call):
        for rule in self._rules:
            if call[:len(rule["prefix"])] != rule["prefix"]:
                continue
            if rule["times"] is not None:
                if rule["times"] == 0:
                    continue
                rule["times"] -= 1
            if rule["effect"]:
                rule["effect"](call)
            return rule
        return None

    def _record(self, cmd, args, secret_position, input):
        call = (cmd, *args)
        self.calls.append(call)
        self.secret_positions.append(secret_position)
        self.inputs.append(input)
        return call

    def sh_run(self, cmd, *args, secret_position=None, cwd=None, input=None):
        rule = self._match(self._record(cmd, args, secret_position, input))
        if rule is None:
            return ""
        if rule["error"] is not None:
            raise ShellError(f"SH command '{cmd}' failed: {rule['error']}", command=cmd, exit_code=1)
        return rule["stdout"]

    def execute(self, cmd, *args, secret_position=None, cwd=None, input=None):
        rule = self._match(self._record(cmd, args, secret_position, input))
        if rule is None:
            return CommandResult(exit_code=0, stdout="", stderr="")
        exit_code = rule["exit_code"]
        if exit_code is None:
            exit_code = 1 if rule["error"] is not None else 0
        return CommandResult(exit_code=exit_code, stdout=rule["stdout"], stderr=rule["error"] or "")

    def commands(self, cmd="git"):
        """Argument tuples of every call to cmd."""
        return [call[1:] for call in self.calls if call[0] == cmd]

    def called(self, *prefix):
        return any(call[:len(prefix)] == prefix for call in self.calls)


@pytest.fixture
def fake_shell():
    """Patch every module that shells out."""
    shell = FakeShell()
    with patch("gitsync.git.sh_run", shell.sh_run), \
         patch("gitsync.git.execute", shell.execute), \
         patch("gitsync.clone.sh_run", shell.sh_run), \
         patch("gitsync.gpg.sh_run", shell.sh_run), \
         patch("gitsync.wmill.sh_run", shell.sh_run):
        yield shell


@pytest.fixture
def job_env():
    return JobEnv(
        workspace="demo",
        token="job-token-123",
        base_url="https://platform.example.com",
        email="alice@example.com",
        username="alice",
    )


@pytest.fixture
def job_dir(tmp_path, monkeypatch):
    """Run the test from an empty job directory; HOME and GNUPGHOME are restored."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("GNUPGHOME", str(tmp_path / "gnupg"))
    return tmp_path


class FakeClient:
    """Platform client serving resources from a dict."""

    def __init__(self, resources=None, github_token="ghs_installation"):
        self.resources = resources or {}
        self.github_token = github_token
        self.requested = []

    def get_resource(self, path):
        self.requested.append(path)
        return self.resources[path.removeprefix("$res:")]

    def get_variable(self, path):
        return self.resources[path]

    def get_github_app_token(self):
        return self.github_token


@pytest.fixture
def fake_client():
    return FakeClient({
        "f/git/repo": {"url": "https://github.com/acme/flows.git", "branch": "main"},
    })
