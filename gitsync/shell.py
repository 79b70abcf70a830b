"""Redacted shell execution.

Every external command (git, gpg, the bundled CLI) goes through here so that
one designated argument (a token, a passphrase, an authenticated URL) never
reaches the job log or an error message.
"""

import logging
import os
import subprocess
from typing import Optional, Sequence

from .config import COMMAND_TIMEOUT
from .errors import ShellError
from .models import CommandResult

logger = logging.getLogger(__name__)

PLACEHOLDER = "***"


def redact_args(args: Sequence[str], secret_position: Optional[int]) -> list[str]:
    """Return a copy of args with the secret argument replaced.

    Negative positions count from the end, so -1 is the last argument.
    Raises IndexError if the position does not exist.
    """
    redacted = list(args)
    if secret_position is not None:
        redacted[secret_position] = PLACEHOLDER
    return redacted


def scrub(text: str, secret: Optional[str]) -> str:
    """Remove every occurrence of secret from text."""
    if not secret:
        return text
    return text.replace(secret, PLACEHOLDER)


def _command_line(cmd: str, args: Sequence[str]) -> str:
    return " ".join([cmd, *args])


def _child_env() -> dict:
    env = os.environ.copy()
    env["GIT_TERMINAL_PROMPT"] = "0"
    return env


def execute(
    cmd: str,
    *args: str,
    secret_position: Optional[int] = None,
    cwd: Optional[str] = None,
    input: Optional[str] = None,
) -> CommandResult:
    """Run a command and capture its output. Never raises for exit codes."""
    secret = args[secret_position] if secret_position is not None else None
    shown = _command_line(cmd, redact_args(args, secret_position))
    logger.info(f"Running '{shown} ...'")

    try:
        result = subprocess.run(
            [cmd, *args],
            cwd=cwd,
            input=input,
            capture_output=True,
            text=True,
            timeout=COMMAND_TIMEOUT,
            env=_child_env(),
        )
        outcome = CommandResult(
            exit_code=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )
    except subprocess.TimeoutExpired:
        outcome = CommandResult(
            exit_code=1,
            stdout="",
            stderr=f"gitsync: {cmd} timed out after {COMMAND_TIMEOUT} seconds",
        )
    except FileNotFoundError:
        outcome = CommandResult(
            exit_code=127,
            stdout="",
            stderr=f"gitsync: {cmd} is not installed",
        )

    if outcome.stdout:
        logger.debug(scrub(outcome.stdout, secret))
    if outcome.stderr:
        logger.debug(scrub(outcome.stderr, secret))
    return outcome


def sh_run(
    cmd: str,
    *args: str,
    secret_position: Optional[int] = None,
    cwd: Optional[str] = None,
    input: Optional[str] = None,
) -> str:
    """Run a command and return stdout. Raises ShellError on failure."""
    result = execute(cmd, *args, secret_position=secret_position, cwd=cwd, input=input)
    if result.exit_code == 0:
        logger.info("Command successfully executed")
        return result.stdout

    secret = args[secret_position] if secret_position is not None else None
    shown = _command_line(cmd, redact_args(args, secret_position))
    detail = scrub((result.stderr or result.stdout).strip(), secret)
    raise ShellError(
        f"SH command '{shown}' failed with exit code {result.exit_code}: {detail}",
        command=shown,
        exit_code=result.exit_code,
    )
