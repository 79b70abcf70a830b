"""Invocation of the bundled workflow CLI."""

import json
import logging
from typing import Optional

from .config import JobEnv, WMILL_BIN
from .errors import CliError, ShellError
from .shell import sh_run

logger = logging.getLogger(__name__)


def _token_position(args: list[str]) -> Optional[int]:
    """Position of the value following --token, if any."""
    try:
        index = args.index("--token")
    except ValueError:
        return None
    return index + 1 if index + 1 < len(args) else None


def parse_json_output(output: str) -> dict:
    """Extract the JSON object the CLI prints after its progress lines.

    Everything from the first "{" to the end is parsed. Returns {} when the
    output holds no JSON object.
    """
    start = output.find("{")
    if start == -1:
        logger.debug("No JSON found in CLI output")
        return {}
    try:
        parsed = json.loads(output[start:].strip())
    except ValueError as e:
        logger.debug(f"Failed to parse CLI output as JSON: {e}")
        return {}
    return parsed if isinstance(parsed, dict) else {}


def wmill_run(*args: str, secret_position: Optional[int] = None) -> dict:
    """Run the CLI and return its JSON result ({} when it prints none).

    Empty-string args are dropped first so optional flags can be passed
    as "". When no secret_position is given the --token value is redacted.
    """
    cmd = [arg for arg in args if arg != ""]
    if secret_position is None:
        secret_position = _token_position(cmd)

    try:
        output = sh_run(WMILL_BIN, *cmd, secret_position=secret_position)
    except ShellError as e:
        raise CliError(str(e), command=e.command, exit_code=e.exit_code) from e

    return parse_json_output(output)


def auth_flags(env: JobEnv) -> list[str]:
    """--token/--base-url pair shared by most CLI calls."""
    return ["--token", env.token, "--base-url", env.cli_base_url]


def workspace_add(workspace_id: str, env: JobEnv) -> None:
    """Register the workspace with the CLI so later commands can target it."""
    wmill_run(
        "workspace",
        "add",
        workspace_id,
        workspace_id,
        env.cli_base_url,
        "--token",
        env.token,
    )
