"""Terminal output formatting."""

import json
import sys

RED = "\033[0;31m"
GREEN = "\033[0;32m"
NC = "\033[0m"


def log_success(msg: str) -> None:
    """Log a successful operation to stderr."""
    print(f"{GREEN}OK {msg}{NC}", file=sys.stderr)


def log_error(msg: str) -> None:
    """Log an error to stderr."""
    print(f"{RED}ERROR: {msg}{NC}", file=sys.stderr)


def die(msg: str) -> None:
    """Log error and exit."""
    log_error(msg)
    sys.exit(1)


def print_result(result) -> None:
    """Write the job result to stdout as JSON for the job runner."""
    print(json.dumps(result, indent=2, default=str))
