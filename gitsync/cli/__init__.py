"""Command-line interface for gitsync."""

import logging
import sys
from typing import Optional, Sequence

from ..config import JobEnv
from ..errors import GitSyncError
from ..output import die, log_success, print_result
from ..platform import PlatformClient

from .args import parse_args
from .handlers import COMMANDS


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    if not args.command:
        args.parser.print_help()
        sys.exit(0)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    env = JobEnv.from_environ()
    handler = COMMANDS[args.command]
    try:
        result = handler(args, env, PlatformClient(env))
    except GitSyncError as e:
        die(str(e))
        return

    print_result(result)
    log_success(f"{args.command} finished")
