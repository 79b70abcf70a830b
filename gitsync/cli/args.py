"""Argument parsing for the gitsync CLI."""

import argparse
from typing import Optional, Sequence

from .. import __version__
from ..paths import PATH_TYPES


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="gitsync", description="Sync a workspace with its git repository",
    )
    p.add_argument("--version", action="version", version=f"gitsync {__version__}")
    p.add_argument("--verbose", "-v", action="store_true", help="Log command output")

    sub = p.add_subparsers(dest="command", metavar="<command>")

    add = sub.add_parser("deploy", help="Push one changed object to git")
    add.add_argument("workspace_id", help="Workspace id")
    add.add_argument("resource_path", help="git_repository resource path")
    add.add_argument("path_type", choices=sorted(PATH_TYPES), help="Object kind")
    add.add_argument("--path", help="Object path")
    add.add_argument("--parent-path", help="Previous path of a moved object")
    add.add_argument("--commit-msg", default="", help="Commit message")
    add.add_argument("--include-secrets", action="store_true", help="Do not skip secrets")
    add.add_argument("--individual-branch", action="store_true",
                     help="Deploy on a dedicated wm_deploy/ branch")
    add.add_argument("--group-by-folder", action="store_true",
                     help="One deploy branch per folder instead of per object")

    add = sub.add_parser("sync", help="Sync the whole workspace or its settings")
    add.add_argument("workspace_id", help="Workspace id")
    add.add_argument("resource_path", help="git_repository resource path")
    add.add_argument("--dry-run", action="store_true", help="Only report changes")
    add.add_argument("--only-wmill-yaml", action="store_true", help="Sync settings only")
    add.add_argument("--pull", action="store_true", help="git -> workspace")
    add.add_argument("--settings-json", metavar="JSON", help="Settings from the UI")
    add.add_argument("--use-promotion-overrides", action="store_true",
                     help="Apply the resource branch's promotion overrides")

    add = sub.add_parser("variable", help="Print a variable's value")
    add.add_argument("path", help="Variable path")

    return p


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    p = build_parser()
    args = p.parse_args(argv)
    args.parser = p
    return args
