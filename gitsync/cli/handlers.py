"""Command handlers for the gitsync CLI."""

import argparse

from ..config import JobEnv
from ..deploy import deploy_object
from ..platform import PlatformClient
from ..sync import sync_repository


def cmd_deploy(args: argparse.Namespace, env: JobEnv, client: PlatformClient):
    return deploy_object(
        args.workspace_id,
        args.resource_path,
        args.path_type,
        skip_secret=not args.include_secrets,
        path=args.path,
        parent_path=args.parent_path,
        commit_msg=args.commit_msg,
        use_individual_branch=args.individual_branch,
        group_by_folder=args.group_by_folder,
        env=env,
        client=client,
    )


def cmd_sync(args: argparse.Namespace, env: JobEnv, client: PlatformClient):
    return sync_repository(
        args.workspace_id,
        args.resource_path,
        args.dry_run,
        only_wmill_yaml=args.only_wmill_yaml,
        pull=args.pull,
        settings_json=args.settings_json,
        use_promotion_overrides=args.use_promotion_overrides,
        env=env,
        client=client,
    )


def cmd_variable(args: argparse.Namespace, env: JobEnv, client: PlatformClient):
    return client.get_variable(args.path)


COMMANDS = {
    "deploy": cmd_deploy,
    "sync": cmd_sync,
    "variable": cmd_variable,
}
