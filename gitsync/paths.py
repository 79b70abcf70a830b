"""Path and branch naming for synced objects."""

from typing import Optional

from .config import DEPLOY_BRANCH_PREFIX, FORKED_BRANCH_PREFIX, FORKED_WORKSPACE_PREFIX

RESOURCE_PREFIX = "$res:"

# Object kind -> suffix appended to the object path in the repository layout
INCLUDE_SUFFIXES = {
    "flow": ".flow/*",
    "app": ".app/*",
    "folder": "/folder.meta.*",
    "resourcetype": ".resource-type.*",
    "resource": ".resource.*",
    "variable": ".variable.*",
    "schedule": ".schedule.*",
    "user": ".user.*",
    "group": ".group.*",
    "httptrigger": ".http_trigger.*",
    "websockettrigger": ".websocket_trigger.*",
    "kafkatrigger": ".kafka_trigger.*",
    "natstrigger": ".nats_trigger.*",
    "postgrestrigger": ".postgres_trigger.*",
    "mqtttrigger": ".mqtt_trigger.*",
    "sqstrigger": ".sqs_trigger.*",
    "gcptrigger": ".gcp_trigger.*",
}

PATH_TYPES = frozenset({"script", "settings", "key", *INCLUDE_SUFFIXES})

# Kinds that never get their own deploy branch
UNBRANCHED_TYPES = frozenset({"user", "group"})


def include_glob(path_type: str, path: str) -> str:
    """Glob matching every file the repository holds for one object."""
    return path + INCLUDE_SUFFIXES.get(path_type, ".*")


def repository_path(resource_path: str) -> str:
    """Strip the "$res:" prefix the UI puts in front of resource paths."""
    if resource_path.startswith(RESOURCE_PREFIX):
        return resource_path[len(RESOURCE_PREFIX):]
    return resource_path


def is_forked_workspace(workspace_id: str) -> bool:
    return workspace_id.startswith(FORKED_WORKSPACE_PREFIX)


def fork_branch_name(workspace_id: str, original_branch: str) -> str:
    """
    Branch a forked workspace syncs to.

    wm-fork-<rest> becomes wm-fork/<original_branch>/<rest>; other ids are
    returned unchanged.
    """
    if not is_forked_workspace(workspace_id):
        return workspace_id
    rest = workspace_id[len(FORKED_WORKSPACE_PREFIX):]
    return f"{FORKED_BRANCH_PREFIX}/{original_branch}/{rest}"


def deploy_branch_name(
    workspace_id: str,
    path_type: str,
    path: Optional[str],
    parent_path: Optional[str],
    group_by_folder: bool = False,
) -> str:
    """Name of the per-object (or per-folder) deploy branch."""
    target = path or parent_path or ""
    if group_by_folder:
        folder = "__".join(target.split("/")[:2])
        return f"{DEPLOY_BRANCH_PREFIX}/{workspace_id}/{folder}"
    return f"{DEPLOY_BRANCH_PREFIX}/{workspace_id}/{path_type}/{target.replace('/', '__')}"
