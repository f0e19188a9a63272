"""helm command grammar."""

from typing import Dict

from kubeguard.modules.resolver.arguments import ArgKind, ArgSpec
from kubeguard.modules.resolver.base import OperationSpec, ToolStrategy

RELEASE = ArgSpec(ArgKind.NAME, required=True)
CHART = ArgSpec(ArgKind.STRING, required=True)
VERSION = ArgSpec(ArgKind.STRING, option="--version")
REVISION = ArgSpec(ArgKind.INTEGER, option="--revision", minimum=1)
OUTPUT = ArgSpec(ArgKind.CHOICE, option="--output", choices=("table", "json", "yaml"))
SET_VALUES = ArgSpec(ArgKind.LABELS, option="--set", max_items=64)
HELM_TIMEOUT = ArgSpec(ArgKind.DURATION, option="--timeout")

# Release changes can wait on rollouts
RELEASE_TIMEOUT_SECONDS = 300

HELM_OPERATIONS: Dict[str, OperationSpec] = {
    "list": OperationSpec(
        verb=("list",),
        args={
            "filter": ArgSpec(ArgKind.STRING, option="--filter"),
            "all": ArgSpec(ArgKind.FLAG, option="--all"),
            "output": OUTPUT,
        },
        all_namespaces=True,
        description="List releases",
    ),
    "status": OperationSpec(
        verb=("status",),
        args={"release": RELEASE, "revision": REVISION, "output": OUTPUT},
        description="Show release status",
    ),
    "history": OperationSpec(
        verb=("history",),
        args={
            "release": RELEASE,
            "max": ArgSpec(ArgKind.INTEGER, option="--max", minimum=1, maximum=256),
            "output": OUTPUT,
        },
        description="Show release revisions",
    ),
    "get-values": OperationSpec(
        verb=("get", "values"),
        args={
            "release": RELEASE,
            "all": ArgSpec(ArgKind.FLAG, option="--all"),
            "revision": REVISION,
            "output": OUTPUT,
        },
        description="Show values of a release",
    ),
    "get-manifest": OperationSpec(
        verb=("get", "manifest"),
        args={"release": RELEASE, "revision": REVISION},
        description="Show the rendered manifest of a release",
    ),
    "show-chart": OperationSpec(
        verb=("show", "chart"),
        args={"chart": CHART, "version": VERSION},
        namespaced=False,
        description="Show chart metadata",
    ),
    "show-values": OperationSpec(
        verb=("show", "values"),
        args={"chart": CHART, "version": VERSION},
        namespaced=False,
        description="Show chart default values",
    ),
    "search-repo": OperationSpec(
        verb=("search", "repo"),
        args={
            "keyword": ArgSpec(ArgKind.STRING, required=True),
            "versions": ArgSpec(ArgKind.FLAG, option="--versions"),
            "output": OUTPUT,
        },
        namespaced=False,
        description="Search configured repositories",
    ),
    "repo-list": OperationSpec(
        verb=("repo", "list"),
        args={"output": OUTPUT},
        namespaced=False,
        description="List chart repositories",
    ),
    "version": OperationSpec(verb=("version",), namespaced=False, description="Show helm version"),
    "repo-add": OperationSpec(
        verb=("repo", "add"),
        args={
            "name": ArgSpec(ArgKind.NAME, required=True),
            "url": ArgSpec(ArgKind.STRING, required=True),
            "force_update": ArgSpec(ArgKind.FLAG, option="--force-update"),
        },
        namespaced=False,
        description="Add a chart repository",
    ),
    "repo-update": OperationSpec(
        verb=("repo", "update"),
        args={"names": ArgSpec(ArgKind.LIST)},
        namespaced=False,
        description="Refresh chart repository indexes",
    ),
    "install": OperationSpec(
        verb=("install",),
        args={
            "release": RELEASE,
            "chart": CHART,
            "version": VERSION,
            "values": SET_VALUES,
            "create_namespace": ArgSpec(ArgKind.FLAG, option="--create-namespace"),
            "wait": ArgSpec(ArgKind.FLAG, option="--wait"),
            "atomic": ArgSpec(ArgKind.FLAG, option="--atomic"),
            "dry_run": ArgSpec(ArgKind.FLAG, option="--dry-run"),
            "timeout": HELM_TIMEOUT,
        },
        timeout_seconds=RELEASE_TIMEOUT_SECONDS,
        description="Install a chart",
    ),
    "upgrade": OperationSpec(
        verb=("upgrade",),
        args={
            "release": RELEASE,
            "chart": CHART,
            "version": VERSION,
            "values": SET_VALUES,
            "install": ArgSpec(ArgKind.FLAG, option="--install"),
            "reuse_values": ArgSpec(ArgKind.FLAG, option="--reuse-values"),
            "create_namespace": ArgSpec(ArgKind.FLAG, option="--create-namespace"),
            "wait": ArgSpec(ArgKind.FLAG, option="--wait"),
            "atomic": ArgSpec(ArgKind.FLAG, option="--atomic"),
            "dry_run": ArgSpec(ArgKind.FLAG, option="--dry-run"),
            "timeout": HELM_TIMEOUT,
        },
        timeout_seconds=RELEASE_TIMEOUT_SECONDS,
        description="Upgrade a release",
    ),
    "rollback": OperationSpec(
        verb=("rollback",),
        args={
            "release": RELEASE,
            "revision": ArgSpec(ArgKind.INTEGER, minimum=1),
            "wait": ArgSpec(ArgKind.FLAG, option="--wait"),
        },
        timeout_seconds=RELEASE_TIMEOUT_SECONDS,
        description="Roll a release back to a revision",
    ),
    "uninstall": OperationSpec(
        verb=("uninstall",),
        args={
            "release": RELEASE,
            "keep_history": ArgSpec(ArgKind.FLAG, option="--keep-history"),
            "dry_run": ArgSpec(ArgKind.FLAG, option="--dry-run"),
        },
        timeout_seconds=RELEASE_TIMEOUT_SECONDS,
        description="Uninstall a release",
    ),
}


class HelmStrategy(ToolStrategy):
    """Resolves helm operations."""

    name = "helm"
    executable = "helm"
    operations = HELM_OPERATIONS
