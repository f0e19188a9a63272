"""kubectl command grammar."""

from typing import Any, Dict, Mapping, Tuple

from kubeguard.modules.errors import InvalidArgument
from kubeguard.modules.resolver.arguments import ArgKind, ArgSpec
from kubeguard.modules.resolver.base import OperationSpec, ToolStrategy
from kubeguard.modules.security.access import (
    CLUSTER_SCOPED_RESOURCES,
    manifest_objects,
    resource_base,
)

RESOURCE = ArgSpec(ArgKind.RESOURCE, required=True)
NAME = ArgSpec(ArgKind.NAME)
SELECTOR = ArgSpec(ArgKind.LABELS, option="--selector", join=",")
OUTPUT = ArgSpec(ArgKind.CHOICE, option="--output", choices=("json", "yaml", "wide", "name"))
MANIFEST = ArgSpec(ArgKind.MANIFEST, option="--filename", required=True)
DRY_RUN = ArgSpec(ArgKind.CHOICE, option="--dry-run", choices=("none", "client", "server"))
GRACE_PERIOD = ArgSpec(ArgKind.INTEGER, option="--grace-period", minimum=0, maximum=3600)
OVERWRITE = ArgSpec(ArgKind.FLAG, option="--overwrite")

KUBECTL_OPERATIONS: Dict[str, OperationSpec] = {
    # Read
    "get": OperationSpec(
        verb=("get",),
        args={
            "resource": RESOURCE,
            "name": NAME,
            "selector": SELECTOR,
            "output": OUTPUT,
            "show_labels": ArgSpec(ArgKind.FLAG, option="--show-labels"),
        },
        all_namespaces=True,
        description="List or fetch resources",
    ),
    "describe": OperationSpec(
        verb=("describe",),
        args={"resource": RESOURCE, "name": NAME, "selector": SELECTOR},
        all_namespaces=True,
        description="Show details of resources",
    ),
    "logs": OperationSpec(
        verb=("logs",),
        args={
            "name": ArgSpec(ArgKind.RESOURCE, required=True),
            "container": ArgSpec(ArgKind.NAME, option="--container"),
            "tail": ArgSpec(ArgKind.INTEGER, option="--tail", minimum=0, maximum=10000),
            "since": ArgSpec(ArgKind.DURATION, option="--since"),
            "previous": ArgSpec(ArgKind.FLAG, option="--previous"),
            "timestamps": ArgSpec(ArgKind.FLAG, option="--timestamps"),
            "all_containers": ArgSpec(ArgKind.FLAG, option="--all-containers"),
        },
        description="Print container logs (bounded, never followed)",
    ),
    "top": OperationSpec(
        verb=("top",),
        args={
            "resource": ArgSpec(
                ArgKind.CHOICE, required=True, choices=("pod", "pods", "node", "nodes")
            ),
            "name": NAME,
            "selector": SELECTOR,
            "containers": ArgSpec(ArgKind.FLAG, option="--containers"),
        },
        all_namespaces=True,
        description="Show CPU and memory usage",
    ),
    "events": OperationSpec(
        verb=("events",),
        args={
            "for_object": ArgSpec(ArgKind.RESOURCE, option="--for"),
            "types": ArgSpec(ArgKind.CHOICE, option="--types", choices=("Normal", "Warning")),
            "output": ArgSpec(ArgKind.CHOICE, option="--output", choices=("json", "yaml")),
        },
        all_namespaces=True,
        description="List events",
    ),
    "explain": OperationSpec(
        verb=("explain",),
        args={
            "resource": RESOURCE,
            "recursive": ArgSpec(ArgKind.FLAG, option="--recursive"),
        },
        namespaced=False,
        description="Describe resource schema fields",
    ),
    "api-resources": OperationSpec(
        verb=("api-resources",),
        args={
            "api_group": ArgSpec(ArgKind.STRING, option="--api-group"),
            "output": ArgSpec(ArgKind.CHOICE, option="--output", choices=("wide", "name")),
        },
        namespaced=False,
        description="List supported resource types",
    ),
    "api-versions": OperationSpec(
        verb=("api-versions",), namespaced=False, description="List supported API versions"
    ),
    "version": OperationSpec(
        verb=("version",),
        args={
            "client": ArgSpec(ArgKind.FLAG, option="--client"),
            "output": ArgSpec(ArgKind.CHOICE, option="--output", choices=("json", "yaml")),
        },
        namespaced=False,
        description="Show client and server versions",
    ),
    "cluster-info": OperationSpec(
        verb=("cluster-info",), namespaced=False, description="Show control plane endpoints"
    ),
    "auth-can-i": OperationSpec(
        verb=("auth", "can-i"),
        args={
            "verb": ArgSpec(ArgKind.STRING, required=True),
            "resource": RESOURCE,
        },
        all_namespaces=True,
        description="Check whether an action is allowed",
    ),
    "rollout-status": OperationSpec(
        verb=("rollout", "status"),
        args={"resource": RESOURCE},
        fixed_args=("--watch=false",),
        description="Show rollout status without waiting",
    ),
    "rollout-history": OperationSpec(
        verb=("rollout", "history"),
        args={
            "resource": RESOURCE,
            "revision": ArgSpec(ArgKind.INTEGER, option="--revision", minimum=1),
        },
        description="Show rollout history",
    ),
    # Write
    "apply": OperationSpec(
        verb=("apply",),
        args={
            "manifest": MANIFEST,
            "dry_run": DRY_RUN,
            "server_side": ArgSpec(ArgKind.FLAG, option="--server-side"),
        },
        description="Apply a YAML manifest",
    ),
    "create": OperationSpec(
        verb=("create",),
        args={"manifest": MANIFEST, "dry_run": DRY_RUN},
        description="Create resources from a YAML manifest",
    ),
    "patch": OperationSpec(
        verb=("patch",),
        args={
            "resource": RESOURCE,
            "name": ArgSpec(ArgKind.NAME, required=True),
            "patch": ArgSpec(ArgKind.PATCH, option="--patch", required=True),
            "patch_type": ArgSpec(
                ArgKind.CHOICE, option="--type", choices=("strategic", "merge", "json")
            ),
            "dry_run": DRY_RUN,
        },
        description="Patch a resource",
    ),
    "scale": OperationSpec(
        verb=("scale",),
        args={
            "resource": RESOURCE,
            "name": NAME,
            "replicas": ArgSpec(
                ArgKind.INTEGER, option="--replicas", required=True, minimum=0, maximum=1000
            ),
        },
        description="Set the replica count of a workload",
    ),
    "label": OperationSpec(
        verb=("label",),
        args={
            "resource": RESOURCE,
            "name": NAME,
            "labels": ArgSpec(ArgKind.LABELS, required=True, allow_removal=True),
            "selector": SELECTOR,
            "overwrite": OVERWRITE,
        },
        required_any=(("name", "selector"),),
        description="Add, update or remove labels",
    ),
    "annotate": OperationSpec(
        verb=("annotate",),
        args={
            "resource": RESOURCE,
            "name": NAME,
            "annotations": ArgSpec(ArgKind.LABELS, required=True, allow_removal=True),
            "selector": SELECTOR,
            "overwrite": OVERWRITE,
        },
        required_any=(("name", "selector"),),
        description="Add, update or remove annotations",
    ),
    "set-image": OperationSpec(
        verb=("set", "image"),
        args={
            "resource": RESOURCE,
            "images": ArgSpec(ArgKind.LABELS, required=True),
        },
        description="Update container images of a workload",
    ),
    "rollout-restart": OperationSpec(
        verb=("rollout", "restart"),
        args={"resource": RESOURCE},
        description="Restart a workload rollout",
    ),
    "rollout-undo": OperationSpec(
        verb=("rollout", "undo"),
        args={
            "resource": RESOURCE,
            "to_revision": ArgSpec(ArgKind.INTEGER, option="--to-revision", minimum=1),
        },
        description="Roll back to a previous revision",
    ),
    # Admin
    "delete": OperationSpec(
        verb=("delete",),
        args={
            "resource": RESOURCE,
            "name": NAME,
            "selector": SELECTOR,
            "grace_period": GRACE_PERIOD,
            "ignore_not_found": ArgSpec(ArgKind.FLAG, option="--ignore-not-found"),
        },
        required_any=(("name", "selector"),),
        description="Delete resources by name or selector",
    ),
    "exec": OperationSpec(
        verb=("exec",),
        args={
            "name": ArgSpec(ArgKind.NAME, required=True),
            "container": ArgSpec(ArgKind.NAME, option="--container"),
            "command": ArgSpec(ArgKind.LIST, required=True, separator=True),
        },
        description="Run a non-interactive command in a container",
    ),
    "cordon": OperationSpec(
        verb=("cordon",),
        args={"name": ArgSpec(ArgKind.NAME, required=True)},
        namespaced=False,
        description="Mark a node unschedulable",
    ),
    "uncordon": OperationSpec(
        verb=("uncordon",),
        args={"name": ArgSpec(ArgKind.NAME, required=True)},
        namespaced=False,
        description="Mark a node schedulable",
    ),
    "drain": OperationSpec(
        verb=("drain",),
        args={
            "name": ArgSpec(ArgKind.NAME, required=True),
            "ignore_daemonsets": ArgSpec(ArgKind.FLAG, option="--ignore-daemonsets"),
            "delete_emptydir_data": ArgSpec(ArgKind.FLAG, option="--delete-emptydir-data"),
            "force": ArgSpec(ArgKind.FLAG, option="--force"),
            "grace_period": GRACE_PERIOD,
        },
        namespaced=False,
        timeout_seconds=300,
        description="Evict all pods from a node",
    ),
    "taint": OperationSpec(
        verb=("taint", "nodes"),
        args={
            "name": ArgSpec(ArgKind.NAME, required=True),
            "taints": ArgSpec(ArgKind.LABELS, required=True, allow_removal=True),
            "overwrite": OVERWRITE,
        },
        namespaced=False,
        description="Add or remove node taints",
    ),
}


class KubectlStrategy(ToolStrategy):
    """Resolves kubectl operations."""

    name = "kubectl"
    executable = "kubectl"
    operations = KUBECTL_OPERATIONS

    def is_namespaced(self, spec: OperationSpec, arguments: Mapping[str, Any]) -> bool:
        if not spec.namespaced:
            return False
        resource = arguments.get("resource")
        if isinstance(resource, str) and resource_base(resource) in CLUSTER_SCOPED_RESOURCES:
            return False
        return True

    def referenced_namespaces(
        self, spec: OperationSpec, arguments: Mapping[str, Any]
    ) -> Tuple[str, ...]:
        referenced = list(super().referenced_namespaces(spec, arguments))
        manifest = arguments.get("manifest")
        if "manifest" in spec.args and isinstance(manifest, str):
            referenced.extend(manifest_namespaces(manifest))
        return tuple(referenced)

    def check_combination(self, spec: OperationSpec, values: Dict[str, Any]) -> None:
        if "name" in values and "selector" in values:
            raise InvalidArgument("'name' and 'selector' are mutually exclusive")
        # "deploy/nginx" already names the object
        resource = values.get("resource")
        if isinstance(resource, str) and "/" in resource and "name" in values:
            raise InvalidArgument("'resource' already contains a name; omit 'name'")


def manifest_namespaces(manifest: str) -> Tuple[str, ...]:
    """Collect metadata.namespace of every object in a manifest, including List items."""
    namespaces = []
    for obj in manifest_objects(manifest):
        metadata = obj.get("metadata")
        if isinstance(metadata, dict) and isinstance(metadata.get("namespace"), str):
            namespaces.append(metadata["namespace"])
    return tuple(namespaces)
