"""cilium CLI command grammar. Every operation is cluster-scoped."""

from typing import Dict

from kubeguard.modules.resolver.arguments import ArgKind, ArgSpec
from kubeguard.modules.resolver.base import OperationSpec, ToolStrategy

# Installs and connectivity tests wait on DaemonSet rollouts
LONG_RUNNING_SECONDS = 600

VERSION = ArgSpec(ArgKind.STRING, option="--version")
SET_VALUES = ArgSpec(ArgKind.LABELS, option="--set", max_items=64)
WAIT = ArgSpec(ArgKind.FLAG, option="--wait")

CILIUM_OPERATIONS: Dict[str, OperationSpec] = {
    "status": OperationSpec(
        verb=("status",),
        namespaced=False,
        description="Show Cilium status",
    ),
    "version": OperationSpec(
        verb=("version",),
        args={"client": ArgSpec(ArgKind.FLAG, option="--client")},
        namespaced=False,
        description="Show Cilium CLI and agent versions",
    ),
    "config-view": OperationSpec(
        verb=("config", "view"),
        namespaced=False,
        description="Show Cilium configuration",
    ),
    "clustermesh-status": OperationSpec(
        verb=("clustermesh", "status"),
        namespaced=False,
        description="Show ClusterMesh status",
    ),
    "connectivity-test": OperationSpec(
        verb=("connectivity", "test"),
        args={"test": ArgSpec(ArgKind.LIST, option="--test", max_items=16)},
        namespaced=False,
        timeout_seconds=LONG_RUNNING_SECONDS,
        description="Run the connectivity test suite",
    ),
    "hubble-enable": OperationSpec(
        verb=("hubble", "enable"),
        args={"ui": ArgSpec(ArgKind.FLAG, option="--ui")},
        namespaced=False,
        description="Enable Hubble observability",
    ),
    "hubble-disable": OperationSpec(
        verb=("hubble", "disable"),
        namespaced=False,
        description="Disable Hubble observability",
    ),
    "install": OperationSpec(
        verb=("install",),
        args={"version": VERSION, "values": SET_VALUES, "wait": WAIT},
        namespaced=False,
        timeout_seconds=LONG_RUNNING_SECONDS,
        description="Install Cilium",
    ),
    "upgrade": OperationSpec(
        verb=("upgrade",),
        args={"version": VERSION, "values": SET_VALUES, "wait": WAIT},
        namespaced=False,
        timeout_seconds=LONG_RUNNING_SECONDS,
        description="Upgrade Cilium",
    ),
    "uninstall": OperationSpec(
        verb=("uninstall",),
        args={"wait": WAIT},
        namespaced=False,
        timeout_seconds=LONG_RUNNING_SECONDS,
        description="Uninstall Cilium",
    ),
}


class CiliumStrategy(ToolStrategy):
    """Resolves cilium operations."""

    name = "cilium"
    executable = "cilium"
    operations = CILIUM_OPERATIONS
