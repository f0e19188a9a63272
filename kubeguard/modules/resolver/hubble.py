"""hubble CLI command grammar."""

from typing import Any, Dict, Mapping, Tuple

from kubeguard.modules.resolver.arguments import ArgKind, ArgSpec
from kubeguard.modules.resolver.base import OperationSpec, ToolStrategy

# observe is only allowed as a bounded query over recent flows
MAX_FLOWS = 10000
OBSERVE_TIMEOUT_SECONDS = 30
DIRECTIONAL_KEYS = ("from_namespace", "to_namespace")
# Accept "[namespace/]pod"
POD_KEYS = ("pod", "from_pod", "to_pod")

HUBBLE_OPERATIONS: Dict[str, OperationSpec] = {
    "status": OperationSpec(
        verb=("status",),
        namespaced=False,
        description="Show Hubble relay status",
    ),
    "list-nodes": OperationSpec(
        verb=("list", "nodes"),
        namespaced=False,
        description="List nodes reporting flows",
    ),
    "observe": OperationSpec(
        verb=("observe",),
        args={
            "last": ArgSpec(
                ArgKind.INTEGER, option="--last", required=True, minimum=1, maximum=MAX_FLOWS
            ),
            "from_namespace": ArgSpec(ArgKind.NAMESPACE, option="--from-namespace"),
            "to_namespace": ArgSpec(ArgKind.NAMESPACE, option="--to-namespace"),
            "pod": ArgSpec(ArgKind.STRING, option="--pod"),
            "from_pod": ArgSpec(ArgKind.STRING, option="--from-pod"),
            "to_pod": ArgSpec(ArgKind.STRING, option="--to-pod"),
            "verdict": ArgSpec(
                ArgKind.CHOICE,
                option="--verdict",
                choices=("FORWARDED", "DROPPED", "ERROR", "AUDIT", "REDIRECTED", "TRACED", "TRANSLATED"),
            ),
            "protocol": ArgSpec(
                ArgKind.CHOICE,
                option="--protocol",
                choices=("tcp", "udp", "icmp", "http", "dns", "kafka", "sctp"),
            ),
            "type": ArgSpec(
                ArgKind.CHOICE,
                option="--type",
                choices=("trace", "drop", "l7", "policy-verdict", "capture", "debug", "sock"),
            ),
            "http_status": ArgSpec(ArgKind.STRING, option="--http-status"),
            "output": ArgSpec(
                ArgKind.CHOICE,
                option="--output",
                choices=("compact", "dict", "json", "jsonpb", "table"),
            ),
        },
        timeout_seconds=OBSERVE_TIMEOUT_SECONDS,
        description="Show the most recent flows",
    ),
}


class HubbleStrategy(ToolStrategy):
    """Resolves hubble operations."""

    name = "hubble"
    executable = "hubble"
    operations = HUBBLE_OPERATIONS

    def is_namespaced(self, spec: OperationSpec, arguments: Mapping[str, Any]) -> bool:
        # Directional filters replace the symmetric --namespace filter
        if any(isinstance(arguments.get(key), str) for key in DIRECTIONAL_KEYS):
            return False
        return spec.namespaced

    def referenced_namespaces(
        self, spec: OperationSpec, arguments: Mapping[str, Any]
    ) -> Tuple[str, ...]:
        referenced = list(super().referenced_namespaces(spec, arguments))
        for key in POD_KEYS:
            value = arguments.get(key)
            if key in spec.args and isinstance(value, str) and "/" in value:
                referenced.append(value.split("/", 1)[0])
        return tuple(referenced)
