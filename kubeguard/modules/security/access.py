"""
Access Policy Model.

Encodes the three-tier permission lattice (readonly < readwrite < admin)
and the access level each tool operation requires. Every function here is
pure: no I/O, no shared mutable state, safe to call from any number of
concurrent requests.
"""

import logging
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Tuple

import yaml

from kubeguard.modules.errors import AccessDenied, ToolNotEnabled

logger = logging.getLogger("kubeguard.security.access")


class AccessLevel(str, Enum):
    """Permission tier granted to the whole running service instance."""

    READ_ONLY = "readonly"
    READ_WRITE = "readwrite"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    # str comparison would order these alphabetically
    def __lt__(self, other):
        if not isinstance(other, AccessLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, AccessLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, AccessLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, AccessLevel):
            return NotImplemented
        return self.rank >= other.rank

    @classmethod
    def parse(cls, value: str) -> "AccessLevel":
        """
        Parse a configured access level.

        Matching is case-sensitive, like the command-line flag it comes from.

        Raises:
            ValueError: If the value is not one of readonly, readwrite, admin.
        """
        for level in cls:
            if level.value == value:
                return level
        raise ValueError(
            f"invalid access level '{value}'. Valid values are: "
            + ", ".join(level.value for level in cls)
        )


_RANKS = {
    AccessLevel.READ_ONLY: 0,
    AccessLevel.READ_WRITE: 1,
    AccessLevel.ADMIN: 2,
}

# Kinds, plurals and short names of objects that live outside any namespace
CLUSTER_SCOPED_RESOURCES: FrozenSet[str] = frozenset(
    {
        "node",
        "nodes",
        "no",
        "namespace",
        "namespaces",
        "ns",
        "persistentvolume",
        "persistentvolumes",
        "pv",
        "storageclass",
        "storageclasses",
        "sc",
        "clusterrole",
        "clusterroles",
        "clusterrolebinding",
        "clusterrolebindings",
        "customresourcedefinition",
        "customresourcedefinitions",
        "crd",
        "crds",
        "priorityclass",
        "priorityclasses",
        "pc",
        "ingressclass",
        "ingressclasses",
        "apiservice",
        "apiservices",
        "certificatesigningrequest",
        "certificatesigningrequests",
        "csr",
        "mutatingwebhookconfiguration",
        "mutatingwebhookconfigurations",
        "validatingwebhookconfiguration",
        "validatingwebhookconfigurations",
    }
)

NAMESPACED_RBAC_RESOURCES: FrozenSet[str] = frozenset(
    {
        "role",
        "roles",
        "rolebinding",
        "rolebindings",
        "serviceaccount",
        "serviceaccounts",
        "sa",
    }
)


def resource_base(resource: str) -> str:
    """'deployments.apps/nginx' -> 'deployments', 'APIService' -> 'apiservice'"""
    return resource.split("/")[0].split(".")[0].lower()


class AccessPolicy:
    """Maps tool operations to the access level they require."""

    # Applies to every tool unless the tool table overrides it
    BASE_OPERATION_LEVELS: Dict[str, AccessLevel] = {
        "get": AccessLevel.READ_ONLY,
        "describe": AccessLevel.READ_ONLY,
        "list": AccessLevel.READ_ONLY,
        "logs": AccessLevel.READ_ONLY,
        "top": AccessLevel.READ_ONLY,
        "apply": AccessLevel.READ_WRITE,
        "create": AccessLevel.READ_WRITE,
        "patch": AccessLevel.READ_WRITE,
        "scale": AccessLevel.READ_WRITE,
        "label": AccessLevel.READ_WRITE,
        "delete": AccessLevel.ADMIN,
        "exec": AccessLevel.ADMIN,
        "drain": AccessLevel.ADMIN,
        "cordon": AccessLevel.ADMIN,
        "uncordon": AccessLevel.ADMIN,
    }

    TOOL_OPERATION_LEVELS: Dict[str, Dict[str, AccessLevel]] = {
        "kubectl": {
            "events": AccessLevel.READ_ONLY,
            "explain": AccessLevel.READ_ONLY,
            "api-resources": AccessLevel.READ_ONLY,
            "api-versions": AccessLevel.READ_ONLY,
            "version": AccessLevel.READ_ONLY,
            "cluster-info": AccessLevel.READ_ONLY,
            "auth-can-i": AccessLevel.READ_ONLY,
            "rollout-status": AccessLevel.READ_ONLY,
            "rollout-history": AccessLevel.READ_ONLY,
            "annotate": AccessLevel.READ_WRITE,
            "set-image": AccessLevel.READ_WRITE,
            "rollout-restart": AccessLevel.READ_WRITE,
            "rollout-undo": AccessLevel.READ_WRITE,
            "taint": AccessLevel.ADMIN,
        },
        "helm": {
            "status": AccessLevel.READ_ONLY,
            "history": AccessLevel.READ_ONLY,
            "get-values": AccessLevel.READ_ONLY,
            "get-manifest": AccessLevel.READ_ONLY,
            "show-chart": AccessLevel.READ_ONLY,
            "show-values": AccessLevel.READ_ONLY,
            "search-repo": AccessLevel.READ_ONLY,
            "repo-list": AccessLevel.READ_ONLY,
            "version": AccessLevel.READ_ONLY,
            "install": AccessLevel.READ_WRITE,
            "upgrade": AccessLevel.READ_WRITE,
            "rollback": AccessLevel.READ_WRITE,
            "repo-add": AccessLevel.READ_WRITE,
            "repo-update": AccessLevel.READ_WRITE,
            "uninstall": AccessLevel.ADMIN,
        },
        "cilium": {
            "status": AccessLevel.READ_ONLY,
            "version": AccessLevel.READ_ONLY,
            "config-view": AccessLevel.READ_ONLY,
            "clustermesh-status": AccessLevel.READ_ONLY,
            "connectivity-test": AccessLevel.ADMIN,
            "hubble-enable": AccessLevel.ADMIN,
            "hubble-disable": AccessLevel.ADMIN,
            "install": AccessLevel.ADMIN,
            "upgrade": AccessLevel.ADMIN,
            "uninstall": AccessLevel.ADMIN,
        },
        "hubble": {
            "status": AccessLevel.READ_ONLY,
            "list-nodes": AccessLevel.READ_ONLY,
            "observe": AccessLevel.READ_ONLY,
        },
    }

    # Mutating these requires admin regardless of the operation's own level
    PRIVILEGED_RESOURCES: FrozenSet[str] = CLUSTER_SCOPED_RESOURCES | NAMESPACED_RBAC_RESOURCES

    def required_level(
        self, tool_name: str, operation: str, resources: Iterable[str] = ()
    ) -> AccessLevel:
        """
        Get the access level an operation requires.

        Args:
            tool_name: Tool the operation belongs to
            operation: Operation name, e.g. "get" or "rollout-restart"
            resources: Resource kinds the operation targets, if known

        Returns:
            Required level; unknown operations require admin
        """
        level = self.TOOL_OPERATION_LEVELS.get(tool_name, {}).get(operation)
        if level is None:
            level = self.BASE_OPERATION_LEVELS.get(operation, AccessLevel.ADMIN)

        if level >= AccessLevel.READ_WRITE and any(
            self.is_privileged_resource(resource) for resource in resources
        ):
            return AccessLevel.ADMIN

        return level

    def is_privileged_resource(self, resource: str) -> bool:
        """Check a resource kind, plural or short name, against the privileged set."""
        if not resource:
            return False
        return resource_base(resource) in self.PRIVILEGED_RESOURCES


def check_access(granted: AccessLevel, required: AccessLevel) -> None:
    """
    Permit iff required <= granted.

    Raises:
        AccessDenied: If the granted level is below the required level
    """
    if required > granted:
        raise AccessDenied(
            f"operation requires '{required.value}' access, "
            f"but the server is running with '{granted.value}'"
        )


def check_tool_enabled(tool_name: str, enabled_tools: FrozenSet[str]) -> None:
    """
    Reject tools that are not enabled for this instance.

    Raises:
        ToolNotEnabled: If tool_name is not in enabled_tools
    """
    if tool_name not in enabled_tools:
        raise ToolNotEnabled(
            f"tool '{tool_name}' is not enabled. Enabled tools: "
            + ", ".join(sorted(enabled_tools))
        )


def request_resources(arguments: Mapping[str, Any]) -> Tuple[str, ...]:
    """
    Collect the resource kinds a request targets, for access escalation.

    Looks at the "resource" argument, at the kinds declared in a
    "manifest" argument and at helm namespace creation. Unparseable manifests contribute nothing here;
    the resolver rejects them later.
    """
    resources = []

    resource = arguments.get("resource")
    if isinstance(resource, str):
        resources.append(resource)

    manifest = arguments.get("manifest")
    if isinstance(manifest, str):
        resources.extend(manifest_kinds(manifest))

    # helm install --create-namespace
    create_namespace = arguments.get("create_namespace")
    if create_namespace is True or str(create_namespace).lower() == "true":
        resources.append("namespaces")

    return tuple(resources)


def manifest_objects(manifest: str) -> List[Dict[str, Any]]:
    """
    Load every object of a YAML manifest, descending into List items.

    Unparseable manifests yield no objects; the resolver rejects them later.
    """
    try:
        documents = list(yaml.safe_load_all(manifest))
    except yaml.YAMLError as e:
        logger.debug(f"Manifest is not valid YAML: {e}")
        return []

    objects = []
    pending = [doc for doc in documents if isinstance(doc, dict)]
    while pending:
        doc = pending.pop()
        objects.append(doc)
        items = doc.get("items")
        if isinstance(items, list):
            pending.extend(item for item in items if isinstance(item, dict))
    return objects


def manifest_kinds(manifest: str) -> Tuple[str, ...]:
    """Extract the kind of every object in a YAML manifest, including List items."""
    return tuple(
        obj["kind"] for obj in manifest_objects(manifest) if isinstance(obj.get("kind"), str)
    )
