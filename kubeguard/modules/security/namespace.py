"""
Namespace Scope Guard.

Restricts which cluster namespaces an operation may target. When no
namespace is requested under a non-empty allow-list, the sole allowed
namespace is injected; with several allowed namespaces the request is
rejected as ambiguous.
"""

import logging
from typing import FrozenSet, Iterable, Optional

from kubeguard.modules.errors import NamespaceNotAllowed

logger = logging.getLogger("kubeguard.security.namespace")


class NamespaceGuard:
    """Checks requested and referenced namespaces against the allow-list."""

    def __init__(self, allowed: FrozenSet[str]):
        """
        Initialize guard.

        Args:
            allowed: Namespaces operations may target; empty means all
        """
        self.allowed = frozenset(allowed)

    def check(
        self,
        requested: Optional[str],
        referenced: Iterable[str] = (),
        all_namespaces: bool = False,
        namespaced: bool = True,
    ) -> Optional[str]:
        """
        Validate the namespace scope of one request.

        Args:
            requested: Namespace the operation runs in, if any
            referenced: Other namespaces the arguments point at
            all_namespaces: Whether the request spans every namespace
            namespaced: False for cluster-scoped operations, which get no default

        Returns:
            Effective namespace: the requested one, the injected default,
            or None when unrestricted and unspecified

        Raises:
            NamespaceNotAllowed: If any namespace is outside the allow-list,
                or the target namespace is ambiguous
        """
        if not self.allowed:
            return requested

        if all_namespaces:
            raise NamespaceNotAllowed(
                "all-namespaces requests are not permitted when namespaces are restricted. "
                f"Allowed namespaces: {self._allowed_text()}"
            )

        # All-or-nothing: one bad reference fails the whole request
        for namespace in referenced:
            self._require_allowed(namespace)

        if requested:
            self._require_allowed(requested)
            return requested

        if not namespaced:
            return None

        if len(self.allowed) == 1:
            (default,) = self.allowed
            logger.debug(f"No namespace requested, defaulting to '{default}'")
            return default

        raise NamespaceNotAllowed(
            "a namespace must be specified when more than one namespace is allowed. "
            f"Allowed namespaces: {self._allowed_text()}"
        )

    def is_allowed(self, namespace: str) -> bool:
        return not self.allowed or namespace in self.allowed

    def _require_allowed(self, namespace: str) -> None:
        if not self.is_allowed(namespace):
            raise NamespaceNotAllowed(
                f"namespace '{namespace}' is not allowed. "
                f"Allowed namespaces: {self._allowed_text()}"
            )

    def _allowed_text(self) -> str:
        return ", ".join(sorted(self.allowed))
