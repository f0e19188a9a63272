"""
Base strategy for per-tool command grammars.

A strategy owns an explicit table of supported operations. Each operation
declares the argument keys it accepts and their shapes; anything else is
rejected before a command line is built.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from kubeguard.modules.errors import InvalidArgument, UnsupportedOperation
from kubeguard.modules.resolver.arguments import (
    ArgKind,
    ArgSpec,
    flag_is_set,
    render,
    validate_value,
)
from kubeguard.modules.resolver.types import CommandRequest, NamespaceScope, ResolvedCommand

logger = logging.getLogger("kubeguard.resolver")

NAMESPACE_KEY = "namespace"
ALL_NAMESPACES_KEY = "all_namespaces"

# Keys that would turn a bounded call into a stream
STREAMING_KEYS = ("follow", "watch", "watch_only")


@dataclass(frozen=True)
class OperationSpec:
    """
    Grammar of one tool operation.

    Attributes:
        verb: argv tokens that select the operation, e.g. ("rollout", "status")
        args: Allowed argument keys in render order
        namespaced: Whether the operation runs inside a namespace
        all_namespaces: Whether --all-namespaces is accepted
        timeout_seconds: Replaces the configured default when set
        required_any: Groups of keys of which at least one must be present
        fixed_args: argv elements always appended
        description: One-line summary for tool listings
    """

    verb: Tuple[str, ...]
    args: Mapping[str, ArgSpec] = field(default_factory=dict)
    namespaced: bool = True
    all_namespaces: bool = False
    timeout_seconds: Optional[int] = None
    required_any: Tuple[Tuple[str, ...], ...] = ()
    fixed_args: Tuple[str, ...] = ()
    description: str = ""


class ToolStrategy:
    """Resolves requests for one CLI tool against its operation table."""

    name: str = ""
    executable: str = ""
    operations: Dict[str, OperationSpec] = {}

    def supported_operations(self) -> Tuple[str, ...]:
        return tuple(sorted(self.operations))

    def operation(self, operation: str) -> OperationSpec:
        """
        Look up an operation's grammar.

        Raises:
            UnsupportedOperation: If the tool does not support the operation
        """
        spec = self.operations.get(operation)
        if spec is None:
            raise UnsupportedOperation(
                f"operation '{operation}' is not supported by {self.name}. "
                f"Supported: {', '.join(self.supported_operations())}"
            )
        return spec

    def is_namespaced(self, spec: OperationSpec, arguments: Mapping[str, Any]) -> bool:
        """Whether this particular call runs inside a namespace."""
        return spec.namespaced

    def referenced_namespaces(
        self, spec: OperationSpec, arguments: Mapping[str, Any]
    ) -> Tuple[str, ...]:
        """Namespaces other than the target one that the arguments point at."""
        referenced = []
        for key, arg_spec in spec.args.items():
            value = arguments.get(key)
            if arg_spec.kind is ArgKind.NAMESPACE and isinstance(value, str):
                referenced.append(value)
        return tuple(referenced)

    def namespace_scope(self, request: CommandRequest) -> NamespaceScope:
        """
        Extract the namespaces a request touches, without validating it.

        Unknown operations report an unnamespaced scope so that the
        resolver, not the namespace guard, rejects them.
        """
        arguments = request.arguments
        requested = arguments.get(NAMESPACE_KEY)
        requested = requested if isinstance(requested, str) and requested else None

        spec = self.operations.get(request.operation)
        if spec is None:
            return NamespaceScope(requested=requested, namespaced=False)

        return NamespaceScope(
            requested=requested,
            referenced=self.referenced_namespaces(spec, arguments),
            all_namespaces=flag_is_set(arguments.get(ALL_NAMESPACES_KEY)),
            namespaced=self.is_namespaced(spec, arguments),
        )

    def validate(self, spec: OperationSpec, arguments: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Convert the raw argument mapping into a typed record.

        Raises:
            InvalidArgument: On unknown keys, missing keys or bad values
        """
        for key in STREAMING_KEYS:
            if key in arguments:
                raise InvalidArgument(
                    f"argument '{key}' is not supported: streaming output is disabled"
                )

        allowed = set(spec.args)
        if spec.namespaced:
            allowed.add(NAMESPACE_KEY)
        if spec.all_namespaces:
            allowed.add(ALL_NAMESPACES_KEY)

        unknown = sorted(set(arguments) - allowed)
        if unknown:
            raise InvalidArgument(
                f"unknown argument(s) for {self.name} {'-'.join(spec.verb)}: {', '.join(unknown)}"
            )

        values: Dict[str, Any] = {}
        if arguments.get(NAMESPACE_KEY) is not None:
            values[NAMESPACE_KEY] = validate_value(
                NAMESPACE_KEY, ArgSpec(ArgKind.NAMESPACE), arguments[NAMESPACE_KEY]
            )
        if arguments.get(ALL_NAMESPACES_KEY) is not None:
            values[ALL_NAMESPACES_KEY] = validate_value(
                ALL_NAMESPACES_KEY, ArgSpec(ArgKind.FLAG), arguments[ALL_NAMESPACES_KEY]
            )

        for key, arg_spec in spec.args.items():
            if key not in arguments or arguments[key] is None:
                if arg_spec.required:
                    raise InvalidArgument(f"missing required argument '{key}'")
                continue
            values[key] = validate_value(key, arg_spec, arguments[key])

        for group in spec.required_any:
            if not any(key in values for key in group):
                raise InvalidArgument(f"one of these arguments is required: {', '.join(group)}")

        if values.get(ALL_NAMESPACES_KEY) and NAMESPACE_KEY in values:
            raise InvalidArgument("'namespace' and 'all_namespaces' are mutually exclusive")

        self.check_combination(spec, values)
        return values

    def check_combination(self, spec: OperationSpec, values: Dict[str, Any]) -> None:
        """Hook for tool-specific cross-argument rules."""

    def resolve(
        self, request: CommandRequest, namespace: Optional[str], default_timeout: int
    ) -> ResolvedCommand:
        """
        Build the command for a request whose namespace scope was already checked.

        Args:
            request: Tool call to resolve
            namespace: Effective namespace chosen by the namespace guard
            default_timeout: Configured timeout used unless the operation overrides it

        Returns:
            ResolvedCommand with one argv element per value

        Raises:
            UnsupportedOperation: If the operation is unknown
            InvalidArgument: If any argument fails validation
        """
        spec = self.operation(request.operation)
        values = self.validate(spec, request.arguments)

        positional: List[str] = []
        options: List[str] = []
        trailing: List[str] = []
        stdin = None

        for key, arg_spec in spec.args.items():
            if key not in values:
                continue
            rendered = render(arg_spec, values[key])
            positional.extend(rendered.positional)
            options.extend(rendered.options)
            trailing.extend(rendered.trailing)
            if rendered.stdin is not None:
                stdin = rendered.stdin

        if values.get(ALL_NAMESPACES_KEY):
            options.append("--all-namespaces")
        elif namespace and self.is_namespaced(spec, request.arguments):
            options.append(f"--namespace={namespace}")

        argv = tuple(spec.verb) + tuple(positional) + tuple(options) + spec.fixed_args + tuple(trailing)
        timeout = spec.timeout_seconds if spec.timeout_seconds is not None else default_timeout
        logger.debug(f"Resolved {self.name} {request.operation} to {len(argv)} argv elements")

        return ResolvedCommand(
            executable=self.executable,
            argv=argv,
            timeout_seconds=timeout,
            stdin=stdin,
        )
