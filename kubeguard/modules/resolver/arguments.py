"""
Argument shapes and value validation.

Every value accepted from a caller is checked against its declared shape and
the conservative character class below, then rendered as one or more
complete argv elements. Nothing here ever builds a shell string.
"""

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Mapping, Optional, Tuple

import yaml

from kubeguard.modules.errors import InvalidArgument

MAX_VALUE_LENGTH = 512
MAX_STRUCTURE_DEPTH = 16

# Alphanumerics plus - _ . / : and never a leading dash
SAFE_VALUE = re.compile(r"^[A-Za-z0-9_./:][A-Za-z0-9_./:-]*$")
# Same class; only used after a "--" separator where dashes are inert
SAFE_TRAILING_VALUE = re.compile(r"^[A-Za-z0-9_./:-]+$")
# DNS-1123 subdomain
NAME_PATTERN = re.compile(r"^[a-z0-9]([-a-z0-9.]*[a-z0-9])?$")
# DNS-1123 label
NAMESPACE_PATTERN = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")
# "pods", "deployments.apps", "deploy/nginx", "pods.spec.containers"
RESOURCE_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9.-]*(/[a-z0-9]([-a-z0-9.]*[a-z0-9])?)?$")
DURATION_PATTERN = re.compile(r"^(?=\d)(\d+h)?(\d+m)?(\d+s)?$")


class ArgKind(Enum):
    """Shape of an accepted argument value."""

    STRING = "string"
    FLAG = "flag"
    INTEGER = "integer"
    CHOICE = "choice"
    LIST = "list"
    NAME = "name"
    NAMESPACE = "namespace"
    RESOURCE = "resource"
    DURATION = "duration"
    LABELS = "labels"
    MANIFEST = "manifest"
    PATCH = "patch"


@dataclass(frozen=True)
class ArgSpec:
    """
    Declaration of one allowed argument key.

    Attributes:
        kind: Expected value shape
        option: Flag name such as "--container"; None renders positionally
        required: Whether the key must be present
        choices: Allowed values for CHOICE
        minimum: Lower bound for INTEGER
        maximum: Upper bound for INTEGER
        max_items: Upper bound on LIST and LABELS entries
        join: For LABELS with an option, join pairs into a single element
        allow_removal: For LABELS, a null value renders as "key-"
        separator: For LIST, render after a "--" separator
    """

    kind: ArgKind
    option: Optional[str] = None
    required: bool = False
    choices: Tuple[str, ...] = ()
    minimum: int = 0
    maximum: Optional[int] = None
    max_items: int = 32
    join: Optional[str] = None
    allow_removal: bool = False
    separator: bool = False


@dataclass
class RenderedArgument:
    """argv contributions of one validated argument, by position."""

    positional: List[str]
    options: List[str]
    trailing: List[str]
    stdin: Optional[str] = None


def check_safe(key: str, value: Any, pattern: re.Pattern = SAFE_VALUE) -> str:
    """Validate a scalar value against the conservative character class."""
    if not isinstance(value, str):
        raise InvalidArgument(f"argument '{key}' must be a string, got {type(value).__name__}")
    if len(value) > MAX_VALUE_LENGTH:
        raise InvalidArgument(f"argument '{key}' exceeds {MAX_VALUE_LENGTH} characters")
    if not value:
        raise InvalidArgument(f"argument '{key}' must not be empty")
    if not pattern.fullmatch(value):
        raise InvalidArgument(
            f"argument '{key}' contains characters outside [A-Za-z0-9_./:-] "
            "or starts with '-'"
        )
    return value


def _check_pattern(key: str, value: Any, pattern: re.Pattern, what: str, max_length: int) -> str:
    if not isinstance(value, str):
        raise InvalidArgument(f"argument '{key}' must be a string, got {type(value).__name__}")
    if len(value) > max_length or not pattern.fullmatch(value):
        raise InvalidArgument(f"argument '{key}' is not a valid {what}: '{value[:64]}'")
    return value


def _to_int(key: str, value: Any, spec: ArgSpec) -> int:
    # bool is an int subclass
    if isinstance(value, bool):
        raise InvalidArgument(f"argument '{key}' must be an integer")
    if isinstance(value, str) and re.fullmatch(r"-?\d{1,9}", value):
        value = int(value)
    if not isinstance(value, int):
        raise InvalidArgument(f"argument '{key}' must be an integer")
    if value < spec.minimum or (spec.maximum is not None and value > spec.maximum):
        upper = spec.maximum if spec.maximum is not None else "inf"
        raise InvalidArgument(f"argument '{key}' must be between {spec.minimum} and {upper}")
    return value


def _to_flag(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    raise InvalidArgument(f"argument '{key}' must be a boolean")


def flag_is_set(value: Any) -> bool:
    """Lenient truthiness check used before validation, matching _to_flag."""
    if isinstance(value, str):
        return value.lower() == "true"
    return value is True


def _to_list(key: str, value: Any, spec: ArgSpec) -> Tuple[str, ...]:
    # A bare string would need word-splitting, which is never done
    if not isinstance(value, (list, tuple)):
        raise InvalidArgument(f"argument '{key}' must be a list of strings")
    if not value:
        raise InvalidArgument(f"argument '{key}' must not be empty")
    if len(value) > spec.max_items:
        raise InvalidArgument(f"argument '{key}' accepts at most {spec.max_items} items")
    pattern = SAFE_TRAILING_VALUE if spec.separator else SAFE_VALUE
    return tuple(check_safe(key, item, pattern) for item in value)


def _to_labels(key: str, value: Any, spec: ArgSpec) -> Tuple[Tuple[str, Optional[str]], ...]:
    if not isinstance(value, Mapping):
        raise InvalidArgument(f"argument '{key}' must be a mapping of keys to values")
    if not value:
        raise InvalidArgument(f"argument '{key}' must not be empty")
    if len(value) > spec.max_items:
        raise InvalidArgument(f"argument '{key}' accepts at most {spec.max_items} entries")

    pairs = []
    for label, label_value in value.items():
        check_safe(key, label)
        if label_value is None:
            if not spec.allow_removal:
                raise InvalidArgument(f"argument '{key}' does not accept null values")
        elif isinstance(label_value, bool):
            label_value = "true" if label_value else "false"
        elif isinstance(label_value, int):
            label_value = str(label_value)
        elif label_value != "":
            check_safe(key, label_value)
        pairs.append((label, label_value))
    # Caller order is irrelevant; sorting keeps resolution deterministic
    return tuple(sorted(pairs))


def _to_manifest(key: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument(f"argument '{key}' must be a non-empty YAML document")
    try:
        documents = [doc for doc in yaml.safe_load_all(value) if doc is not None]
    except yaml.YAMLError as e:
        raise InvalidArgument(f"argument '{key}' is not valid YAML: {e}")
    if not documents:
        raise InvalidArgument(f"argument '{key}' contains no objects")
    for doc in documents:
        if not isinstance(doc, dict) or "kind" not in doc or "apiVersion" not in doc:
            raise InvalidArgument(f"argument '{key}' must contain Kubernetes objects with apiVersion and kind")
    return value


def _check_structure(key: str, value: Any, depth: int = 0) -> None:
    if depth > MAX_STRUCTURE_DEPTH:
        raise InvalidArgument(f"argument '{key}' is nested too deeply")
    if isinstance(value, Mapping):
        for child_key, child in value.items():
            check_safe(key, child_key)
            _check_structure(key, child, depth + 1)
    elif isinstance(value, (list, tuple)):
        for child in value:
            _check_structure(key, child, depth + 1)
    elif isinstance(value, str):
        if value:
            check_safe(key, value)
    elif value is not None and not isinstance(value, (bool, int, float)):
        raise InvalidArgument(f"argument '{key}' contains an unsupported value type")


def _to_patch(key: str, value: Any) -> str:
    if not isinstance(value, (Mapping, list, tuple)) or not value:
        raise InvalidArgument(f"argument '{key}' must be a non-empty object or list")
    _check_structure(key, value)
    return json.dumps(value, sort_keys=True, separators=(",", ":"))


def validate_value(key: str, spec: ArgSpec, value: Any) -> Any:
    """
    Convert one raw argument into its typed, validated form.

    Raises:
        InvalidArgument: If the value does not match the declared shape
    """
    kind = spec.kind
    if kind is ArgKind.FLAG:
        return _to_flag(key, value)
    if kind is ArgKind.INTEGER:
        return _to_int(key, value, spec)
    if kind is ArgKind.CHOICE:
        if value not in spec.choices:
            raise InvalidArgument(
                f"argument '{key}' must be one of: {', '.join(spec.choices)}"
            )
        return value
    if kind is ArgKind.LIST:
        return _to_list(key, value, spec)
    if kind is ArgKind.LABELS:
        return _to_labels(key, value, spec)
    if kind is ArgKind.NAME:
        return _check_pattern(key, value, NAME_PATTERN, "resource name", 253)
    if kind is ArgKind.NAMESPACE:
        return _check_pattern(key, value, NAMESPACE_PATTERN, "namespace", 63)
    if kind is ArgKind.RESOURCE:
        return _check_pattern(key, value, RESOURCE_PATTERN, "resource", 253)
    if kind is ArgKind.DURATION:
        return _check_pattern(key, value, DURATION_PATTERN, "duration (e.g. 5m, 1h30m)", 32)
    if kind is ArgKind.MANIFEST:
        return _to_manifest(key, value)
    if kind is ArgKind.PATCH:
        return _to_patch(key, value)
    return check_safe(key, value)


def _pair(label: str, value: Optional[str]) -> str:
    return f"{label}-" if value is None else f"{label}={value}"


def render(spec: ArgSpec, value: Any) -> RenderedArgument:
    """Render a validated value into argv elements."""
    rendered = RenderedArgument(positional=[], options=[], trailing=[])
    kind = spec.kind

    if kind is ArgKind.FLAG:
        if value:
            rendered.options.append(spec.option)
        return rendered

    if kind is ArgKind.MANIFEST:
        rendered.options.append(f"{spec.option}=-")
        rendered.stdin = value
        return rendered

    if kind is ArgKind.LIST:
        items = list(value)
        if spec.separator:
            rendered.trailing.extend(["--"] + items)
        elif spec.option:
            rendered.options.extend(f"{spec.option}={item}" for item in items)
        else:
            rendered.positional.extend(items)
        return rendered

    if kind is ArgKind.LABELS:
        pairs = [_pair(label, label_value) for label, label_value in value]
        if spec.option and spec.join:
            rendered.options.append(f"{spec.option}={spec.join.join(pairs)}")
        elif spec.option:
            rendered.options.extend(f"{spec.option}={pair}" for pair in pairs)
        else:
            rendered.positional.extend(pairs)
        return rendered

    text = str(value)
    if spec.option:
        rendered.options.append(f"{spec.option}={text}")
    else:
        rendered.positional.append(text)
    return rendered
