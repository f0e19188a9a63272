"""
kubeguard HTTP data models.

These models define the request and response bodies of the tool-call
API. Argument values are passed through untouched; the gateway validates
them against the per-operation grammar.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from kubeguard.modules.errors import ErrorKind

# Request Models (API Input)


class ToolCallRequest(BaseModel):
    """Request to invoke one tool operation."""

    operation: str = Field(
        ...,
        description="Operation name, e.g. 'get' or 'rollout-restart'",
        min_length=1,
        max_length=64,
        pattern="^[a-z][a-z0-9-]*$",
    )
    arguments: Dict[str, Any] = Field(
        default_factory=dict, description="Operation arguments, validated by the gateway"
    )

    @field_validator("arguments")
    @classmethod
    def validate_argument_keys(cls, v):
        """Argument keys are identifiers, never flags."""
        for key in v:
            if not key or key.startswith("-"):
                raise ValueError(f"Invalid argument key: '{key}'")
        return v


# Response Models (API Output)


class ToolCallResponse(BaseModel):
    """Result of a tool invocation."""

    is_error: bool = Field(..., description="Whether the call failed")
    text: str = Field(..., description="Tool output, or error text when is_error is set")
    error_kind: Optional[ErrorKind] = Field(None, description="Failure classification")
    stage: str = Field(..., description="Last pipeline stage the call passed")


class OperationDescription(BaseModel):
    """One operation of a tool."""

    name: str
    description: str = ""
    required_level: str
    permitted: bool


class ToolDescription(BaseModel):
    """An enabled tool and its operations."""

    name: str
    operations: List[OperationDescription]


class ToolListResponse(BaseModel):
    """Enabled tools and the server's access grant."""

    access_level: str
    allowed_namespaces: List[str]
    tools: List[ToolDescription]
