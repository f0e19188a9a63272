"""
API Module - Black Box Interface

Purpose: Request and response models of the HTTP protocol adapter
Interface: ToolCallRequest, ToolCallResponse, ToolDescription, ToolListResponse
Hidden: Field constraints
"""

from .models import (
    OperationDescription,
    ToolCallRequest,
    ToolCallResponse,
    ToolDescription,
    ToolListResponse,
)

__all__ = [
    "OperationDescription",
    "ToolCallRequest",
    "ToolCallResponse",
    "ToolDescription",
    "ToolListResponse",
]
