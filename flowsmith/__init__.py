"""Flowsmith - visual text-processing pipelines backed by language models."""

from flowsmith.errors import (
    AuthRequiredError,
    FlowsmithError,
    ForbiddenError,
    InvalidConnectionError,
    InvalidFormatError,
    InvalidProcessorError,
    NoInputsError,
    NotFoundError,
    UpstreamServiceError,
)
from flowsmith.models.flow import ExportDocument, Flow, FlowSummary
from flowsmith.models.graph import (
    Edge,
    Node,
    Position,
    ProcessorData,
    ProcessorKind,
    ProcessorNode,
    TextData,
    TextNode,
)
from flowsmith.graph.execution import execute_processor
from flowsmith.graph.validation import is_valid_connection
from flowsmith.sdk.editor import EditorSession
from flowsmith.sdk.client import FlowClient
from flowsmith.sdk.generation import TextGenerationClient
from flowsmith.sdk.session import SessionContext

__all__ = [
    # Errors
    "AuthRequiredError",
    "FlowsmithError",
    "ForbiddenError",
    "InvalidConnectionError",
    "InvalidFormatError",
    "InvalidProcessorError",
    "NoInputsError",
    "NotFoundError",
    "UpstreamServiceError",
    # Models
    "ExportDocument",
    "Flow",
    "FlowSummary",
    "Edge",
    "Node",
    "Position",
    "ProcessorData",
    "ProcessorKind",
    "ProcessorNode",
    "TextData",
    "TextNode",
    # High-level APIs
    "execute_processor",
    "is_valid_connection",
    "EditorSession",
    "FlowClient",
    "TextGenerationClient",
    "SessionContext",
]
