"""Core data models for flowsmith."""

from flowsmith.models.graph import (
    DEFAULT_PROMPT_TEMPLATE,
    INPUT_PLACEHOLDER,
    Edge,
    Node,
    Position,
    ProcessorData,
    ProcessorKind,
    ProcessorNode,
    TextData,
    TextNode,
)
from flowsmith.models.flow import (
    ExportDocument,
    Flow,
    FlowCreate,
    FlowList,
    FlowSummary,
    FlowUpdate,
    GraphPayload,
)
from flowsmith.models.llm_config import (
    GenerateRequest,
    GenerateResponse,
    LLMConfig,
    LLMProvider,
)

__all__ = [
    # Graph
    "DEFAULT_PROMPT_TEMPLATE",
    "INPUT_PLACEHOLDER",
    "Edge",
    "Node",
    "Position",
    "ProcessorData",
    "ProcessorKind",
    "ProcessorNode",
    "TextData",
    "TextNode",
    # Flows
    "ExportDocument",
    "Flow",
    "FlowCreate",
    "FlowList",
    "FlowSummary",
    "FlowUpdate",
    "GraphPayload",
    # LLM configuration
    "GenerateRequest",
    "GenerateResponse",
    "LLMConfig",
    "LLMProvider",
]
