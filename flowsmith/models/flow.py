"""Data model for persisted flows.

A flow is a named, owned graph of nodes and edges. It is the unit of
persistence and of access control.
"""

from pydantic import AliasChoices, BaseModel, Field

from flowsmith.models.graph import Edge, Node


class Flow(BaseModel):
    """the full flow record as stored by the server."""

    id: str
    owner_id: str
    name: str
    description: str | None = None
    nodes: list[Node] = []
    edges: list[Edge] = []
    created_at: str
    updated_at: str


class FlowSummary(BaseModel):
    """a flow without its graph, as returned by listings."""

    id: str
    name: str
    description: str | None = None
    created_at: str
    updated_at: str


class FlowList(BaseModel):
    flows: list[FlowSummary]


class FlowCreate(BaseModel):
    """Request model for creating a flow."""

    name: str = "New Flow"
    description: str | None = None


class FlowUpdate(BaseModel):
    """Request model for renaming or re-describing a flow."""

    name: str | None = None
    description: str | None = None


class GraphPayload(BaseModel):
    """Request model for saving a flow's graph."""

    nodes: list[Node]
    edges: list[Edge]


class ExportDocument(BaseModel):
    """file format used to export a flow and import it again."""

    model_config = {"populate_by_name": True}

    name: str
    nodes: list[Node]
    edges: list[Edge]
    exported_at: str | None = Field(
        default=None,
        validation_alias=AliasChoices("exported_at", "exportedAt"),
    )
