"""Serialization of nodes and edges.

The same canonical form is used for the stored blobs and for auto-save
change detection, so two graphs serialize to the same string iff they are
equal.
"""

import json

from pydantic import ValidationError

from flowsmith.errors import InvalidFormatError
from flowsmith.models.graph import Edge, EdgeListAdapter, Node, NodeListAdapter


def dump_nodes(nodes: list[Node]) -> list[dict]:
    return NodeListAdapter.dump_python(nodes, mode="json")


def dump_edges(edges: list[Edge]) -> list[dict]:
    return EdgeListAdapter.dump_python(edges, mode="json")


def load_nodes(raw: list | str) -> list[Node]:
    """Parse nodes from a JSON string or already-decoded list."""
    try:
        if isinstance(raw, str):
            return NodeListAdapter.validate_json(raw)
        return NodeListAdapter.validate_python(raw)
    except ValidationError as exc:
        raise InvalidFormatError(f"Invalid nodes: {exc}") from exc


def load_edges(raw: list | str) -> list[Edge]:
    """Parse edges from a JSON string or already-decoded list."""
    try:
        if isinstance(raw, str):
            return EdgeListAdapter.validate_json(raw)
        return EdgeListAdapter.validate_python(raw)
    except ValidationError as exc:
        raise InvalidFormatError(f"Invalid edges: {exc}") from exc


def _canonical(value) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def serialize_nodes(nodes: list[Node]) -> str:
    return _canonical(dump_nodes(nodes))


def serialize_edges(edges: list[Edge]) -> str:
    return _canonical(dump_edges(edges))


def serialize_graph(nodes: list[Node], edges: list[Edge]) -> str:
    """Serialize a whole graph to one canonical JSON string."""
    return _canonical({"nodes": dump_nodes(nodes), "edges": dump_edges(edges)})


def deserialize_graph(payload: str) -> tuple[list[Node], list[Edge]]:
    """Inverse of serialize_graph."""
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise InvalidFormatError(f"Graph is not valid JSON: {exc}") from exc
    if not isinstance(data, dict) or "nodes" not in data or "edges" not in data:
        raise InvalidFormatError("Graph must contain nodes and edges")
    return load_nodes(data["nodes"]), load_edges(data["edges"])
