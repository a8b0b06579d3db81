"""Connection rules for the canvas."""

from flowsmith.errors import InvalidConnectionError
from flowsmith.models.graph import Edge, Node

INVALID_CONNECTION_MESSAGE = (
    "Text nodes can only connect to processors, "
    "and processors can only connect to text nodes."
)


def is_valid_connection(source: Node, target: Node) -> bool:
    """True iff one endpoint is a text node and the other a processor.

    Direction does not matter. No cycle or fan-in/fan-out limits apply.
    """
    return {source.type, target.type} == {"text", "processor"}


def validate_graph(nodes: list[Node], edges: list[Edge]) -> None:
    """Check every edge of a whole graph before it is stored.

    Raises:
        InvalidConnectionError: an edge points at a missing node or joins
            two nodes of the same type.
    """
    by_id = {node.id: node for node in nodes}
    for edge in edges:
        source = by_id.get(edge.source)
        target = by_id.get(edge.target)
        if source is None or target is None:
            raise InvalidConnectionError(
                f"Edge {edge.id} references an unknown node: {edge.source} -> {edge.target}"
            )
        if not is_valid_connection(source, target):
            raise InvalidConnectionError(f"Edge {edge.id}: {INVALID_CONNECTION_MESSAGE}")
