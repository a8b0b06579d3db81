"""Pure mutation operations over node and edge lists.

Every function returns new lists and leaves its arguments untouched, so a
caller can keep the previous state around (for change detection or to drop
the result of a failed action).
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel

from flowsmith.errors import InvalidConnectionError
from flowsmith.graph.validation import INVALID_CONNECTION_MESSAGE, is_valid_connection
from flowsmith.models.graph import (
    DEFAULT_PROMPT_TEMPLATE,
    Edge,
    Node,
    Position,
    ProcessorData,
    ProcessorKind,
    ProcessorNode,
    TextData,
    TextNode,
)
from flowsmith.utils.identifiers import generate_edge_id, generate_node_id


WELCOME_NODE_ID = "welcome-node"


def welcome_graph() -> tuple[list[Node], list[Edge]]:
    """The seed graph every new flow starts from."""
    node = TextNode(
        id=WELCOME_NODE_ID,
        position=Position(x=250, y=150),
        data=TextData(
            label="Welcome to Flowsmith",
            content=(
                "Drag nodes from the left panel to create your workflow. "
                "Connect nodes to build processing pipelines."
            ),
        ),
    )
    return [node], []


def new_text_node(position: Position | None = None, label: str = "New Text Node") -> TextNode:
    return TextNode(
        id=generate_node_id("text"),
        position=position or Position(),
        data=TextData(label=label, content=""),
    )


def new_processor_node(
    position: Position | None = None,
    kind: ProcessorKind = ProcessorKind.summary,
    prompt_template: str = DEFAULT_PROMPT_TEMPLATE,
) -> ProcessorNode:
    return ProcessorNode(
        id=generate_node_id("processor"),
        position=position or Position(),
        data=ProcessorData(kind=kind, prompt_template=prompt_template),
    )


def get_node(nodes: list[Node], node_id: str) -> Node | None:
    for node in nodes:
        if node.id == node_id:
            return node
    return None


def find_source_nodes(nodes: list[Node], edges: list[Edge], target_id: str) -> list[Node]:
    """Nodes with an edge pointing at ``target_id``, in node order."""
    source_ids = {edge.source for edge in edges if edge.target == target_id}
    return [node for node in nodes if node.id in source_ids]


def find_target_nodes(nodes: list[Node], edges: list[Edge], source_id: str) -> list[Node]:
    """Nodes reached by an edge leaving ``source_id``, in edge order."""
    by_id = {node.id: node for node in nodes}
    targets = []
    for edge in edges:
        if edge.source == source_id and edge.target in by_id:
            targets.append(by_id[edge.target])
    return targets


def add_node(nodes: list[Node], node: Node) -> list[Node]:
    """Append a node. Raises ValueError if the id is already taken."""
    if get_node(nodes, node.id) is not None:
        raise ValueError(f"Duplicate node id: {node.id}")
    return [*nodes, node]


def update_node_data(nodes: list[Node], node_id: str, patch: dict[str, Any]) -> list[Node]:
    """Merge ``patch`` into a node's data payload.

    Patch keys may use any spelling the data model accepts (``promptTemplate``,
    legacy ``type``/``prompt``). The patch is validated on its own first and
    then merged, so a text node cannot pick up processor fields and vice
    versa. An unknown id leaves the list as it is.

    Raises:
        ValueError: a patch key is not a field of the node's data, or a
            value does not validate.
    """
    updated = []
    for node in nodes:
        if node.id == node_id:
            data_cls = type(node.data)
            unknown = sorted(set(patch) - _data_keys(data_cls))
            if unknown:
                raise ValueError(f"Unknown {node.type} node fields: {', '.join(unknown)}")
            changes = data_cls.model_validate(patch).model_dump(exclude_unset=True)
            merged = data_cls.model_validate({**node.data.model_dump(), **changes})
            node = node.model_copy(update={"data": merged})
        updated.append(node)
    return updated


def _data_keys(data_cls: type[BaseModel]) -> set[str]:
    """Field names of a data model plus every alias they accept."""
    keys = set()
    for name, info in data_cls.model_fields.items():
        keys.add(name)
        alias = info.validation_alias
        if isinstance(alias, AliasChoices):
            keys.update(choice for choice in alias.choices if isinstance(choice, str))
        elif isinstance(alias, str):
            keys.add(alias)
    return keys


def move_node(nodes: list[Node], node_id: str, position: Position) -> list[Node]:
    return [
        node.model_copy(update={"position": position}) if node.id == node_id else node
        for node in nodes
    ]


def remove_node(
    nodes: list[Node], edges: list[Edge], node_id: str
) -> tuple[list[Node], list[Edge]]:
    """Remove a node and every edge touching it."""
    remaining_nodes = [node for node in nodes if node.id != node_id]
    remaining_edges = [
        edge for edge in edges if edge.source != node_id and edge.target != node_id
    ]
    return remaining_nodes, remaining_edges


def add_edge(
    nodes: list[Node],
    edges: list[Edge],
    source_id: str,
    target_id: str,
    edge_id: str | None = None,
) -> tuple[list[Edge], Edge]:
    """Connect two nodes.

    Returns the new edge list and the edge. Connecting an already connected
    pair returns the existing edge and an unchanged list.

    Raises:
        InvalidConnectionError: an endpoint is missing or the pair is not
            one text node and one processor node.
    """
    source = get_node(nodes, source_id)
    target = get_node(nodes, target_id)
    if source is None or target is None:
        raise InvalidConnectionError(f"Unknown node in connection: {source_id} -> {target_id}")
    if not is_valid_connection(source, target):
        raise InvalidConnectionError(INVALID_CONNECTION_MESSAGE)

    for edge in edges:
        if edge.source == source_id and edge.target == target_id:
            return list(edges), edge

    edge = Edge(id=edge_id or generate_edge_id(), source=source_id, target=target_id)
    return [*edges, edge], edge


def remove_edge(edges: list[Edge], edge_id: str) -> list[Edge]:
    return [edge for edge in edges if edge.id != edge_id]
