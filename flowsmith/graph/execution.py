"""Processor execution.

Running a processor gathers the text of every node wired into it, fills the
processor's prompt template, sends the prompt to the text-generation service
and writes the answer into the downstream text node, creating that node (and
the edge to it) when the processor has no output yet.

Nothing here mutates the caller's lists. If generation fails the exception
propagates before any updated node list exists.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from flowsmith.errors import InvalidProcessorError, NoInputsError
from flowsmith.graph.operations import find_source_nodes, find_target_nodes, get_node
from flowsmith.models.graph import (
    Edge,
    Node,
    Position,
    ProcessorNode,
    TextData,
    TextNode,
)
from flowsmith.utils.identifiers import generate_edge_id, generate_node_id

logger = logging.getLogger(__name__)

GenerateFn = Callable[[str], Awaitable[str]]

# {{input}} and {{ input }}
_PLACEHOLDER_RE = re.compile(r"\{\{\s*input\s*\}\}")

OUTPUT_OFFSET_X = 300.0


@dataclass
class ExecutionResult:
    """Outcome of a processor run.

    ``nodes`` is the full node list with the output node written. ``new_edge``
    is set only when an output node had to be created; the caller merges it
    into its own edge list.
    """

    nodes: list[Node]
    output_node_id: str
    prompt: str
    result: str
    new_edge: Edge | None = None
    touched_ids: list[str] = field(default_factory=list)


def node_content(node: Node) -> str:
    if isinstance(node.data, TextData):
        return node.data.content or ""
    return ""


def node_label(node: Node) -> str:
    if isinstance(node.data, TextData) and node.data.label:
        return node.data.label
    return node.id


def gather_inputs(sources: list[Node]) -> str:
    """Concatenate upstream content, each chunk headed by its node's label."""
    chunks = [f"--- {node_label(node)} ---\n{node_content(node)}" for node in sources]
    return "\n\n".join(chunks)


def substitute_input(template: str, block: str) -> str:
    """Replace every input placeholder in ``template`` with ``block``."""
    return _PLACEHOLDER_RE.sub(lambda _: block, template)


def build_prompt(nodes: list[Node], edges: list[Edge], processor_id: str) -> str:
    """Resolve the prompt a processor would send, without calling anything.

    Raises:
        InvalidProcessorError: the id is not a processor node.
        NoInputsError: no edge targets the processor.
    """
    processor = _resolve_processor(nodes, processor_id)
    sources = find_source_nodes(nodes, edges, processor_id)
    if not sources:
        raise NoInputsError("Processor has no input connections")
    return substitute_input(processor.data.prompt_template, gather_inputs(sources))


def _resolve_processor(nodes: list[Node], processor_id: str) -> ProcessorNode:
    node = get_node(nodes, processor_id)
    if not isinstance(node, ProcessorNode):
        raise InvalidProcessorError(f"Invalid processor node: {processor_id}")
    return node


def _output_node(
    nodes: list[Node], edges: list[Edge], processor: ProcessorNode
) -> tuple[TextNode, Edge | None]:
    for target in find_target_nodes(nodes, edges, processor.id):
        if isinstance(target, TextNode):
            return target, None

    node = TextNode(
        id=generate_node_id("text"),
        position=Position(
            x=processor.position.x + OUTPUT_OFFSET_X,
            y=processor.position.y,
        ),
        data=TextData(label=f"Output: {processor.data.kind.value}", content=""),
    )
    edge = Edge(id=generate_edge_id(), source=processor.id, target=node.id)
    return node, edge


async def execute_processor(
    nodes: list[Node],
    edges: list[Edge],
    processor_id: str,
    generate: GenerateFn,
) -> ExecutionResult:
    """Run one processor node against the text-generation service.

    Args:
        nodes: snapshot of the graph's nodes
        edges: snapshot of the graph's edges
        processor_id: id of the processor node to run
        generate: coroutine taking the final prompt and returning the text

    Returns:
        ExecutionResult holding the full updated node list and, if the
        output node was created, the edge connecting it.
    """
    processor = _resolve_processor(nodes, processor_id)
    prompt = build_prompt(nodes, edges, processor_id)
    output, new_edge = _output_node(nodes, edges, processor)

    logger.info("executing processor %s (%s)", processor_id, processor.data.kind.value)
    result = await generate(prompt)

    written = output.model_copy(
        update={"data": output.data.model_copy(update={"content": result})}
    )
    if new_edge is None:
        updated = [written if node.id == written.id else node for node in nodes]
    else:
        updated = [*nodes, written]

    return ExecutionResult(
        nodes=updated,
        output_node_id=written.id,
        prompt=prompt,
        result=result,
        new_edge=new_edge,
        touched_ids=[written.id],
    )


def merge_execution_result(
    live_nodes: list[Node],
    live_edges: list[Edge],
    result: ExecutionResult,
) -> tuple[list[Node], list[Edge]]:
    """Fold a finished run into the graph as it is now.

    Only the nodes the run touched are taken from the result (last write wins
    per node id); edits made to other nodes while the call was in flight are
    kept. A touched node that is new is appended. The new edge is added only
    if both of its endpoints still exist.
    """
    touched = {node.id: node for node in result.nodes if node.id in result.touched_ids}

    merged: list[Node] = []
    for node in live_nodes:
        merged.append(touched.pop(node.id, node))
    if result.new_edge is not None:
        merged.extend(touched.values())

    edges = list(live_edges)
    if result.new_edge is not None:
        ids = {node.id for node in merged}
        edge = result.new_edge
        if edge.source in ids and edge.target in ids:
            edges.append(edge)
    return merged, edges
