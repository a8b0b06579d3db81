"""Graph operations, connection rules, execution and serialization."""

from flowsmith.graph.execution import (
    ExecutionResult,
    build_prompt,
    execute_processor,
    merge_execution_result,
)
from flowsmith.graph.operations import (
    add_edge,
    add_node,
    find_source_nodes,
    find_target_nodes,
    get_node,
    move_node,
    new_processor_node,
    new_text_node,
    remove_edge,
    remove_node,
    update_node_data,
    welcome_graph,
)
from flowsmith.graph.serialization import deserialize_graph, serialize_graph
from flowsmith.graph.transfer import build_export_document, parse_export_document
from flowsmith.graph.validation import is_valid_connection, validate_graph

__all__ = [
    "ExecutionResult",
    "build_prompt",
    "execute_processor",
    "merge_execution_result",
    "add_edge",
    "add_node",
    "find_source_nodes",
    "find_target_nodes",
    "get_node",
    "move_node",
    "new_processor_node",
    "new_text_node",
    "remove_edge",
    "remove_node",
    "update_node_data",
    "welcome_graph",
    "deserialize_graph",
    "serialize_graph",
    "build_export_document",
    "parse_export_document",
    "is_valid_connection",
    "validate_graph",
]
