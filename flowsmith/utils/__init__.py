"""Utility functions for flowsmith."""

from flowsmith.utils.identifiers import (
    generate_flow_id,
    generate_node_id,
    generate_edge_id,
    generate_config_id,
    utc_timestamp,
)

__all__ = [
    "generate_flow_id",
    "generate_node_id",
    "generate_edge_id",
    "generate_config_id",
    "utc_timestamp",
]
