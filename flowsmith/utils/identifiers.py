"""ID generation and timestamp utilities."""

import uuid
from datetime import datetime, timezone


def generate_flow_id() -> str:
    """Generate a unique flow ID (UUID4)."""
    return str(uuid.uuid4())


def generate_node_id(node_type: str) -> str:
    """Generate a node ID prefixed with its type, e.g. ``text_3f2a...``.

    Only needs to be unique within a flow.
    """
    return f"{node_type}_{uuid.uuid4().hex}"


def generate_edge_id() -> str:
    """Generate an edge ID."""
    return f"edge_{uuid.uuid4().hex}"


def generate_config_id() -> str:
    """Generate a unique LLM config ID (UUID4)."""
    return str(uuid.uuid4())


def utc_timestamp() -> str:
    """Generate an ISO8601 UTC timestamp; fixed width, so strings sort by time."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")
