"""SQLite storage for flows.

Every query that reads or writes one flow carries the owner in its ``where``
clause, so ownership is enforced here rather than by callers. When such a
query misses, the miss is classified as not-found or forbidden.
"""

import logging
import os
import sqlite3
from pathlib import Path

from flowsmith.errors import ForbiddenError, NotFoundError
from flowsmith.graph.serialization import load_edges, load_nodes, serialize_edges, serialize_nodes
from flowsmith.models.flow import Flow, FlowSummary
from flowsmith.models.graph import Edge, Node
from flowsmith.utils.identifiers import generate_flow_id, utc_timestamp

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path(__file__).parent / "data" / "flowsmith.db"


def db_path() -> Path:
    """sqlite file location; FLOW_DB_PATH is read on every call."""
    return Path(os.getenv("FLOW_DB_PATH", str(DEFAULT_DB_PATH)))


def connect() -> sqlite3.Connection:
    path = db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db() -> None:
    with connect() as conn:
        conn.execute(
            """
            create table if not exists flows (
                flow_id text primary key,
                owner_id text not null,
                name text not null,
                description text,
                nodes_json text not null,
                edges_json text not null,
                created_at text not null,
                updated_at text not null
            )
            """
        )
        conn.execute(
            """
            create index if not exists idx_flows_owner_updated
            on flows(owner_id, updated_at)
            """
        )
        conn.commit()


def _row_to_flow(row: sqlite3.Row) -> Flow:
    return Flow(
        id=row["flow_id"],
        owner_id=row["owner_id"],
        name=row["name"],
        description=row["description"],
        nodes=load_nodes(row["nodes_json"]),
        edges=load_edges(row["edges_json"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_summary(row: sqlite3.Row) -> FlowSummary:
    return FlowSummary(
        id=row["flow_id"],
        name=row["name"],
        description=row["description"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _raise_miss(conn: sqlite3.Connection, flow_id: str, owner_id: str) -> None:
    row = conn.execute(
        "select owner_id from flows where flow_id = ?",
        (flow_id,),
    ).fetchone()
    if not row:
        raise NotFoundError(f"Flow not found: {flow_id}")
    logger.warning("user %s denied access to flow %s", owner_id, flow_id)
    raise ForbiddenError(f"Flow not accessible: {flow_id}")


def list_flows(owner_id: str) -> list[FlowSummary]:
    """the caller's flows, most recently updated first."""
    with connect() as conn:
        rows = conn.execute(
            """
            select flow_id, name, description, created_at, updated_at
            from flows
            where owner_id = ?
            order by updated_at desc
            """,
            (owner_id,),
        ).fetchall()
    return [_row_to_summary(row) for row in rows]


def create_flow(
    owner_id: str,
    name: str,
    description: str | None = None,
    nodes: list[Node] | None = None,
    edges: list[Edge] | None = None,
) -> Flow:
    now = utc_timestamp()
    flow = Flow(
        id=generate_flow_id(),
        owner_id=owner_id,
        name=name,
        description=description,
        nodes=nodes or [],
        edges=edges or [],
        created_at=now,
        updated_at=now,
    )
    with connect() as conn:
        conn.execute(
            """
            insert into flows (
                flow_id, owner_id, name, description,
                nodes_json, edges_json, created_at, updated_at
            )
            values (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                flow.id,
                flow.owner_id,
                flow.name,
                flow.description,
                serialize_nodes(flow.nodes),
                serialize_edges(flow.edges),
                flow.created_at,
                flow.updated_at,
            ),
        )
        conn.commit()
    return flow


def get_flow(flow_id: str, owner_id: str) -> Flow:
    with connect() as conn:
        row = conn.execute(
            "select * from flows where flow_id = ? and owner_id = ?",
            (flow_id, owner_id),
        ).fetchone()
        if not row:
            _raise_miss(conn, flow_id, owner_id)
    return _row_to_flow(row)


def update_flow(
    flow_id: str,
    owner_id: str,
    name: str | None = None,
    description: str | None = None,
) -> Flow:
    """rename or re-describe a flow; None leaves a field as it is."""
    with connect() as conn:
        cursor = conn.execute(
            """
            update flows
            set name = coalesce(?, name),
                description = coalesce(?, description),
                updated_at = ?
            where flow_id = ? and owner_id = ?
            """,
            (name, description, utc_timestamp(), flow_id, owner_id),
        )
        if cursor.rowcount == 0:
            _raise_miss(conn, flow_id, owner_id)
        conn.commit()
    return get_flow(flow_id, owner_id)


def save_graph(flow_id: str, owner_id: str, nodes: list[Node], edges: list[Edge]) -> FlowSummary:
    """overwrite a flow's nodes and edges. Last write wins."""
    with connect() as conn:
        cursor = conn.execute(
            """
            update flows
            set nodes_json = ?, edges_json = ?, updated_at = ?
            where flow_id = ? and owner_id = ?
            """,
            (serialize_nodes(nodes), serialize_edges(edges), utc_timestamp(), flow_id, owner_id),
        )
        if cursor.rowcount == 0:
            _raise_miss(conn, flow_id, owner_id)
        conn.commit()
        row = conn.execute(
            """
            select flow_id, name, description, created_at, updated_at
            from flows
            where flow_id = ?
            """,
            (flow_id,),
        ).fetchone()
    return _row_to_summary(row)


def delete_flow(flow_id: str, owner_id: str) -> None:
    with connect() as conn:
        cursor = conn.execute(
            "delete from flows where flow_id = ? and owner_id = ?",
            (flow_id, owner_id),
        )
        if cursor.rowcount == 0:
            _raise_miss(conn, flow_id, owner_id)
        conn.commit()
