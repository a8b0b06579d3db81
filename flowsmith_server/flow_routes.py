"""API routes for flows: CRUD, graph saves, export and import."""

import logging

from fastapi import APIRouter, Body, Depends

from flowsmith.graph.operations import welcome_graph
from flowsmith.graph.transfer import build_export_document, imported_name, parse_export_document
from flowsmith.graph.validation import validate_graph
from flowsmith.models.flow import (
    ExportDocument,
    Flow,
    FlowCreate,
    FlowList,
    FlowSummary,
    FlowUpdate,
    GraphPayload,
)
from flowsmith_server import flow_db
from flowsmith_server.auth import require_user_id

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/flows")
def list_flows(user_id: str = Depends(require_user_id)) -> FlowList:
    """list the caller's flows, most recently updated first."""
    return FlowList(flows=flow_db.list_flows(user_id))


@router.post("/flows")
def create_flow(
    request: FlowCreate | None = None,
    user_id: str = Depends(require_user_id),
) -> Flow:
    """create a flow seeded with the welcome node."""
    request = request or FlowCreate()
    nodes, edges = welcome_graph()
    flow = flow_db.create_flow(
        user_id,
        name=request.name,
        description=request.description,
        nodes=nodes,
        edges=edges,
    )
    logger.info("user %s created flow %s", user_id, flow.id)
    return flow


@router.post("/flows/import")
def import_flow(
    payload: dict = Body(...),
    user_id: str = Depends(require_user_id),
) -> Flow:
    """create a new flow from an export document."""
    document = parse_export_document(payload)
    flow = flow_db.create_flow(
        user_id,
        name=imported_name(document.name),
        nodes=document.nodes,
        edges=document.edges,
    )
    logger.info("user %s imported flow %s", user_id, flow.id)
    return flow


@router.get("/flows/{flow_id}")
def get_flow(flow_id: str, user_id: str = Depends(require_user_id)) -> Flow:
    return flow_db.get_flow(flow_id, user_id)


@router.patch("/flows/{flow_id}")
def update_flow(
    flow_id: str,
    request: FlowUpdate,
    user_id: str = Depends(require_user_id),
) -> Flow:
    """rename or re-describe a flow."""
    update_data = request.model_dump(exclude_unset=True)
    return flow_db.update_flow(flow_id, user_id, **update_data)


@router.delete("/flows/{flow_id}")
def delete_flow(flow_id: str, user_id: str = Depends(require_user_id)) -> dict:
    flow_db.delete_flow(flow_id, user_id)
    logger.info("user %s deleted flow %s", user_id, flow_id)
    return {"deleted": flow_id}


@router.put("/flows/{flow_id}/graph")
def save_graph(
    flow_id: str,
    request: GraphPayload,
    user_id: str = Depends(require_user_id),
) -> FlowSummary:
    """overwrite the flow's nodes and edges.

    Uses PUT for idempotent saves; auto-save calls this repeatedly.
    Dangling or same-type edges are rejected before anything is written.
    """
    validate_graph(request.nodes, request.edges)
    return flow_db.save_graph(flow_id, user_id, request.nodes, request.edges)


@router.get("/flows/{flow_id}/export")
def export_flow(flow_id: str, user_id: str = Depends(require_user_id)) -> ExportDocument:
    return build_export_document(flow_db.get_flow(flow_id, user_id))
