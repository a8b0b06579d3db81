"""Persistence client for the flowsmith server.

All calls are owner-scoped: the bearer token in the session decides whose
flows are visible, and the server enforces it.

    client = FlowClient("http://localhost:8000", session)
    flows = await client.list_flows()
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from flowsmith.errors import UpstreamServiceError, error_for_status
from flowsmith.graph.serialization import dump_edges, dump_nodes
from flowsmith.models.flow import ExportDocument, Flow, FlowList, FlowSummary
from flowsmith.models.graph import Edge, Node
from flowsmith.sdk.session import SessionContext

logger = logging.getLogger(__name__)


class ApiClient:
    """Thin async HTTP wrapper that maps error responses to FlowsmithError."""

    def __init__(
        self,
        base_url: str,
        session: SessionContext,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            base_url: Base URL of the flowsmith server
            session: the caller's session context
            timeout: HTTP request timeout in seconds
            transport: optional httpx transport (tests mount the app here)
        """
        self.base_url = base_url.rstrip("/")
        self.session = session
        self.timeout = timeout
        self._transport = transport

    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        url = f"{self.base_url}/api{path}"
        headers = self.session.auth_headers()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method, url, json=json, headers=headers)
        except httpx.RequestError as e:
            raise UpstreamServiceError(
                f"Failed to connect to server at {self.base_url}: {e}"
            ) from e

        if response.is_error:
            message, code = _error_details(response)
            raise error_for_status(response.status_code, message, code)
        return response.json()


def _error_details(response: httpx.Response) -> tuple[str, str | None]:
    """Message and error code from an error response body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase, None
    if isinstance(body, dict):
        code = body.get("code") if isinstance(body.get("code"), str) else None
        detail = body.get("error") or body.get("detail")
        if detail:
            return (detail if isinstance(detail, str) else str(detail)), code
        return response.reason_phrase, code
    return response.reason_phrase, None


class FlowClient(ApiClient):
    """CRUD over the caller's flows."""

    async def list_flows(self) -> list[FlowSummary]:
        """List the caller's flows, most recently updated first."""
        data = await self._request("GET", "/flows")
        return FlowList.model_validate(data).flows

    async def create_flow(self, name: str = "New Flow", description: str | None = None) -> Flow:
        """Create a flow seeded with the welcome node."""
        data = await self._request("POST", "/flows", json={"name": name, "description": description})
        return Flow.model_validate(data)

    async def get_flow(self, flow_id: str) -> Flow:
        data = await self._request("GET", f"/flows/{flow_id}")
        return Flow.model_validate(data)

    async def update_flow(self, flow_id: str, patch: dict[str, Any]) -> Flow:
        """Rename or re-describe a flow. Only name/description are accepted."""
        data = await self._request("PATCH", f"/flows/{flow_id}", json=patch)
        return Flow.model_validate(data)

    async def delete_flow(self, flow_id: str) -> None:
        await self._request("DELETE", f"/flows/{flow_id}")

    async def save_graph(self, flow_id: str, nodes: list[Node], edges: list[Edge]) -> FlowSummary:
        """Overwrite the flow's nodes and edges and bump its updated_at."""
        data = await self._request(
            "PUT",
            f"/flows/{flow_id}/graph",
            json={"nodes": dump_nodes(nodes), "edges": dump_edges(edges)},
        )
        logger.debug("saved graph for flow %s (%d nodes, %d edges)", flow_id, len(nodes), len(edges))
        return FlowSummary.model_validate(data)

    async def export_flow(self, flow_id: str) -> ExportDocument:
        data = await self._request("GET", f"/flows/{flow_id}/export")
        return ExportDocument.model_validate(data)

    async def import_flow(self, document: ExportDocument | dict) -> Flow:
        """Create a new flow from an export document."""
        if isinstance(document, ExportDocument):
            document = document.model_dump(mode="json")
        data = await self._request("POST", "/flows/import", json=document)
        return Flow.model_validate(data)
