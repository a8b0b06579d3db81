"""Editor session: the state and actions behind the canvas.

The session owns the in-memory graph of the open flow. Every user action is
a method here; each one either succeeds and reports it, or fails, reports a
notification and leaves the graph exactly as it was. Auto-save follows the
graph in the background.

    session = EditorSession(client, generator, SessionContext(user_id, token))
    await session.new_flow()
    text = session.add_text_node(Position(x=0, y=0))
    ...
    await session.close()
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from flowsmith.adapters.notifications import (
    LoggingSink,
    NotificationLevel,
    NotificationSink,
)
from flowsmith.errors import FlowsmithError, ForbiddenError, NotFoundError
from flowsmith.graph import operations
from flowsmith.graph.execution import GenerateFn, execute_processor, merge_execution_result
from flowsmith.graph.transfer import read_export_file, write_export_file
from flowsmith.models.flow import Flow
from flowsmith.models.graph import Edge, Node, Position, ProcessorKind
from flowsmith.sdk.autosave import (
    DEFAULT_DEBOUNCE_SECONDS,
    DEFAULT_INTERVAL_SECONDS,
    AutoSaveController,
)
from flowsmith.sdk.client import FlowClient
from flowsmith.sdk.session import SessionContext

logger = logging.getLogger(__name__)

FLOW_ID_PARAM = "flowId"


class EditorSession:
    """One user's editing session over one flow at a time."""

    def __init__(
        self,
        client: FlowClient,
        generate: GenerateFn,
        context: SessionContext,
        notifier: NotificationSink | None = None,
        debounce: float = DEFAULT_DEBOUNCE_SECONDS,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        autostart: bool = True,
    ) -> None:
        """
        Args:
            client: persistence client for the caller's flows
            generate: coroutine turning a prompt into generated text
            context: the caller's session context; its flow_id tracks the open flow
            notifier: where user-facing notifications go (defaults to the log)
            debounce: seconds to wait after an edit before auto-saving
            interval: seconds between backstop auto-saves
            autostart: run the auto-save task as soon as a flow is opened
        """
        self.client = client
        self.context = context
        self.notifier = notifier or LoggingSink()
        self.nodes: list[Node] = []
        self.edges: list[Edge] = []
        self.flow: Flow | None = None
        self.autosave: AutoSaveController | None = None

        self._generate = generate
        self._debounce = debounce
        self._interval = interval
        self._autostart = autostart

    @property
    def flow_id(self) -> str | None:
        return self.context.flow_id

    # --- Flow lifecycle ---

    async def new_flow(self, name: str = "New Flow") -> Flow | None:
        try:
            flow = await self.client.create_flow(name)
        except FlowsmithError as exc:
            self._fail("Error Creating Flow", exc)
            return None
        await self._open(flow)
        self._notify("New Flow Created", "You're now working on a new flow")
        return flow

    async def select_flow(self, flow_id: str) -> Flow | None:
        try:
            flow = await self.client.get_flow(flow_id)
        except FlowsmithError as exc:
            self._fail("Error Loading Flow", exc)
            return None
        await self._open(flow)
        self._notify("Flow Loaded", f'"{flow.name}" has been loaded')
        return flow

    async def open_latest(self) -> Flow | None:
        """Open the most recently updated flow, or create one if there is none."""
        try:
            flows = await self.client.list_flows()
        except FlowsmithError as exc:
            self._fail("Error Loading Flows", exc)
            return None
        if flows:
            return await self.select_flow(flows[0].id)
        return await self.new_flow()

    async def open_url(self, url: str) -> Flow | None:
        """Open the flow named by the URL's flowId parameter.

        A missing parameter, an unknown flow or one owned by someone else
        leaves the session with no flow selected, without a notification.
        """
        flow_id = flow_id_from_url(url)
        if not flow_id:
            return None
        try:
            flow = await self.client.get_flow(flow_id)
        except (ForbiddenError, NotFoundError) as exc:
            logger.info("flow %s from url not opened: %s", flow_id, exc.message)
            await self._close_flow()
            return None
        except FlowsmithError as exc:
            self._fail("Error Loading Flow", exc)
            return None
        await self._open(flow)
        return flow

    def share_url(self, base_url: str) -> str:
        """``base_url`` with the open flow's id in the query string."""
        return url_with_flow_id(base_url, self.flow_id)

    async def save(self) -> bool:
        """Save the graph now, whether or not it changed."""
        if self.autosave is None:
            self._notify(
                "No Flow Selected",
                "Please create a new flow or select an existing one",
                NotificationLevel.destructive,
            )
            return False
        self.autosave.notify_change(immediate=True)
        saved = await self.autosave.save(trigger="manual")
        if saved:
            self._notify("Flow Saved", "Your flow has been saved successfully")
        return saved

    async def rename_flow(self, name: str) -> Flow | None:
        if self.flow is None:
            return None
        try:
            flow = await self.client.update_flow(self.flow.id, {"name": name})
        except FlowsmithError as exc:
            self._fail("Error Renaming Flow", exc)
            return None
        self.flow = flow
        return flow

    async def delete_flow(self, flow_id: str | None = None) -> bool:
        flow_id = flow_id or self.flow_id
        if not flow_id:
            return False
        closing = flow_id == self.flow_id
        if closing and self.autosave is not None:
            # no saves may land on a flow that is being deleted
            await self.autosave.stop(flush=False)
        try:
            await self.client.delete_flow(flow_id)
        except FlowsmithError as exc:
            if closing and self.autosave is not None and self._autostart:
                self.autosave.start()
            self._fail("Error Deleting Flow", exc)
            return False
        if closing:
            await self._close_flow(flush=False)
        self._notify("Flow Deleted", "The flow has been deleted")
        return True

    async def export_to_file(self, path: Path | str) -> Path | None:
        if self.flow is None:
            return None
        try:
            await self._flush()
            document = await self.client.export_flow(self.flow.id)
            written = write_export_file(document, path)
        except (FlowsmithError, OSError) as exc:
            self._fail("Error Exporting Flow", exc)
            return None
        self._notify("Flow Exported", f"Saved to {written}")
        return written

    async def import_from_file(self, path: Path | str) -> Flow | None:
        """Create a new flow from an export file and open it."""
        try:
            document = read_export_file(path)
            flow = await self.client.import_flow(document)
        except FlowsmithError as exc:
            self._fail("Error Importing Flow", exc)
            return None
        await self._open(flow)
        self._notify("Flow Imported", f'"{flow.name}" has been imported')
        return flow

    async def close(self) -> None:
        await self._close_flow()

    # --- Graph edits ---

    def add_text_node(self, position: Position | None = None, label: str = "New Text Node") -> Node:
        node = operations.new_text_node(position, label=label)
        self._set_nodes(operations.add_node(self.nodes, node))
        return node

    def add_processor_node(
        self,
        position: Position | None = None,
        kind: ProcessorKind = ProcessorKind.summary,
        prompt_template: str | None = None,
    ) -> Node:
        if prompt_template is None:
            node = operations.new_processor_node(position, kind=kind)
        else:
            node = operations.new_processor_node(position, kind=kind, prompt_template=prompt_template)
        self._set_nodes(operations.add_node(self.nodes, node))
        return node

    def update_node(self, node_id: str, patch: dict[str, Any]) -> bool:
        if operations.get_node(self.nodes, node_id) is None:
            return False
        try:
            nodes = operations.update_node_data(self.nodes, node_id, patch)
        except ValueError as exc:
            self._notify("Invalid Node Data", str(exc), NotificationLevel.destructive)
            return False
        self._set_nodes(nodes)
        self._notify("Changes Saved", "Your node changes have been applied.")
        return True

    def move_node(self, node_id: str, position: Position) -> None:
        self._set_nodes(operations.move_node(self.nodes, node_id, position))

    def delete_node(self, node_id: str) -> None:
        self.nodes, self.edges = operations.remove_node(self.nodes, self.edges, node_id)
        self._changed(immediate=True)
        self._notify("Node Deleted", "The node and its connections have been removed.")

    def connect(self, source_id: str, target_id: str) -> Edge | None:
        try:
            edges, edge = operations.add_edge(self.nodes, self.edges, source_id, target_id)
        except FlowsmithError as exc:
            self._notify("Invalid Connection", exc.message, NotificationLevel.destructive)
            return None
        self.edges = edges
        self._changed()
        return edge

    def delete_edge(self, edge_id: str) -> None:
        self.edges = operations.remove_edge(self.edges, edge_id)
        self._changed(immediate=True)
        self._notify("Connection Deleted", "The connection has been removed.")

    # --- Processing ---

    async def execute_processor(self, processor_id: str) -> str | None:
        """Run a processor and merge its output into the live graph.

        Returns the generated text, or None if the run failed.
        """
        self._notify("Processor Running", "Processing your data...")
        nodes, edges = list(self.nodes), list(self.edges)
        try:
            result = await execute_processor(nodes, edges, processor_id, self._generate)
        except FlowsmithError as exc:
            self._fail("Processing Failed", exc)
            return None

        self.nodes, self.edges = merge_execution_result(self.nodes, self.edges, result)
        self._changed()
        self._notify("Processing Complete", "Your data has been successfully processed.")
        return result.result

    # --- internals ---

    async def _open(self, flow: Flow) -> None:
        await self._close_flow()
        self.flow = flow
        self.context.flow_id = flow.id
        self.nodes = list(flow.nodes)
        self.edges = list(flow.edges)
        self.autosave = AutoSaveController(
            self.client,
            flow.id,
            lambda: (self.nodes, self.edges),
            notifier=self.notifier,
            debounce=self._debounce,
            interval=self._interval,
        )
        self.autosave.mark_saved(self.nodes, self.edges)
        if self._autostart:
            self.autosave.start()

    async def _close_flow(self, flush: bool = True) -> None:
        if self.autosave is not None:
            await self.autosave.stop(flush=flush)
        self.autosave = None
        self.flow = None
        self.context.flow_id = None
        self.nodes = []
        self.edges = []

    async def _flush(self) -> None:
        if self.autosave is not None and self.autosave.has_unsaved_changes():
            await self.autosave.save(trigger="flush")

    def _set_nodes(self, nodes: list[Node]) -> None:
        self.nodes = nodes
        self._changed()

    def _changed(self, immediate: bool = False) -> None:
        if self.autosave is not None:
            self.autosave.notify_change(immediate=immediate)

    def _notify(
        self,
        title: str,
        description: str,
        level: NotificationLevel = NotificationLevel.info,
    ) -> None:
        self.notifier.notify(title, description, level)

    def _fail(self, title: str, exc: Exception) -> None:
        message = exc.message if isinstance(exc, FlowsmithError) else str(exc)
        logger.warning("%s: %s", title, message)
        self._notify(title, message, NotificationLevel.destructive)


def flow_id_from_url(url: str) -> str | None:
    values = parse_qs(urlparse(url).query).get(FLOW_ID_PARAM)
    return values[0] if values else None


def url_with_flow_id(url: str, flow_id: str | None) -> str:
    """Set (or with None, drop) the flowId query parameter of ``url``."""
    parts = urlparse(url)
    query = parse_qs(parts.query)
    if flow_id:
        query[FLOW_ID_PARAM] = [flow_id]
    else:
        query.pop(FLOW_ID_PARAM, None)
    return urlunparse(parts._replace(query=urlencode(query, doseq=True)))
