"""SDK clients against the real app, mounted through an in-process transport."""

import httpx
import pytest

from flowsmith.adapters.notifications import ListSink
from flowsmith.errors import (
    AuthRequiredError,
    ForbiddenError,
    InvalidConnectionError,
    InvalidFormatError,
    NotFoundError,
)
from flowsmith.graph.operations import WELCOME_NODE_ID
from flowsmith.models.graph import Edge, Position, ProcessorNode
from flowsmith.sdk.client import FlowClient
from flowsmith.sdk.editor import EditorSession
from flowsmith.sdk.generation import TextGenerationClient
from flowsmith.sdk.session import SessionContext
from flowsmith_server import llm
from flowsmith_server.app import app
from flowsmith_server.db import init_all

BASE_URL = "http://testserver"


@pytest.fixture
def database(db_path):
    # the in-process transport skips the lifespan hook
    init_all()
    return db_path


@pytest.fixture
def session_for(database, sign_token):
    def _session(user_id: str) -> SessionContext:
        return SessionContext(user_id=user_id, access_token=sign_token({"sub": user_id}))

    return _session


def _flow_client(session: SessionContext) -> FlowClient:
    return FlowClient(BASE_URL, session, transport=httpx.ASGITransport(app=app))


class TestFlowClient:
    """Test FlowClient calls and error mapping."""

    @pytest.mark.asyncio
    async def test_create_list_get(self, session_for):
        client = _flow_client(session_for("alice"))
        flow = await client.create_flow("Mine", "desc")
        assert flow.nodes[0].id == WELCOME_NODE_ID

        flows = await client.list_flows()
        assert [f.id for f in flows] == [flow.id]
        assert (await client.get_flow(flow.id)).description == "desc"

    @pytest.mark.asyncio
    async def test_errors_map_to_exceptions(self, session_for):
        alice = _flow_client(session_for("alice"))
        bob = _flow_client(session_for("bob"))
        flow = await alice.create_flow()

        with pytest.raises(ForbiddenError):
            await bob.get_flow(flow.id)
        with pytest.raises(NotFoundError):
            await alice.get_flow("missing")
        with pytest.raises(InvalidFormatError):
            await alice.import_flow({"name": "x"})

    @pytest.mark.asyncio
    async def test_rejected_edge_keeps_error_class(self, session_for):
        client = _flow_client(session_for("alice"))
        flow = await client.create_flow()
        nodes = [ProcessorNode(id="p1"), ProcessorNode(id="p2")]
        edges = [Edge(id="e1", source="p1", target="p2")]

        with pytest.raises(InvalidConnectionError):
            await client.save_graph(flow.id, nodes, edges)

    @pytest.mark.asyncio
    async def test_empty_token_fails_before_request(self, database):
        client = _flow_client(SessionContext(user_id="alice", access_token=""))
        with pytest.raises(AuthRequiredError):
            await client.list_flows()

    @pytest.mark.asyncio
    async def test_save_graph_and_export(self, session_for):
        client = _flow_client(session_for("alice"))
        flow = await client.create_flow("Pipeline")
        summary = await client.save_graph(flow.id, [], [])
        assert summary.id == flow.id

        document = await client.export_flow(flow.id)
        assert document.nodes == []

        imported = await client.import_flow(document)
        assert imported.name == "[Imported] Pipeline"

    @pytest.mark.asyncio
    async def test_update_and_delete(self, session_for):
        client = _flow_client(session_for("alice"))
        flow = await client.create_flow("Old")
        renamed = await client.update_flow(flow.id, {"name": "New"})
        assert renamed.name == "New"

        await client.delete_flow(flow.id)
        assert await client.list_flows() == []


class TestEditorEndToEnd:
    """An editor session driving the real server."""

    @pytest.mark.asyncio
    async def test_execute_and_persist(self, session_for, monkeypatch):
        async def fake_generate_text(prompt, config):
            return prompt.upper()

        monkeypatch.setattr(llm, "generate_text", fake_generate_text)

        context = session_for("alice")
        transport = httpx.ASGITransport(app=app)
        flows = FlowClient(BASE_URL, context, transport=transport)
        generator = TextGenerationClient(BASE_URL, context, transport=transport)
        sink = ListSink()
        session = EditorSession(flows, generator, context, notifier=sink, autostart=False)

        flow = await session.new_flow("E2E")
        session.update_node(WELCOME_NODE_ID, {"content": "shout this"})
        proc = session.add_processor_node(Position(x=550, y=150), prompt_template="{{input}}")
        session.connect(WELCOME_NODE_ID, proc.id)

        result = await session.execute_processor(proc.id)
        assert "SHOUT THIS" in result
        await session.close()

        stored = await flows.get_flow(flow.id)
        assert len(stored.nodes) == 3
        assert len(stored.edges) == 2
        assert "SHOUT THIS" in stored.nodes[-1].data.content
        assert "Processing Complete" in sink.titles
