"""Tests for the auto-save controller.

Timings are shrunk to tens of milliseconds; every sleep leaves several
multiples of the relevant delay as slack.
"""

import asyncio

import pytest

from flowsmith.adapters.notifications import ListSink
from flowsmith.errors import UpstreamServiceError
from flowsmith.models.graph import TextData, TextNode
from flowsmith.sdk.autosave import AutoSaveController


class FakeFlowClient:
    """Records save_graph calls; optionally fails them."""

    def __init__(self, error: Exception | None = None, delay: float = 0.0):
        self.error = error
        self.delay = delay
        self.saves: list[tuple[str, list, list]] = []

    async def save_graph(self, flow_id, nodes, edges):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        self.saves.append((flow_id, list(nodes), list(edges)))


class Graph:
    """Mutable graph holder standing in for the editor state."""

    def __init__(self):
        self.nodes = [TextNode(id="t1", data=TextData(content="v1"))]
        self.edges = []

    def get(self):
        return self.nodes, self.edges

    def edit(self, content: str):
        self.nodes = [TextNode(id="t1", data=TextData(content=content))]


def _controller(client, graph, notifier=None, debounce=0.05, interval=10.0):
    controller = AutoSaveController(
        client, "flow-1", graph.get, notifier=notifier, debounce=debounce, interval=interval
    )
    controller.mark_saved(*graph.get())
    return controller


class TestManualSave:
    """Test save() without the background task."""

    @pytest.mark.asyncio
    async def test_unchanged_graph_is_not_written(self):
        client, graph = FakeFlowClient(), Graph()
        controller = _controller(client, graph)
        assert await controller.save() is False
        assert client.saves == []

    @pytest.mark.asyncio
    async def test_changed_graph_is_written(self):
        client, graph = FakeFlowClient(), Graph()
        controller = _controller(client, graph)
        graph.edit("v2")
        assert controller.has_unsaved_changes()

        assert await controller.save() is True
        assert controller.write_count == 1
        assert client.saves[0][0] == "flow-1"
        assert client.saves[0][1][0].data.content == "v2"
        assert not controller.has_unsaved_changes()

    @pytest.mark.asyncio
    async def test_second_save_without_mutation_is_skipped(self):
        client, graph = FakeFlowClient(), Graph()
        controller = _controller(client, graph)
        graph.edit("v2")
        assert await controller.save() is True
        assert await controller.save() is False
        assert len(client.saves) == 1

    @pytest.mark.asyncio
    async def test_pending_flag_forces_write(self):
        client, graph = FakeFlowClient(), Graph()
        controller = _controller(client, graph)
        controller.notify_change(immediate=True)
        assert await controller.save() is True
        assert controller.pending is False

    @pytest.mark.asyncio
    async def test_skips_while_another_save_in_flight(self):
        client, graph = FakeFlowClient(), Graph()
        controller = _controller(client, graph)
        graph.edit("v2")
        controller.is_saving = True
        assert await controller.save() is False
        assert client.saves == []

    @pytest.mark.asyncio
    async def test_concurrent_saves_write_once(self):
        client, graph = FakeFlowClient(delay=0.05), Graph()
        controller = _controller(client, graph)
        graph.edit("v2")
        results = await asyncio.gather(controller.save(), controller.save())
        assert sorted(results) == [False, True]
        assert len(client.saves) == 1

    @pytest.mark.asyncio
    async def test_failure_keeps_changes_pending(self):
        client, graph = FakeFlowClient(error=UpstreamServiceError("db down")), Graph()
        sink = ListSink()
        controller = _controller(client, graph, notifier=sink)
        graph.edit("v2")

        assert await controller.save(trigger="change") is False
        assert controller.pending is True
        assert controller.is_saving is False
        assert graph.nodes[0].data.content == "v2"
        assert sink.titles == ["Error Saving Flow"]
        assert sink.notifications[0].description == "db down"

    @pytest.mark.asyncio
    async def test_interval_failure_is_silent(self):
        client, graph = FakeFlowClient(error=UpstreamServiceError("db down")), Graph()
        sink = ListSink()
        controller = _controller(client, graph, notifier=sink)
        graph.edit("v2")

        assert await controller.save(trigger="interval") is False
        assert controller.pending is True
        assert sink.notifications == []

    @pytest.mark.asyncio
    async def test_retry_after_failure(self):
        client, graph = FakeFlowClient(error=UpstreamServiceError("db down")), Graph()
        controller = _controller(client, graph)
        graph.edit("v2")
        await controller.save()

        client.error = None
        assert await controller.save() is True
        assert controller.pending is False


class TestBackgroundTask:
    """Test the debounce, immediate and interval triggers."""

    @pytest.mark.asyncio
    async def test_burst_of_changes_writes_once(self):
        client, graph = FakeFlowClient(), Graph()
        controller = _controller(client, graph, debounce=0.05)
        controller.start()
        try:
            for i in range(5):
                graph.edit(f"v{i}")
                controller.notify_change()
                await asyncio.sleep(0.005)
            await asyncio.sleep(0.3)
        finally:
            await controller.stop(flush=False)

        assert len(client.saves) == 1
        assert client.saves[0][1][0].data.content == "v4"

    @pytest.mark.asyncio
    async def test_debounce_delays_write(self):
        client, graph = FakeFlowClient(), Graph()
        controller = _controller(client, graph, debounce=0.3)
        controller.start()
        try:
            graph.edit("v2")
            controller.notify_change()
            await asyncio.sleep(0.05)
            assert client.saves == []
            await asyncio.sleep(0.6)
            assert len(client.saves) == 1
        finally:
            await controller.stop(flush=False)

    @pytest.mark.asyncio
    async def test_immediate_change_skips_debounce(self):
        client, graph = FakeFlowClient(), Graph()
        controller = _controller(client, graph, debounce=5.0)
        controller.start()
        try:
            graph.edit("v2")
            controller.notify_change(immediate=True)
            await asyncio.sleep(0.2)
        finally:
            await controller.stop(flush=False)
        assert len(client.saves) == 1

    @pytest.mark.asyncio
    async def test_interval_skips_unchanged_graph(self):
        client, graph = FakeFlowClient(), Graph()
        controller = _controller(client, graph, interval=0.05)
        controller.start()
        try:
            await asyncio.sleep(0.3)
            assert client.saves == []

            # a change that never went through notify_change
            graph.edit("v2")
            await asyncio.sleep(0.3)
        finally:
            await controller.stop(flush=False)
        assert len(client.saves) == 1

    @pytest.mark.asyncio
    async def test_stop_flushes_pending_changes(self):
        client, graph = FakeFlowClient(), Graph()
        controller = _controller(client, graph, debounce=5.0)
        controller.start()
        graph.edit("v2")
        controller.notify_change()
        await controller.stop()

        assert not controller.running
        assert len(client.saves) == 1
