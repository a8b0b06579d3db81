"""Tests for the flow API routes."""

import jwt
import pytest


@pytest.fixture
def alice(headers_for):
    return headers_for("alice")


@pytest.fixture
def bob(headers_for):
    return headers_for("bob")


def _create(client, headers, name="New Flow"):
    response = client.post("/api/flows", json={"name": name}, headers=headers)
    assert response.status_code == 200
    return response.json()


class TestAuthentication:
    """Every flow route requires a valid bearer token."""

    def test_missing_token(self, client):
        response = client.get("/api/flows")
        assert response.status_code == 401
        assert "error" in response.json()

    def test_bad_signature(self, client):
        token = jwt.encode({"sub": "alice"}, "some-other-secret-that-is-32-bytes-long", algorithm="HS256")
        response = client.get("/api/flows", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_token_without_subject(self, client, sign_token):
        token = sign_token({"email": "alice@example.com"})
        response = client.get("/api/flows", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_non_bearer_scheme(self, client):
        response = client.get("/api/flows", headers={"Authorization": "Basic abc"})
        assert response.status_code == 401

    def test_health_is_public(self, client, db_path):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        # FLOW_DB_PATH is read per call, so the test database is in use
        assert response.json()["flow_db"] == str(db_path)
        assert db_path.exists()


class TestFlowCrud:
    """Test create/list/get/update/delete of flows."""

    def test_create_seeds_welcome_node(self, client, alice):
        flow = _create(client, alice, "First")
        assert flow["name"] == "First"
        assert flow["owner_id"] == "alice"
        assert [n["id"] for n in flow["nodes"]] == ["welcome-node"]
        assert flow["edges"] == []

    def test_create_without_body(self, client, alice):
        response = client.post("/api/flows", headers=alice)
        assert response.status_code == 200
        assert response.json()["name"] == "New Flow"

    def test_list_is_owner_scoped(self, client, alice, bob):
        _create(client, alice, "a1")
        _create(client, bob, "b1")
        names = [f["name"] for f in client.get("/api/flows", headers=alice).json()["flows"]]
        assert names == ["a1"]

    def test_list_most_recent_first(self, client, alice):
        first = _create(client, alice, "first")
        _create(client, alice, "second")
        client.patch(f"/api/flows/{first['id']}", json={"name": "first again"}, headers=alice)
        names = [f["name"] for f in client.get("/api/flows", headers=alice).json()["flows"]]
        assert names == ["first again", "second"]

    def test_get_own_flow(self, client, alice):
        flow = _create(client, alice)
        response = client.get(f"/api/flows/{flow['id']}", headers=alice)
        assert response.status_code == 200
        assert response.json()["id"] == flow["id"]

    def test_get_other_users_flow_is_forbidden(self, client, alice, bob):
        flow = _create(client, alice)
        response = client.get(f"/api/flows/{flow['id']}", headers=bob)
        assert response.status_code == 403

    def test_get_missing_flow(self, client, alice):
        response = client.get("/api/flows/does-not-exist", headers=alice)
        assert response.status_code == 404
        assert "does-not-exist" in response.json()["error"]

    def test_rename_keeps_description(self, client, alice):
        flow = client.post(
            "/api/flows", json={"name": "n", "description": "d"}, headers=alice
        ).json()
        response = client.patch(f"/api/flows/{flow['id']}", json={"name": "renamed"}, headers=alice)
        assert response.status_code == 200
        assert response.json()["name"] == "renamed"
        assert response.json()["description"] == "d"

    def test_delete(self, client, alice, bob):
        flow = _create(client, alice)
        assert client.delete(f"/api/flows/{flow['id']}", headers=bob).status_code == 403

        response = client.delete(f"/api/flows/{flow['id']}", headers=alice)
        assert response.json() == {"deleted": flow["id"]}
        assert client.get(f"/api/flows/{flow['id']}", headers=alice).status_code == 404


class TestSaveGraph:
    """Test the graph save endpoint used by auto-save."""

    def _graph(self):
        return {
            "nodes": [
                {"id": "t1", "type": "text", "position": {"x": 0, "y": 0},
                 "data": {"label": "In", "content": "hello"}, "width": 180},
                {"id": "p1", "type": "processor", "position": {"x": 300, "y": 0},
                 "data": {"kind": "summary", "prompt_template": "Sum: {{input}}"}},
            ],
            "edges": [{"id": "e1", "source": "t1", "target": "p1"}],
        }

    def test_save_and_reload(self, client, alice):
        flow = _create(client, alice)
        response = client.put(f"/api/flows/{flow['id']}/graph", json=self._graph(), headers=alice)
        assert response.status_code == 200
        summary = response.json()
        assert summary["id"] == flow["id"]
        assert summary["updated_at"] >= flow["updated_at"]

        loaded = client.get(f"/api/flows/{flow['id']}", headers=alice).json()
        assert [n["id"] for n in loaded["nodes"]] == ["t1", "p1"]
        assert loaded["nodes"][0]["width"] == 180
        assert loaded["edges"][0]["source"] == "t1"

    def test_save_other_users_flow(self, client, alice, bob):
        flow = _create(client, alice)
        response = client.put(f"/api/flows/{flow['id']}/graph", json=self._graph(), headers=bob)
        assert response.status_code == 403
        loaded = client.get(f"/api/flows/{flow['id']}", headers=alice).json()
        assert [n["id"] for n in loaded["nodes"]] == ["welcome-node"]

    def test_save_missing_flow(self, client, alice):
        response = client.put("/api/flows/nope/graph", json=self._graph(), headers=alice)
        assert response.status_code == 404

    @pytest.mark.parametrize(
        "edge",
        [
            {"id": "bad", "source": "p1", "target": "p2"},
            {"id": "bad", "source": "t1", "target": "t2"},
            {"id": "bad", "source": "ghost", "target": "p1"},
        ],
        ids=["processor-to-processor", "text-to-text", "dangling"],
    )
    def test_save_rejects_invalid_edges(self, client, alice, edge):
        flow = _create(client, alice)
        graph = self._graph()
        graph["nodes"].append({"id": "p2", "type": "processor", "position": {"x": 600, "y": 0}})
        graph["nodes"].append({"id": "t2", "type": "text", "position": {"x": 0, "y": 200}})
        graph["edges"].append(edge)

        response = client.put(f"/api/flows/{flow['id']}/graph", json=graph, headers=alice)

        assert response.status_code == 400
        assert response.json()["code"] == "InvalidConnectionError"
        loaded = client.get(f"/api/flows/{flow['id']}", headers=alice).json()
        assert [n["id"] for n in loaded["nodes"]] == ["welcome-node"]
        assert loaded["edges"] == []

    def test_save_rejects_unknown_node_type(self, client, alice):
        flow = _create(client, alice)
        graph = {"nodes": [{"id": "x", "type": "image"}], "edges": []}
        response = client.put(f"/api/flows/{flow['id']}/graph", json=graph, headers=alice)
        assert response.status_code == 422


class TestExportImport:
    """Test exporting a flow and importing the document again."""

    def test_export_then_import(self, client, alice):
        flow = _create(client, alice, "Pipeline")
        document = client.get(f"/api/flows/{flow['id']}/export", headers=alice).json()
        assert document["name"] == "Pipeline"
        assert document["exported_at"]

        response = client.post("/api/flows/import", json=document, headers=alice)
        assert response.status_code == 200
        imported = response.json()
        assert imported["id"] != flow["id"]
        assert imported["name"] == "[Imported] Pipeline"
        assert imported["nodes"] == flow["nodes"]

    def test_export_other_users_flow(self, client, alice, bob):
        flow = _create(client, alice)
        assert client.get(f"/api/flows/{flow['id']}/export", headers=bob).status_code == 403

    def test_import_missing_keys(self, client, alice):
        response = client.post("/api/flows/import", json={"name": "x", "nodes": []}, headers=alice)
        assert response.status_code == 400
        assert "edges" in response.json()["error"]
        assert client.get("/api/flows", headers=alice).json()["flows"] == []

    @pytest.mark.parametrize(
        "edges",
        [
            [{"id": "e1", "source": "p1", "target": "p2"}],
            [{"id": "e1", "source": "ghost", "target": "p1"}],
        ],
        ids=["processor-to-processor", "dangling"],
    )
    def test_import_rejects_invalid_edges(self, client, alice, edges):
        document = {
            "name": "broken",
            "nodes": [
                {"id": "p1", "type": "processor", "position": {"x": 0, "y": 0}},
                {"id": "p2", "type": "processor", "position": {"x": 300, "y": 0}},
            ],
            "edges": edges,
        }
        response = client.post("/api/flows/import", json=document, headers=alice)
        assert response.status_code == 400
        assert response.json()["code"] == "InvalidConnectionError"
        assert client.get("/api/flows", headers=alice).json()["flows"] == []

    def test_import_legacy_document(self, client, alice):
        document = {
            "name": "legacy",
            "nodes": [{"id": "p", "type": "processor", "position": {"x": 0, "y": 0},
                       "data": {"type": "refine", "prompt": "Refine: {{input}}"}}],
            "edges": [],
            "exportedAt": "2023-01-01T00:00:00Z",
        }
        imported = client.post("/api/flows/import", json=document, headers=alice).json()
        assert imported["nodes"][0]["data"] == {"kind": "refine", "prompt_template": "Refine: {{input}}"}
