"""Tests for the HTTP API against an in-memory session."""

import threading

import pytest
from fastapi.testclient import TestClient

from rulegraph.adapters.storage import MemoryStore
from rulegraph.errors import RuleGeneratorError
from rulegraph.models.graph import RuleEdge, RuleNode, default_graph
from rulegraph.session import EditorSession
from server.app import app


class StubGenerator:
    """Generator returning canned output."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.threads: list[threading.Thread] = []

    async def text_to_graph(self, text, project_name, project_description=""):
        self.threads.append(threading.current_thread())
        if self.fail:
            raise RuleGeneratorError("model unavailable")
        graph = default_graph()
        graph.nodes.append(
            RuleNode(id="react", type="framework", data={"label": "React", "description": text})
        )
        graph.edges.append(RuleEdge(id="e1", source="hub", target="react"))
        return graph

    async def rules_to_markdown(self, rule_file):
        self.threads.append(threading.current_thread())
        if self.fail:
            raise RuleGeneratorError("model unavailable")
        return f"## {len(rule_file.rules)} rules"


class RecordingLock:
    """Session lock that remembers which threads acquired it."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.threads: list[threading.Thread] = []

    def __enter__(self):
        self.threads.append(threading.current_thread())
        return self._lock.__enter__()

    def __exit__(self, *exc):
        return self._lock.__exit__(*exc)


def _client(generator=None) -> TestClient:
    app.state.session = EditorSession(MemoryStore())
    app.state.generator = generator or StubGenerator()
    return TestClient(app)


@pytest.fixture
def client():
    with _client() as test_client:
        yield test_client


def _add(client, node_id, node_type="framework", connect_to_hub=True, **rule_data):
    return client.post(
        "/api/graph/nodes",
        json={
            "node": {
                "id": node_id,
                "type": node_type,
                "position": {"x": 0, "y": 0},
                "data": {"label": node_id, "description": node_id, "ruleData": rule_data},
            },
            "connect_to_hub": connect_to_hub,
        },
    )


class TestGraphRoutes:
    """Test editing the open graph."""

    def test_initial_graph(self, client):
        response = client.get("/api/graph")
        assert response.status_code == 200
        data = response.json()
        assert [n["id"] for n in data["nodes"]] == ["hub"]
        assert data["can_undo"] is False
        assert data["project_id"]

    def test_add_node_and_rules(self, client):
        response = _add(client, "react", framework="react")
        assert response.status_code == 201
        assert len(response.json()["edges"]) == 1
        rules = client.get("/api/graph/rules").json()
        assert rules == {
            "rules": [{"type": "framework", "description": "react", "framework": "react"}]
        }

    def test_duplicate_node_conflicts(self, client):
        _add(client, "react")
        assert _add(client, "react").status_code == 409

    def test_update_node(self, client):
        _add(client, "react")
        response = client.patch("/api/graph/nodes/react", json={"ruleData": {"version": "18"}})
        assert response.status_code == 200
        node = response.json()["nodes"][1]
        assert node["data"]["ruleData"] == {"version": "18"}
        assert node["data"]["label"] == "react"

    def test_update_with_null_fields_keeps_values(self, client):
        response = client.patch(
            "/api/graph/nodes/hub",
            json={"label": "Root", "description": None, "ruleData": None},
        )
        assert response.status_code == 200
        hub = response.json()["nodes"][0]
        assert hub["data"]["label"] == "Root"
        assert hub["data"]["description"] == "Central hub for all rules"
        assert hub["data"]["ruleData"] == {}

    def test_update_missing_node(self, client):
        assert client.patch("/api/graph/nodes/nope", json={"label": "x"}).status_code == 404

    def test_delete_node_cascades(self, client):
        _add(client, "react")
        response = client.delete("/api/graph/nodes/react")
        assert response.status_code == 200
        assert response.json()["edges"] == []
        assert client.delete("/api/graph/nodes/react").status_code == 404

    def test_connect_and_edge_changes(self, client):
        _add(client, "react", connect_to_hub=False)
        response = client.post("/api/graph/edges", json={"source": "hub", "target": "react"})
        assert response.status_code == 201
        edge = response.json()["edges"][0]
        assert edge["type"] == "smoothstep"
        response = client.post(
            "/api/graph/edge-changes",
            json={"changes": [{"type": "remove", "id": edge["id"]}]},
        )
        assert response.json()["edges"] == []

    def test_node_changes(self, client):
        _add(client, "react")
        response = client.post(
            "/api/graph/node-changes",
            json={
                "changes": [
                    {"type": "position", "id": "react", "position": {"x": 40, "y": 50}},
                    {"type": "select", "id": "react", "selected": True},
                ]
            },
        )
        node = response.json()["nodes"][1]
        assert node["position"] == {"x": 40, "y": 50}
        assert node["selected"] is True

    def test_bad_change_type_rejected(self, client):
        response = client.post(
            "/api/graph/node-changes",
            json={"changes": [{"type": "resize", "id": "hub"}]},
        )
        assert response.status_code == 422

    def test_undo_redo(self, client):
        _add(client, "react")
        response = client.post("/api/graph/undo")
        assert [n["id"] for n in response.json()["nodes"]] == ["hub"]
        assert response.json()["can_redo"] is True
        response = client.post("/api/graph/redo")
        assert [n["id"] for n in response.json()["nodes"]] == ["hub", "react"]

    def test_markdown(self, client):
        _add(client, "react")
        response = client.post("/api/graph/markdown")
        assert response.json() == {"markdown": "## 1 rules"}

    def test_markdown_takes_lock_off_the_event_loop(self):
        generator = StubGenerator()
        with _client(generator) as client:
            lock = RecordingLock()
            app.state.lock = lock
            assert client.post("/api/graph/markdown").status_code == 200
        assert len(lock.threads) == 1
        assert lock.threads[0] is not generator.threads[0]

    def test_markdown_failure_is_bad_gateway(self):
        with _client(StubGenerator(fail=True)) as client:
            assert client.post("/api/graph/markdown").status_code == 502


class TestProjectRoutes:
    """Test project lifecycle over HTTP."""

    def test_list_and_create(self, client):
        response = client.post("/api/projects", json={"name": "Web", "description": "d"})
        assert response.status_code == 201
        created = response.json()
        assert "lastModified" in created
        projects = client.get("/api/projects").json()
        assert [p["name"] for p in projects] == ["Default Project", "Web"]
        assert client.get("/api/graph").json()["project_id"] == created["id"]

    def test_create_blank_name(self, client):
        assert client.post("/api/projects", json={"name": " "}).status_code == 400

    def test_active_project_includes_live_graph(self, client):
        _add(client, "react")
        active = client.get("/api/projects/active").json()
        assert [n["id"] for n in active["nodes"]] == ["hub", "react"]

    def test_no_active_project_is_not_found(self, client):
        app.state.session.projects.active_project_id = None
        response = client.get("/api/projects/active")
        assert response.status_code == 404
        assert response.json()["detail"] == "No active project"

    def test_activate(self, client):
        first_id = client.get("/api/graph").json()["project_id"]
        client.post("/api/projects", json={"name": "Web"})
        response = client.put(f"/api/projects/{first_id}/activate")
        assert response.status_code == 200
        assert client.get("/api/graph").json()["project_id"] == first_id
        assert client.put("/api/projects/nope/activate").status_code == 404

    def test_delete(self, client):
        first_id = client.get("/api/graph").json()["project_id"]
        assert client.delete(f"/api/projects/{first_id}").status_code == 409
        second = client.post("/api/projects", json={"name": "Web"}).json()
        response = client.delete(f"/api/projects/{second['id']}")
        assert response.json() == {"deleted": second["id"], "active_project_id": first_id}
        assert client.delete("/api/projects/nope").status_code == 404

    def test_export_and_import(self, client):
        project_id = client.get("/api/graph").json()["project_id"]
        _add(client, "react")
        response = client.get(f"/api/projects/{project_id}/export")
        assert response.status_code == 200
        assert 'filename="default-project-cursor-rules.json"' in response.headers[
            "content-disposition"
        ]
        exported = response.json()
        exported["id"] = "copy"
        exported["name"] = "Copy"
        imported = client.post("/api/projects/import", json=exported)
        assert imported.status_code == 200
        assert client.get("/api/graph").json()["project_id"] == "copy"

    def test_import_invalid(self, client):
        assert client.post("/api/projects/import", json={"name": "no id"}).status_code == 400

    def test_import_text(self, client):
        response = client.post(
            "/api/projects/import-text",
            json={"text": "Use React", "name": "Generated"},
        )
        assert response.status_code == 200
        project = response.json()
        assert project["id"].startswith("project-")
        graph = client.get("/api/graph").json()
        assert [n["id"] for n in graph["nodes"]] == ["hub", "react"]

    def test_import_text_takes_lock_off_the_event_loop(self):
        generator = StubGenerator()
        with _client(generator) as client:
            lock = RecordingLock()
            app.state.lock = lock
            response = client.post(
                "/api/projects/import-text",
                json={"text": "Use React", "name": "Generated"},
            )
            assert response.status_code == 200
        assert len(lock.threads) == 1
        assert lock.threads[0] is not generator.threads[0]

    def test_import_text_requires_text(self, client):
        response = client.post("/api/projects/import-text", json={"text": "", "name": "G"})
        assert response.status_code == 400

    def test_import_text_generator_failure(self):
        with _client(StubGenerator(fail=True)) as client:
            response = client.post(
                "/api/projects/import-text",
                json={"text": "Use React", "name": "Generated"},
            )
            assert response.status_code == 502


def test_health():
    with _client() as client:
        assert client.get("/").json()["status"] == "ok"
