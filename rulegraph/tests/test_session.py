"""Tests for EditorSession wiring of store, history and projects."""

import asyncio

import pytest

from rulegraph.adapters.storage import MemoryStore
from rulegraph.errors import ProjectNotFoundError, ProjectValidationError
from rulegraph.history import AUTOSAVE_KEY
from rulegraph.models.graph import GraphSnapshot, NodeType, RuleEdge, RuleNode, default_graph
from rulegraph.models.project import RuleProject
from rulegraph.projects import PROJECTS_KEY
from rulegraph.session import DEFAULT_PROJECT_NAME, EditorSession


def _node(node_id: str, node_type: NodeType = NodeType.framework) -> RuleNode:
    return RuleNode(id=node_id, type=node_type, data={"label": node_id, "description": node_id})


def _graph_with(*node_ids: str) -> GraphSnapshot:
    graph = default_graph()
    for node_id in node_ids:
        graph.nodes.append(_node(node_id))
        graph.edges.append(RuleEdge(id=f"e-{node_id}", source="hub", target=node_id))
    return graph


class FakeGenerator:
    """Stands in for RuleGenerator without calling a model."""

    def __init__(self, graph: GraphSnapshot | None = None, markdown: str = "## Rules") -> None:
        self.graph = graph or _graph_with("react")
        self.markdown = markdown
        self.calls: list[tuple] = []

    async def text_to_graph(self, text, project_name, project_description=""):
        self.calls.append(("graph", text, project_name, project_description))
        return self.graph.copy_deep()

    async def rules_to_markdown(self, rule_file):
        self.calls.append(("markdown", rule_file))
        return self.markdown


def _ids(session: EditorSession) -> list[str]:
    return [n.id for n in session.store.nodes]


class TestStartup:
    """Test how the starting graph and project are chosen."""

    def test_fresh_start_creates_default_project(self):
        session = EditorSession()
        assert len(session.projects) == 1
        project = session.active_project()
        assert project.name == DEFAULT_PROJECT_NAME
        assert project.description == "My first rules project"
        assert _ids(session) == ["hub"]
        assert not session.history.can_undo

    def test_autosave_without_projects_is_kept(self):
        storage = MemoryStore()
        storage.set(AUTOSAVE_KEY, _graph_with("vue").model_dump(mode="json", by_alias=True))
        session = EditorSession(storage)
        assert _ids(session) == ["hub", "vue"]
        assert [n.id for n in session.active_project().nodes] == ["hub", "vue"]

    def test_autosave_is_synced_into_active_project(self):
        storage = MemoryStore()
        first = EditorSession(storage)
        first.store.add_node(_node("svelte"), connect_to_hub=True)
        project_id = first.active_project_id

        second = EditorSession(storage)
        assert second.active_project_id == project_id
        assert _ids(second) == ["hub", "svelte"]
        assert [n.id for n in second.active_project().nodes] == ["hub", "svelte"]
        assert not second.history.can_undo

    def test_without_autosave_loads_active_project(self):
        storage = MemoryStore()
        first = EditorSession(storage)
        first.store.add_node(_node("angular"))
        first.sync_active_project()
        del storage.data[AUTOSAVE_KEY]

        second = EditorSession(storage)
        assert _ids(second) == ["hub", "angular"]

    def test_missing_active_falls_back_to_first_project(self):
        storage = MemoryStore()
        first = EditorSession(storage)
        first_id = first.active_project_id
        first.create_project("Second")
        stored = storage.get(PROJECTS_KEY)
        stored["activeProjectId"] = None
        storage.set(PROJECTS_KEY, stored)
        del storage.data[AUTOSAVE_KEY]

        second = EditorSession(storage)
        assert second.active_project_id == first_id

    def test_undone_edit_stays_undone_after_restart(self):
        storage = MemoryStore()
        first = EditorSession(storage)
        project_id = first.active_project_id
        first.store.add_node(_node("f"), connect_to_hub=True)
        first.undo()
        exported = first.export_project(project_id)
        assert [n.id for n in exported.nodes] == ["hub"]

        second = EditorSession(storage)
        assert _ids(second) == ["hub"]
        assert [n.id for n in second.active_project().nodes] == ["hub"]

    def test_redone_edit_survives_restart(self):
        storage = MemoryStore()
        first = EditorSession(storage)
        first.store.add_node(_node("f"), connect_to_hub=True)
        first.undo()
        first.redo()

        second = EditorSession(storage)
        assert _ids(second) == ["hub", "f"]

    def test_sync_rewrites_autosave(self):
        storage = MemoryStore()
        session = EditorSession(storage)
        session.store.add_node(_node("f"))
        session.undo()
        storage.set(AUTOSAVE_KEY, _graph_with("stale").model_dump(mode="json", by_alias=True))
        session.sync_active_project()
        assert [n["id"] for n in storage.get(AUTOSAVE_KEY)["nodes"]] == ["hub"]

    def test_null_field_update_survives_restart(self):
        storage = MemoryStore()
        first = EditorSession(storage)
        first.store.update_node_data("hub", {"description": None, "label": "Root"})
        first.sync_active_project()

        second = EditorSession(storage)
        assert second.store.get_node("hub").data.label == "Root"
        assert second.active_project().nodes[0].data.label == "Root"

    def test_empty_project_loads_hub_only(self):
        storage = MemoryStore()
        storage.set(
            PROJECTS_KEY,
            {"projects": [{"id": "p", "name": "Empty"}], "activeProjectId": "p"},
        )
        session = EditorSession(storage)
        assert _ids(session) == ["hub"]


class TestProjects:
    """Switching, creating and deleting keep the store and repository in step."""

    def test_switch_syncs_current_graph(self):
        session = EditorSession()
        first_id = session.active_project_id
        second = session.create_project("Second")
        session.store.add_node(_node("next"))

        session.switch_project(first_id)
        assert _ids(session) == ["hub"]
        assert [n.id for n in session.projects.get_project(second.id).nodes] == ["hub", "next"]

        session.switch_project(second.id)
        assert _ids(session) == ["hub", "next"]

    def test_create_syncs_then_opens_blank_graph(self):
        session = EditorSession()
        first_id = session.active_project_id
        session.store.add_node(_node("react"))
        created = session.create_project("  New  ", "desc")
        assert created.name == "New"
        assert session.active_project_id == created.id
        assert _ids(session) == ["hub"]
        assert [n.id for n in session.projects.get_project(first_id).nodes] == ["hub", "react"]

    def test_create_requires_name(self):
        session = EditorSession()
        with pytest.raises(ProjectValidationError):
            session.create_project("   ")
        assert len(session.projects) == 1

    def test_switch_unknown(self):
        session = EditorSession()
        with pytest.raises(ProjectNotFoundError):
            session.switch_project("nope")

    def test_delete_active_opens_fallback(self):
        session = EditorSession()
        first_id = session.active_project_id
        session.store.add_node(_node("kept"))
        session.sync_active_project()
        second = session.create_project("Second")
        session.delete_project(second.id)
        assert session.active_project_id == first_id
        assert _ids(session) == ["hub", "kept"]

    def test_switch_is_undoable_as_one_step(self):
        session = EditorSession()
        first_id = session.active_project_id
        session.create_project("Second")
        session.store.add_node(_node("x"))
        session.switch_project(first_id)
        session.undo()
        assert _ids(session) == ["hub", "x"]


class TestImportExport:
    def test_export_active_includes_live_edits(self):
        session = EditorSession()
        session.store.add_node(_node("live"))
        exported = session.export_project(session.active_project_id)
        assert [n.id for n in exported.nodes] == ["hub", "live"]

    def test_export_unknown(self):
        with pytest.raises(ProjectNotFoundError):
            EditorSession().export_project("nope")

    def test_import_opens_project(self):
        session = EditorSession()
        graph = _graph_with("vue")
        incoming = RuleProject(id="imp", name="Imported", nodes=graph.nodes, edges=graph.edges)
        imported = session.import_project(incoming.model_dump(mode="json", by_alias=True))
        assert imported.id == "imp"
        assert session.active_project_id == "imp"
        assert _ids(session) == ["hub", "vue"]

    def test_rejected_import_changes_nothing(self):
        session = EditorSession()
        session.store.add_node(_node("draft"))
        before = session.active_project()
        with pytest.raises(ProjectValidationError):
            session.import_project("{broken")
        after = session.active_project()
        assert after.model_dump() == before.model_dump()
        assert _ids(session) == ["hub", "draft"]


class TestRules:
    def test_generate_rule_file_uses_live_graph(self):
        session = EditorSession()
        session.store.add_node(_node("react"), connect_to_hub=True)
        rule_file = session.generate_rule_file()
        assert rule_file.rules == [{"type": "framework", "description": "react"}]

    def test_undo_redo(self):
        session = EditorSession()
        session.store.add_node(_node("a"))
        session.undo()
        assert _ids(session) == ["hub"]
        session.redo()
        assert _ids(session) == ["hub", "a"]


class TestGenerated:
    """Projects built from free text through a generator."""

    def test_import_from_text(self):
        session = EditorSession()
        generator = FakeGenerator()
        project = asyncio.run(
            session.import_from_text("Use React hooks", "Web", "frontend", generator)
        )
        assert project.id.startswith("project-")
        assert project.name == "Web"
        assert session.active_project_id == project.id
        assert _ids(session) == ["hub", "react"]
        assert generator.calls == [("graph", "Use React hooks", "Web", "frontend")]

    @pytest.mark.parametrize("text,name", [("  ", "Web"), ("rules", " ")])
    def test_blank_text_or_name(self, text, name):
        session = EditorSession()
        generator = FakeGenerator()
        with pytest.raises(ProjectValidationError):
            asyncio.run(session.import_from_text(text, name, "", generator))
        assert generator.calls == []
        assert len(session.projects) == 1

    def test_generate_markdown(self):
        session = EditorSession()
        session.store.add_node(_node("react"), connect_to_hub=True)
        generator = FakeGenerator(markdown="## React")
        assert asyncio.run(session.generate_markdown(generator)) == "## React"
        rule_file = generator.calls[0][1]
        assert rule_file.rules[0]["type"] == "framework"
