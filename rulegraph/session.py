"""Editor session: one graph store, its history and the project repository.

The store holds the graph being edited; the repository holds every project's
last synced copy. The session keeps the two in step the way the editor does:
sync before switching, creating or exporting, and load the target project's
graph into the store afterwards.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rulegraph.adapters.storage import KeyValueStore
from rulegraph.errors import ProjectNotFoundError, ProjectValidationError
from rulegraph.history import HistoryManager, load_autosave
from rulegraph.models.graph import GraphSnapshot, default_graph
from rulegraph.models.project import RuleProject
from rulegraph.models.rule_file import RuleFile
from rulegraph.projects import ProjectRepository, parse_project
from rulegraph.rule_tree import generate_rule_file
from rulegraph.store import GraphStore
from rulegraph.utils.identifiers import generate_imported_project_id, now_ms

if TYPE_CHECKING:
    from rulegraph.sdk.rule_generator import RuleGenerator

logger = logging.getLogger(__name__)

DEFAULT_PROJECT_NAME = "Default Project"
DEFAULT_PROJECT_DESCRIPTION = "My first rules project"


def _graph_or_hub(project: RuleProject) -> GraphSnapshot:
    """A project's graph, or a hub-only graph when it has no nodes."""
    if not project.nodes:
        return default_graph()
    return project.graph()


class EditorSession:
    """Everything one editor needs, wired together.

    Usage:
        session = EditorSession(storage=FileStore("~/.rulegraph"))
        session.store.add_node(node, connect_to_hub=True)
        session.undo()
        rule_file = session.generate_rule_file()
    """

    def __init__(
        self,
        storage: KeyValueStore | None = None,
        max_history: int | None = None,
    ) -> None:
        """
        Args:
            storage: durable store for autosave and projects; in-memory only when None.
            max_history: cap on undo steps.
        """
        self.storage = storage
        self.projects = ProjectRepository(storage)
        autosaved = load_autosave(storage)

        self.store = GraphStore(autosaved)
        self.history = HistoryManager(self.store, storage, max_entries=max_history)

        if not len(self.projects):
            project_id = self.projects.create_project(
                DEFAULT_PROJECT_NAME, DEFAULT_PROJECT_DESCRIPTION
            )
            if autosaved is not None:
                self.sync_active_project()
            else:
                self._load(self.projects.get_project(project_id))
        elif autosaved is not None and self.projects.active_project_id:
            # the autosave holds edits newer than the last sync
            self.sync_active_project()
        else:
            active = self.projects.get_active_project()
            if active is None:
                active = self.projects.list_projects()[0]
                self.projects.set_active_project(active.id)
            self._load(active)
        # loading the starting graph is not an undoable step
        self.history.clear()

    # --- internals ---

    def _load(self, project: RuleProject | None) -> None:
        if project is None:
            return
        graph = _graph_or_hub(project)
        self.store.replace_all(graph.nodes, graph.edges)

    # --- project operations ---

    @property
    def active_project_id(self) -> str | None:
        return self.projects.active_project_id

    def active_project(self) -> RuleProject | None:
        return self.projects.get_active_project()

    def sync_active_project(self) -> RuleProject | None:
        """Copy the live graph into the active project."""
        project_id = self.projects.active_project_id
        if project_id is None:
            return None
        snapshot = self.store.snapshot()
        # keep the autosave in step with the synced project
        self.history.autosave()
        return self.projects.update_project(
            project_id, nodes=snapshot.nodes, edges=snapshot.edges
        )

    def create_project(self, name: str, description: str = "") -> RuleProject:
        """Create a project and open it.

        Raises:
            ProjectValidationError: if the name is blank.
        """
        if not name.strip():
            raise ProjectValidationError("Project name is required")
        self.sync_active_project()
        project_id = self.projects.create_project(name.strip(), description)
        project = self.projects.get_project(project_id)
        self._load(project)
        return project

    def switch_project(self, project_id: str) -> RuleProject:
        """Save the current graph, then open another project."""
        project = self.projects.get_project(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        if project_id != self.projects.active_project_id:
            self.sync_active_project()
            self.projects.set_active_project(project_id)
            self._load(project)
        logger.info("Switched to project %s (%s)", project.id, project.name)
        return project

    def delete_project(self, project_id: str) -> None:
        """Delete a project; opens the fallback project if it was active."""
        was_active = project_id == self.projects.active_project_id
        self.projects.delete_project(project_id)
        if was_active:
            self._load(self.projects.get_active_project())

    def import_project(self, project: RuleProject | dict | str) -> RuleProject:
        """Import (or overwrite) a project and open it."""
        incoming = parse_project(project)
        self.sync_active_project()
        imported = self.projects.import_project(incoming)
        self._load(imported)
        return imported

    def export_project(self, project_id: str) -> RuleProject:
        """Export a project, syncing the live graph first if it is active."""
        if project_id == self.projects.active_project_id:
            self.sync_active_project()
        project = self.projects.export_project(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    # --- graph operations ---

    def generate_rule_file(self) -> RuleFile:
        return generate_rule_file(self.store.snapshot())

    def undo(self) -> GraphSnapshot | None:
        return self.history.undo()

    def redo(self) -> GraphSnapshot | None:
        return self.history.redo()

    # --- AI assisted ---

    async def build_project_from_text(
        self,
        text: str,
        name: str,
        description: str,
        generator: RuleGenerator,
    ) -> RuleProject:
        """Generate a new, not yet imported project from a free-text description."""
        if not text.strip():
            raise ProjectValidationError("Please enter rule text")
        if not name.strip():
            raise ProjectValidationError("Project name is required")
        graph = await generator.text_to_graph(text, name, description)
        return RuleProject(
            id=generate_imported_project_id(),
            name=name,
            description=description,
            last_modified=now_ms(),
            nodes=graph.nodes,
            edges=graph.edges,
        )

    async def import_from_text(
        self,
        text: str,
        name: str,
        description: str,
        generator: RuleGenerator,
    ) -> RuleProject:
        """Generate a project from a free-text rule description and open it."""
        project = await self.build_project_from_text(text, name, description, generator)
        return self.import_project(project)

    async def generate_markdown(self, generator: RuleGenerator) -> str:
        """Markdown documentation for the current graph's rules."""
        return await generator.rules_to_markdown(self.generate_rule_file())
