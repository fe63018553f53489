"""Repository of named rule projects.

Keeps every project's last synced graph and which project is active. With a
storage adapter the whole collection is written under one key after each
change, in the ``{projects, activeProjectId}`` shape of the editor front end.
"""

import json
import logging
from typing import Any

from pydantic import ValidationError

from rulegraph.adapters.storage import KeyValueStore
from rulegraph.errors import (
    LastProjectError,
    ProjectNotFoundError,
    ProjectValidationError,
    StorageError,
)
from rulegraph.models.graph import default_graph
from rulegraph.models.project import RuleProject, RuleProjectUpdate
from rulegraph.utils.identifiers import (
    generate_project_id,
    now_ms,
    project_export_filename,
)

logger = logging.getLogger(__name__)

PROJECTS_KEY = "cursor-rule-projects"


class ProjectRepository:
    """Multi-project lifecycle with import and export.

    All getters return deep copies; mutating a returned project never changes
    the repository.
    """

    def __init__(
        self,
        storage: KeyValueStore | None = None,
        storage_key: str = PROJECTS_KEY,
    ) -> None:
        self._storage = storage
        self.storage_key = storage_key
        self._projects: list[RuleProject] = []
        self.active_project_id: str | None = None
        self._load()

    # --- persistence ---

    def _load(self) -> None:
        if self._storage is None:
            return
        try:
            data = self._storage.get(self.storage_key)
        except StorageError:
            logger.exception("Failed to load projects")
            return
        if not isinstance(data, dict):
            return
        for raw in data.get("projects", []):
            try:
                self._projects.append(RuleProject.model_validate(raw))
            except ValidationError as e:
                logger.warning("Skipping invalid stored project: %s", e)
        active_id = data.get("activeProjectId")
        if self._index_of(active_id) is not None:
            self.active_project_id = active_id

    def _persist(self) -> None:
        if self._storage is None:
            return
        payload = {
            "projects": [
                p.model_dump(mode="json", by_alias=True) for p in self._projects
            ],
            "activeProjectId": self.active_project_id,
        }
        try:
            self._storage.set(self.storage_key, payload)
        except StorageError:
            logger.exception("Failed to persist projects")

    def _index_of(self, project_id: str | None) -> int | None:
        for index, project in enumerate(self._projects):
            if project.id == project_id:
                return index
        return None

    def _require_index(self, project_id: str) -> int:
        index = self._index_of(project_id)
        if index is None:
            raise ProjectNotFoundError(project_id)
        return index

    # --- lifecycle ---

    def create_project(self, name: str, description: str = "") -> str:
        """Create a hub-only project, make it active and return its id."""
        graph = default_graph()
        project = RuleProject(
            id=generate_project_id(),
            name=name,
            description=description,
            last_modified=now_ms(),
            nodes=graph.nodes,
            edges=graph.edges,
        )
        self._projects.append(project)
        self.active_project_id = project.id
        self._persist()
        logger.info("Created project %s (%s)", project.id, name)
        return project.id

    def delete_project(self, project_id: str) -> None:
        """Delete a project; the last remaining project cannot be deleted.

        Raises:
            LastProjectError: if it is the only project.
            ProjectNotFoundError: if no project has this id.
        """
        index = self._require_index(project_id)
        if len(self._projects) <= 1:
            raise LastProjectError()
        del self._projects[index]
        if self.active_project_id == project_id:
            self.active_project_id = self._projects[0].id if self._projects else None
        self._persist()
        logger.info("Deleted project %s", project_id)

    def update_project(self, project_id: str, **fields: Any) -> RuleProject:
        """Merge fields into a project and refresh its lastModified.

        Accepts name, description, nodes and edges. The merged project is
        validated as a whole; on failure nothing changes.

        Raises:
            ProjectNotFoundError: if no project has this id.
            ProjectValidationError: unknown fields or an invalid result, such as
                a blank name.
        """
        index = self._require_index(project_id)
        try:
            update = RuleProjectUpdate.model_validate(fields)
        except ValidationError as e:
            raise ProjectValidationError(f"Invalid project update: {e}") from e
        changes = update.model_dump(exclude_unset=True, exclude_none=True)
        # nodes/edges keep their models rather than dumped dicts
        for key in ("nodes", "edges"):
            if key in changes:
                changes[key] = [item.model_copy(deep=True) for item in getattr(update, key)]
        changes["last_modified"] = now_ms()
        merged = {**self._projects[index].model_dump(by_alias=False), **changes}
        try:
            project = RuleProject.model_validate(merged)
        except ValidationError as e:
            raise ProjectValidationError(
                f"Invalid project update: {e.error_count()} validation error(s)"
            ) from e
        self._projects[index] = project
        self._persist()
        return project.model_copy(deep=True)

    def set_active_project(self, project_id: str) -> None:
        self._require_index(project_id)
        self.active_project_id = project_id
        self._persist()

    # --- lookups ---

    def get_project(self, project_id: str) -> RuleProject | None:
        index = self._index_of(project_id)
        if index is None:
            return None
        return self._projects[index].model_copy(deep=True)

    def get_active_project(self) -> RuleProject | None:
        if self.active_project_id is None:
            return None
        return self.get_project(self.active_project_id)

    def list_projects(self) -> list[RuleProject]:
        return [project.model_copy(deep=True) for project in self._projects]

    def __len__(self) -> int:
        return len(self._projects)

    # --- import / export ---

    def import_project(self, project: RuleProject | dict | str) -> RuleProject:
        """Insert or overwrite a project by id and make it active.

        Args:
            project: a RuleProject, its dict form, or its JSON text.

        Raises:
            ProjectValidationError: malformed JSON or missing id/name. The
                repository is left unchanged.
        """
        incoming = parse_project(project)
        incoming.last_modified = now_ms()
        index = self._index_of(incoming.id)
        if index is None:
            self._projects.append(incoming)
        else:
            self._projects[index] = incoming
        self.active_project_id = incoming.id
        self._persist()
        logger.info("Imported project %s (%s)", incoming.id, incoming.name)
        return incoming.model_copy(deep=True)

    def export_project(self, project_id: str) -> RuleProject | None:
        """Deep copy of a stored project for serialization.

        Sync the live graph into the repository first when exporting the
        active project.
        """
        return self.get_project(project_id)

    def export_project_json(self, project_id: str) -> str:
        project = self.export_project(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return json.dumps(project.model_dump(mode="json", by_alias=True), indent=2)

    def export_filename(self, project_id: str) -> str:
        project = self.get_project(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project_export_filename(project.name)


def parse_project(project: RuleProject | dict | str) -> RuleProject:
    """Validate project data given as a model, a dict or JSON text.

    Raises:
        ProjectValidationError: malformed JSON or missing id/name.
    """
    try:
        if isinstance(project, RuleProject):
            return project.model_copy(deep=True)
        if isinstance(project, str):
            return RuleProject.model_validate_json(project)
        return RuleProject.model_validate(project)
    except ValidationError as e:
        logger.warning("Rejected project data: %s", e)
        raise ProjectValidationError(
            f"Invalid project data: {e.error_count()} validation error(s)"
        ) from e
