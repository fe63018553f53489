"""Exceptions raised by rulegraph.

Structural oddities in a graph (dangling edges, a missing hub, undo with no
history) are not errors; only whole-document problems are.
"""


class RuleGraphError(Exception):
    """Base exception for all rulegraph errors."""
    pass


class ProjectError(RuleGraphError):
    """Raised when a project operation cannot be carried out."""
    pass


class ProjectNotFoundError(ProjectError):
    """Raised when a project id is not in the repository."""

    def __init__(self, project_id: str) -> None:
        super().__init__(f"Project not found: {project_id}")
        self.project_id = project_id


class ProjectValidationError(ProjectError):
    """Raised when imported or submitted project data is invalid."""
    pass


class LastProjectError(ProjectError):
    """Raised when deleting the only remaining project."""

    def __init__(self) -> None:
        super().__init__("Cannot delete the only project")


class StorageError(RuleGraphError):
    """Raised when the key-value store cannot be read or written."""
    pass


class RuleGeneratorError(RuleGraphError):
    """Raised when the AI rule generator fails."""
    pass
