"""rulegraph - visual cursor rule graphs with undo history and rule export."""

from rulegraph.errors import (
    LastProjectError,
    ProjectError,
    ProjectNotFoundError,
    ProjectValidationError,
    RuleGeneratorError,
    RuleGraphError,
    StorageError,
)
from rulegraph.models.graph import (
    GraphSnapshot,
    NodeData,
    NodeType,
    Position,
    RuleEdge,
    RuleNode,
)
from rulegraph.models.project import RuleProject
from rulegraph.models.rule_file import RuleFile
from rulegraph.history import HistoryManager, load_autosave
from rulegraph.projects import ProjectRepository
from rulegraph.rule_tree import build_rules, generate_rule_file
from rulegraph.session import EditorSession
from rulegraph.store import GraphStore

__all__ = [
    # Errors
    "LastProjectError",
    "ProjectError",
    "ProjectNotFoundError",
    "ProjectValidationError",
    "RuleGeneratorError",
    "RuleGraphError",
    "StorageError",
    # Models
    "GraphSnapshot",
    "NodeData",
    "NodeType",
    "Position",
    "RuleEdge",
    "RuleNode",
    "RuleProject",
    "RuleFile",
    # Core
    "GraphStore",
    "HistoryManager",
    "load_autosave",
    "ProjectRepository",
    "build_rules",
    "generate_rule_file",
    # High-level APIs
    "EditorSession",
]
