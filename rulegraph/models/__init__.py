"""Core data models for rulegraph."""

from rulegraph.models.graph import (
    DEFAULT_EDGE_TYPE,
    EdgeAddChange,
    EdgeChange,
    EdgeRemoveChange,
    EdgeSelectChange,
    GraphSnapshot,
    NodeAddChange,
    NodeChange,
    NodeData,
    NodeDataUpdate,
    NodePositionChange,
    NodeRemoveChange,
    NodeSelectChange,
    NodeType,
    Position,
    RuleEdge,
    RuleNode,
    default_graph,
    default_hub_node,
)
from rulegraph.models.project import RuleProject, RuleProjectUpdate
from rulegraph.models.rule_file import RULE_FILE_NAME, Rule, RuleFile

__all__ = [
    # Graph
    "DEFAULT_EDGE_TYPE",
    "GraphSnapshot",
    "NodeData",
    "NodeDataUpdate",
    "NodeType",
    "Position",
    "RuleEdge",
    "RuleNode",
    "default_graph",
    "default_hub_node",
    # Change deltas
    "EdgeAddChange",
    "EdgeChange",
    "EdgeRemoveChange",
    "EdgeSelectChange",
    "NodeAddChange",
    "NodeChange",
    "NodePositionChange",
    "NodeRemoveChange",
    "NodeSelectChange",
    # Projects
    "RuleProject",
    "RuleProjectUpdate",
    # Rule file
    "RULE_FILE_NAME",
    "Rule",
    "RuleFile",
]
