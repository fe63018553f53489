"""Graph model for rule graphs.

Nodes and edges keep the camelCase JSON names of the editor front end
(``ruleData``) through aliases, so dumps are always by alias.
"""

from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class NodeType(str, Enum):
    """Kinds of nodes a rule graph can hold."""

    hub = "hub"
    framework = "framework"
    file_pattern = "file-pattern"
    semantic = "semantic"
    reference = "reference"
    custom = "custom"


DEFAULT_EDGE_TYPE = "smoothstep"


class Position(BaseModel):
    """canvas coordinates of a node."""

    x: float = 0
    y: float = 0


class NodeData(BaseModel):
    """user-editable content of a node.

    Unknown keys (editor callbacks and other decoration) are dropped on
    validation.
    """

    model_config = ConfigDict(
        validate_by_name=True,
        validate_by_alias=True,
        serialize_by_alias=True,
    )

    label: str = ""
    description: str = ""
    rule_data: dict[str, Any] = Field(default_factory=dict, alias="ruleData")


class NodeDataUpdate(BaseModel):
    """Partial update for NodeData; only fields that were set are merged."""

    model_config = ConfigDict(validate_by_name=True, validate_by_alias=True)

    label: str | None = None
    description: str | None = None
    rule_data: dict[str, Any] | None = Field(default=None, alias="ruleData")


class RuleNode(BaseModel):
    """a node in the rule graph.

    Extra keys such as ``selected`` or ``width`` belong to the canvas; they are
    kept as-is so exported projects re-import unchanged.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    type: NodeType
    position: Position = Field(default_factory=Position)
    data: NodeData = Field(default_factory=NodeData)


class RuleEdge(BaseModel):
    """a directed edge from a parent rule to a child rule."""

    model_config = ConfigDict(extra="allow")

    id: str
    source: str
    target: str
    type: str = DEFAULT_EDGE_TYPE


class GraphSnapshot(BaseModel):
    """value copy of a whole graph, used for history entries and autosave."""

    nodes: list[RuleNode] = Field(default_factory=list)
    edges: list[RuleEdge] = Field(default_factory=list)

    def copy_deep(self) -> "GraphSnapshot":
        return self.model_copy(deep=True)


def default_hub_node() -> RuleNode:
    """The hub every new graph starts with."""
    return RuleNode(
        id="hub",
        type=NodeType.hub,
        position=Position(x=0, y=0),
        data=NodeData(
            label="Hub",
            description="Central hub for all rules",
            rule_data={},
        ),
    )


def default_graph() -> GraphSnapshot:
    return GraphSnapshot(nodes=[default_hub_node()], edges=[])


# --- change deltas ---


class NodePositionChange(BaseModel):
    type: Literal["position"] = "position"
    id: str
    position: Position | None = None
    dragging: bool | None = None


class NodeSelectChange(BaseModel):
    type: Literal["select"] = "select"
    id: str
    selected: bool


class NodeRemoveChange(BaseModel):
    type: Literal["remove"] = "remove"
    id: str


class NodeAddChange(BaseModel):
    type: Literal["add"] = "add"
    item: RuleNode


NodeChange = Annotated[
    NodePositionChange | NodeSelectChange | NodeRemoveChange | NodeAddChange,
    Field(discriminator="type"),
]


class EdgeSelectChange(BaseModel):
    type: Literal["select"] = "select"
    id: str
    selected: bool


class EdgeRemoveChange(BaseModel):
    type: Literal["remove"] = "remove"
    id: str


class EdgeAddChange(BaseModel):
    type: Literal["add"] = "add"
    item: RuleEdge


EdgeChange = Annotated[
    EdgeSelectChange | EdgeRemoveChange | EdgeAddChange,
    Field(discriminator="type"),
]
