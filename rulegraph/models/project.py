"""Data model for persisted rule projects.

A project is a named snapshot of a rule graph. It is the durable copy of a
graph whenever that graph is not the one loaded in the editor.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rulegraph.models.graph import GraphSnapshot, RuleEdge, RuleNode


class RuleProject(BaseModel):
    """a named rule graph plus metadata."""

    model_config = ConfigDict(
        validate_by_name=True,
        validate_by_alias=True,
        serialize_by_alias=True,
    )

    id: str
    name: str
    description: str = ""
    last_modified: int = Field(default=0, alias="lastModified")  # ms since epoch
    nodes: list[RuleNode] = Field(default_factory=list)
    edges: list[RuleEdge] = Field(default_factory=list)

    @field_validator("id", "name")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    def graph(self) -> GraphSnapshot:
        """Deep copy of the project's graph."""
        return GraphSnapshot(nodes=self.nodes, edges=self.edges).model_copy(deep=True)


class RuleProjectUpdate(BaseModel):
    """Partial update for a project; the id is never updatable."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    description: str | None = None
    nodes: list[RuleNode] | None = None
    edges: list[RuleEdge] | None = None
