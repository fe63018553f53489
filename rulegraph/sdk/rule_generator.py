"""AI helpers that turn free text into a rule graph and rules into markdown.

The model calls go through LangChain's ChatOpenAI. What comes back from the
model is cleaned up by ``normalize_generated_graph`` before it reaches a store:
a hub is guaranteed, missing ids are filled in and edge types defaulted.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from rulegraph.errors import RuleGeneratorError
from rulegraph.models.graph import (
    DEFAULT_EDGE_TYPE,
    GraphSnapshot,
    NodeType,
    Position,
    RuleEdge,
    RuleNode,
    default_hub_node,
)
from rulegraph.models.rule_file import RuleFile
from rulegraph.utils.identifiers import generate_edge_id, generate_node_id, unique_id

logger = logging.getLogger(__name__)

GRAPH_MODEL = os.getenv("RULEGRAPH_GRAPH_MODEL", "gpt-4o")
MARKDOWN_MODEL = os.getenv("RULEGRAPH_MARKDOWN_MODEL", "gpt-4o-mini")


# --- structured output schema ---


class GeneratedNodeData(BaseModel):
    model_config = ConfigDict(validate_by_name=True, validate_by_alias=True)

    label: str
    description: str
    rule_data: dict[str, Any] = Field(default_factory=dict, alias="ruleData")


class GeneratedNode(BaseModel):
    """a node as produced by the model; the id may be missing."""

    id: str | None = None
    type: NodeType
    position: Position | None = None
    data: GeneratedNodeData


class GeneratedEdge(BaseModel):
    """an edge as produced by the model; id and type may be missing."""

    id: str | None = None
    source: str
    target: str
    type: str | None = None


class GeneratedGraph(BaseModel):
    """Rule nodes and the connections between them."""

    nodes: list[GeneratedNode]
    edges: list[GeneratedEdge]


GRAPH_SYSTEM_PROMPT = """
You are an expert assistant for the Cursor IDE rule system. Your task is to parse natural language descriptions into structured Cursor rule nodes and connections.

The rule system consists of these node types:
- "hub": The central node that all other nodes connect to (always present)
- "framework": Main technology frameworks or libraries used in the project
- "file-pattern": Rules about file organization or naming patterns
- "semantic": Rules about code semantics, style, or patterns
- "reference": References to documentation or external resources
- "custom": Any custom rules that don't fit the above categories

Each node should have:
- A descriptive label
- A detailed description
- Appropriate ruleData properties (framework name for framework nodes, pattern for file-pattern nodes, file for reference nodes, behavior for custom nodes)

Connections between nodes should represent logical relationships:
- Framework nodes connect to the central hub
- Semantic, file-pattern, reference nodes connect to relevant framework nodes
- Custom nodes can connect to the hub or to framework nodes

Place the hub at (0, 0) and spread the other nodes around it without overlap.
""".strip()

MARKDOWN_SYSTEM_PROMPT = (
    "You are documenting Cursor IDE rules. Your task is to convert JSON rule format "
    "into clean, structured Markdown documentation. "
    "Do not include any introductory headers about Cursor IDE Rules Documentation."
)


def _graph_prompt(text: str, project_name: str, project_description: str) -> str:
    return f"""Parse the following text description into Cursor IDE rule nodes and edges. Create appropriate framework nodes for any technologies mentioned, and create semantic/custom/reference nodes for any specific rules, guidelines, or practices mentioned.

Here's the text to parse:

{text}

Project Name: {project_name}
Project Description: {project_description}"""


def _markdown_prompt(rule_file: RuleFile) -> str:
    rules_json = json.dumps(rule_file.model_dump(mode="json"), indent=2)
    return f"""Document each rule with:

- A heading using the rule name (## level)
- Clear explanation of what the rule aims to achieve
- Where and when it applies
- Any relevant configuration details
- Use proper markdown formatting (lists, code blocks where needed)

Rules to document:

{rules_json}"""


def normalize_generated_graph(generated: GeneratedGraph) -> GraphSnapshot:
    """Make a model-produced graph safe to load.

    - prepends the default hub when no hub-typed node exists
    - fills missing node ids (``node-<ms>-<n>``) and edge ids
      (``edge-<source>-<target>-<ms>``); any id already taken, including the
      default hub's, gets a ``-<n>`` suffix
    - defaults edge type to smoothstep and position to (0, 0)
    """
    nodes: list[RuleNode] = []
    taken: set[str] = set()

    if not any(node.type == NodeType.hub for node in generated.nodes):
        hub = default_hub_node()
        nodes.append(hub)
        taken.add(hub.id)

    for node in generated.nodes:
        node_id = unique_id(node.id or generate_node_id(), taken)
        taken.add(node_id)
        nodes.append(
            RuleNode(
                id=node_id,
                type=node.type,
                position=node.position or Position(x=0, y=0),
                data={
                    "label": node.data.label,
                    "description": node.data.description,
                    "ruleData": node.data.rule_data,
                },
            )
        )

    edges: list[RuleEdge] = []
    edge_ids: set[str] = set()
    for edge in generated.edges:
        edge_id = unique_id(edge.id or generate_edge_id(edge.source, edge.target), edge_ids)
        edge_ids.add(edge_id)
        edges.append(
            RuleEdge(
                id=edge_id,
                source=edge.source,
                target=edge.target,
                type=edge.type or DEFAULT_EDGE_TYPE,
            )
        )

    return GraphSnapshot(nodes=nodes, edges=edges)


class RuleGenerator:
    """Client for the AI side of the editor.

    Pass ``llm`` to use a preconfigured chat model (any LangChain chat model);
    otherwise ChatOpenAI clients are created on first use from OPENAI_API_KEY.
    """

    def __init__(
        self,
        llm: Any | None = None,
        graph_model: str = GRAPH_MODEL,
        markdown_model: str = MARKDOWN_MODEL,
        temperature: float = 0.1,
    ) -> None:
        self.graph_model = graph_model
        self.markdown_model = markdown_model
        self.temperature = temperature
        self._graph_llm = llm
        self._markdown_llm = llm

    def _chat_model(self, model: str):
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise RuleGeneratorError("OPENAI_API_KEY environment variable not set")
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(model=model, temperature=self.temperature, api_key=api_key)

    def _get_graph_llm(self):
        if self._graph_llm is None:
            self._graph_llm = self._chat_model(self.graph_model)
        return self._graph_llm

    def _get_markdown_llm(self):
        if self._markdown_llm is None:
            self._markdown_llm = self._chat_model(self.markdown_model)
        return self._markdown_llm

    async def text_to_graph(
        self,
        text: str,
        project_name: str,
        project_description: str = "",
    ) -> GraphSnapshot:
        """Parse a free-text rule description into a normalized graph.

        Raises:
            RuleGeneratorError: if the model call fails or returns no graph.
        """
        structured_llm = self._get_graph_llm().with_structured_output(
            GeneratedGraph, method="function_calling"
        )
        try:
            result = await structured_llm.ainvoke(
                [
                    SystemMessage(content=GRAPH_SYSTEM_PROMPT),
                    HumanMessage(content=_graph_prompt(text, project_name, project_description)),
                ]
            )
        except Exception as e:
            logger.exception("Error generating rule structure")
            raise RuleGeneratorError(f"Failed to generate rule structure: {e}") from e

        if result is None:
            raise RuleGeneratorError("Failed to generate rule structure")
        if isinstance(result, dict):
            try:
                result = GeneratedGraph.model_validate(result)
            except ValidationError as e:
                raise RuleGeneratorError(f"Model returned an invalid graph: {e}") from e
        return normalize_generated_graph(result)

    async def rules_to_markdown(self, rule_file: RuleFile) -> str:
        """Document a rule file as markdown. The text is returned unchecked."""
        try:
            response = await self._get_markdown_llm().ainvoke(
                [
                    SystemMessage(content=MARKDOWN_SYSTEM_PROMPT),
                    HumanMessage(content=_markdown_prompt(rule_file)),
                ]
            )
        except Exception as e:
            logger.exception("Error generating markdown")
            raise RuleGeneratorError(f"Failed to generate markdown: {e}") from e

        content = response.content
        if isinstance(content, str):
            return content
        return str(content)
