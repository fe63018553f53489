"""API routes for editing the open rule graph."""

from fastapi import APIRouter, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel

from rulegraph.errors import RuleGraphError
from rulegraph.models.graph import (
    DEFAULT_EDGE_TYPE,
    EdgeChange,
    NodeChange,
    NodeDataUpdate,
    RuleEdge,
    RuleNode,
)
from rulegraph.models.rule_file import RuleFile
from rulegraph.session import EditorSession
from server.deps import get_generator, locked_session, to_http_exception

router = APIRouter()


# --- Request/Response Models ---


class GraphState(BaseModel):
    """The open graph plus undo/redo availability."""

    project_id: str | None
    nodes: list[RuleNode]
    edges: list[RuleEdge]
    can_undo: bool
    can_redo: bool


class AddNodeRequest(BaseModel):
    """Request body for adding a node."""

    node: RuleNode
    connect_to_hub: bool = False


class ConnectRequest(BaseModel):
    """Request body for connecting two nodes."""

    source: str
    target: str
    type: str = DEFAULT_EDGE_TYPE


class NodeChangesRequest(BaseModel):
    changes: list[NodeChange]


class EdgeChangesRequest(BaseModel):
    changes: list[EdgeChange]


class MarkdownResponse(BaseModel):
    markdown: str


def _state(session: EditorSession) -> GraphState:
    snapshot = session.store.snapshot()
    return GraphState(
        project_id=session.active_project_id,
        nodes=snapshot.nodes,
        edges=snapshot.edges,
        can_undo=session.history.can_undo,
        can_redo=session.history.can_redo,
    )


def _current_rule_file(request: Request) -> RuleFile:
    with locked_session(request) as session:
        return session.generate_rule_file()


# --- Routes ---


@router.get("/graph")
def get_graph(request: Request) -> GraphState:
    """the graph currently open in the editor."""
    with locked_session(request) as session:
        return _state(session)


@router.post("/graph/nodes", status_code=201)
def add_node(request: Request, body: AddNodeRequest) -> GraphState:
    """add a node, optionally wired to the hub."""
    with locked_session(request) as session:
        if session.store.get_node(body.node.id) is not None:
            raise HTTPException(status_code=409, detail=f"Node already exists: {body.node.id}")
        session.store.add_node(body.node, connect_to_hub=body.connect_to_hub)
        return _state(session)


@router.patch("/graph/nodes/{node_id}")
def update_node(request: Request, node_id: str, body: NodeDataUpdate) -> GraphState:
    """merge label, description or ruleData into a node."""
    with locked_session(request) as session:
        if not session.store.update_node_data(node_id, body):
            raise HTTPException(status_code=404, detail=f"Node not found: {node_id}")
        return _state(session)


@router.delete("/graph/nodes/{node_id}")
def delete_node(request: Request, node_id: str) -> GraphState:
    """delete a node together with its edges."""
    with locked_session(request) as session:
        if not session.store.remove_node(node_id):
            raise HTTPException(status_code=404, detail=f"Node not found: {node_id}")
        return _state(session)


@router.post("/graph/node-changes")
def apply_node_changes(request: Request, body: NodeChangesRequest) -> GraphState:
    """apply a batch of canvas node changes (move, select, remove, add)."""
    with locked_session(request) as session:
        session.store.apply_node_changes(body.changes)
        return _state(session)


@router.post("/graph/edge-changes")
def apply_edge_changes(request: Request, body: EdgeChangesRequest) -> GraphState:
    """apply a batch of canvas edge changes (select, remove, add)."""
    with locked_session(request) as session:
        session.store.apply_edge_changes(body.changes)
        return _state(session)


@router.post("/graph/edges", status_code=201)
def connect(request: Request, body: ConnectRequest) -> GraphState:
    """connect source to target. Repeating an existing connection changes nothing."""
    with locked_session(request) as session:
        session.store.connect(body.source, body.target, body.type)
        return _state(session)


@router.post("/graph/undo")
def undo(request: Request) -> GraphState:
    with locked_session(request) as session:
        session.undo()
        return _state(session)


@router.post("/graph/redo")
def redo(request: Request) -> GraphState:
    with locked_session(request) as session:
        session.redo()
        return _state(session)


@router.get("/graph/rules")
def get_rules(request: Request) -> RuleFile:
    """the rule file for the open graph (cursor-rules.json)."""
    with locked_session(request) as session:
        return session.generate_rule_file()


@router.post("/graph/markdown")
async def generate_markdown(request: Request) -> MarkdownResponse:
    """document the open graph's rules as markdown via the AI generator."""
    rule_file = await run_in_threadpool(_current_rule_file, request)
    try:
        markdown = await get_generator(request).rules_to_markdown(rule_file)
    except RuleGraphError as e:
        raise to_http_exception(e) from e
    return MarkdownResponse(markdown=markdown)
