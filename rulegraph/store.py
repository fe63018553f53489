"""Mutable store for the graph currently open in the editor.

The store owns the live node and edge lists. Every operation that changes them
hands a fresh snapshot to the registered listeners before returning; the
history manager is the usual listener.
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

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
    RuleEdge,
    RuleNode,
    default_graph,
)
from rulegraph.utils.identifiers import generate_edge_id, unique_id

logger = logging.getLogger(__name__)

Listener = Callable[[GraphSnapshot], None]


class GraphStore:
    """Single mutable source of truth for the active rule graph.

    Usage:
        store = GraphStore()
        history = HistoryManager(store)
        store.add_node(node, connect_to_hub=True)
        history.undo()
    """

    def __init__(
        self,
        initial: GraphSnapshot | None = None,
        listeners: Iterable[Listener] = (),
    ) -> None:
        """
        Args:
            initial: starting graph; a hub-only graph when omitted.
            listeners: callables notified with each committed snapshot.
        """
        graph = initial.copy_deep() if initial is not None else default_graph()
        self._nodes: list[RuleNode] = graph.nodes
        self._edges: list[RuleEdge] = graph.edges
        self._listeners: list[Listener] = list(listeners)

    # --- listeners ---

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    def _commit(self) -> None:
        snapshot = self.snapshot()
        for listener in self._listeners:
            listener(snapshot)

    # --- reads ---

    @property
    def nodes(self) -> list[RuleNode]:
        return [node.model_copy(deep=True) for node in self._nodes]

    @property
    def edges(self) -> list[RuleEdge]:
        return [edge.model_copy(deep=True) for edge in self._edges]

    def snapshot(self) -> GraphSnapshot:
        """Deep copy of the current graph."""
        return GraphSnapshot(nodes=self._nodes, edges=self._edges).copy_deep()

    def get_node(self, node_id: str) -> RuleNode | None:
        node = self._find_node(node_id)
        return node.model_copy(deep=True) if node else None

    def hub_node(self) -> RuleNode | None:
        for node in self._nodes:
            if node.type == NodeType.hub:
                return node.model_copy(deep=True)
        return None

    def _find_node(self, node_id: str) -> RuleNode | None:
        for node in self._nodes:
            if node.id == node_id:
                return node
        return None

    # --- batched changes ---

    def apply_node_changes(self, changes: Iterable[NodeChange]) -> None:
        """Apply a batch of node deltas as one commit.

        Removing a node also removes every edge attached to it. Changes that
        name an unknown node are ignored.
        """
        before = self.snapshot()
        nodes = before.copy_deep().nodes
        removed: set[str] = set()

        for change in changes:
            if isinstance(change, NodeAddChange):
                nodes.append(change.item.model_copy(deep=True))
                continue
            index = _index_of(nodes, change.id)
            if index is None:
                continue
            if isinstance(change, NodeRemoveChange):
                del nodes[index]
                removed.add(change.id)
            elif isinstance(change, NodePositionChange):
                if change.position is not None:
                    nodes[index].position = change.position.model_copy()
                if change.dragging is not None:
                    setattr(nodes[index], "dragging", change.dragging)
            elif isinstance(change, NodeSelectChange):
                setattr(nodes[index], "selected", change.selected)

        gone = removed - {node.id for node in nodes}
        edges = [
            edge
            for edge in before.edges
            if edge.source not in gone and edge.target not in gone
        ]
        self._replace_if_changed(before, GraphSnapshot(nodes=nodes, edges=edges))

    def apply_edge_changes(self, changes: Iterable[EdgeChange]) -> None:
        """Apply a batch of edge deltas as one commit."""
        before = self.snapshot()
        edges = before.copy_deep().edges

        for change in changes:
            if isinstance(change, EdgeAddChange):
                edges.append(change.item.model_copy(deep=True))
                continue
            index = _index_of(edges, change.id)
            if index is None:
                continue
            if isinstance(change, EdgeRemoveChange):
                del edges[index]
            elif isinstance(change, EdgeSelectChange):
                setattr(edges[index], "selected", change.selected)

        self._replace_if_changed(before, GraphSnapshot(nodes=before.nodes, edges=edges))

    def _replace_if_changed(self, before: GraphSnapshot, after: GraphSnapshot) -> None:
        if after.model_dump() == before.model_dump():
            return
        self._nodes = after.nodes
        self._edges = after.edges
        self._commit()

    # --- structural operations ---

    def connect(
        self,
        source: str,
        target: str,
        edge_type: str = DEFAULT_EDGE_TYPE,
    ) -> RuleEdge | None:
        """Add an edge from source to target.

        Endpoints are not checked. A second edge between the same pair is not
        added and None is returned.
        """
        for edge in self._edges:
            if edge.source == source and edge.target == target:
                return None
        edge = RuleEdge(
            id=self._new_edge_id(source, target),
            source=source,
            target=target,
            type=edge_type,
        )
        self._edges.append(edge)
        self._commit()
        return edge.model_copy(deep=True)

    def add_node(self, node: RuleNode, connect_to_hub: bool = False) -> None:
        """Insert a node, optionally with an edge from the hub to it.

        The node id is used as given; keeping it unique is up to the caller.
        """
        self._nodes.append(node.model_copy(deep=True))
        if connect_to_hub:
            hub = self.hub_node()
            if hub is None:
                logger.warning("No hub node; %s added without a hub edge", node.id)
            else:
                self._edges.append(
                    RuleEdge(
                        id=self._new_edge_id(hub.id, node.id),
                        source=hub.id,
                        target=node.id,
                        type=DEFAULT_EDGE_TYPE,
                    )
                )
        self._commit()

    def update_node_data(
        self,
        node_id: str,
        data: NodeDataUpdate | Mapping[str, Any],
    ) -> bool:
        """Shallow-merge fields into a node's data.

        Fields given as None are left as they are. Returns False, without
        committing, when the node does not exist.
        """
        node = self._find_node(node_id)
        if node is None:
            return False
        update = data if isinstance(data, NodeDataUpdate) else NodeDataUpdate.model_validate(data)
        fields = update.model_dump(exclude_unset=True, exclude_none=True, by_alias=False)
        if not fields:
            return True
        node.data = NodeData.model_validate({**node.data.model_dump(by_alias=False), **fields})
        self._commit()
        return True

    def remove_node(self, node_id: str) -> bool:
        """Delete a node and every edge that starts or ends at it."""
        index = _index_of(self._nodes, node_id)
        if index is None:
            return False
        del self._nodes[index]
        self._edges = [
            edge
            for edge in self._edges
            if edge.source != node_id and edge.target != node_id
        ]
        self._commit()
        return True

    def replace_all(
        self,
        nodes: Iterable[RuleNode],
        edges: Iterable[RuleEdge],
    ) -> None:
        """Swap in a whole graph, e.g. when switching projects."""
        self._nodes = [node.model_copy(deep=True) for node in nodes]
        self._edges = [edge.model_copy(deep=True) for edge in edges]
        self._commit()

    def restore(self, snapshot: GraphSnapshot) -> None:
        """Load a snapshot without notifying listeners (undo/redo)."""
        graph = snapshot.copy_deep()
        self._nodes = graph.nodes
        self._edges = graph.edges

    def _new_edge_id(self, source: str, target: str) -> str:
        return unique_id(
            generate_edge_id(source, target),
            {edge.id for edge in self._edges},
        )

    def __repr__(self) -> str:
        return f"GraphStore(nodes={len(self._nodes)}, edges={len(self._edges)})"


def _index_of(items: list[RuleNode] | list[RuleEdge], item_id: str) -> int | None:
    for index, item in enumerate(items):
        if item.id == item_id:
            return index
    return None
