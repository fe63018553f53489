"""Derive the nested rule document from a rule graph.

Starting at the hub, each reachable node becomes a rule whose children are the
rules of its edge targets, in edge order. The hub itself is never a rule.

Traversal keeps a visited set per path, not per graph:
- a node already on the current path contributes nothing, so cycles end;
- a node reachable along two paths appears under both (diamonds duplicate).
Recursion depth is therefore bounded by the number of nodes.
"""

import copy
from collections.abc import Iterable

from rulegraph.models.graph import GraphSnapshot, NodeType, RuleEdge, RuleNode
from rulegraph.models.rule_file import Rule, RuleFile


def build_rules(
    nodes: Iterable[RuleNode],
    edges: Iterable[RuleEdge],
) -> list[Rule]:
    """Build the top-level rule list for a graph.

    Args:
        nodes: graph nodes; the first hub-typed node is the root.
        edges: graph edges; their order becomes sibling order.

    Returns:
        Rules for the hub's descendants, or an empty list without a hub.
        Edges to unknown nodes are skipped.
    """
    nodes_by_id: dict[str, RuleNode] = {}
    for node in nodes:
        nodes_by_id.setdefault(node.id, node)

    children_of: dict[str, list[str]] = {}
    for edge in edges:
        children_of.setdefault(edge.source, []).append(edge.target)

    hub = next((n for n in nodes_by_id.values() if n.type == NodeType.hub), None)
    if hub is None:
        return []

    def visit(node_id: str, visited: frozenset[str]) -> list[Rule]:
        if node_id in visited:
            return []
        node = nodes_by_id.get(node_id)
        if node is None:
            return []
        path = visited | {node_id}

        child_rules: list[Rule] = []
        for child_id in children_of.get(node_id, []):
            child_rules.extend(visit(child_id, path))

        # hubs only group their children
        if node.type == NodeType.hub:
            return child_rules

        rule = _rule_for(node)
        if child_rules:
            rule["children"] = child_rules
        return [rule]

    return visit(hub.id, frozenset())


def _rule_for(node: RuleNode) -> Rule:
    rule: Rule = {
        "type": NodeType(node.type).value,
        "description": node.data.description or "",
    }
    # ruleData is spread last and may override type/description
    rule.update(copy.deepcopy(node.data.rule_data))
    return rule


def generate_rule_file(snapshot: GraphSnapshot) -> RuleFile:
    """Rule document for a whole graph snapshot."""
    return RuleFile(rules=build_rules(snapshot.nodes, snapshot.edges))
