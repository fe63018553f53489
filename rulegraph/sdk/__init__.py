"""SDK for talking to the AI rule generator and the rulegraph server."""

from rulegraph.sdk.client import RuleGraphClient, RuleGraphClientError
from rulegraph.sdk.rule_generator import (
    GeneratedGraph,
    RuleGenerator,
    normalize_generated_graph,
)

__all__ = [
    "GeneratedGraph",
    "RuleGenerator",
    "RuleGraphClient",
    "RuleGraphClientError",
    "normalize_generated_graph",
]
