"""The exported rule document."""

from typing import Any

from pydantic import BaseModel, Field

RULE_FILE_NAME = "cursor-rules.json"

# a rule is open-ended: type, description, the node's ruleData and children
Rule = dict[str, Any]


class RuleFile(BaseModel):
    """nested rules derived from a graph, ready to serialize."""

    rules: list[Rule] = Field(default_factory=list)
