"""
Depth Analyzer for multi-conditions.

Compound and sequential nodes share one nesting budget: a sequential step
inside a compound operand (or the reverse) counts against the same depth.
Leaves have depth 0; a multi-condition node has depth
1 + max(depth of its children).
"""

from typing import Any, Callable, List, Optional

from .schemas import (
    BaseConditionModel,
    CompoundConditionModel,
    SequentialConditionModel,
)
from .shared import MAX_NESTED_DEPTH


def child_conditions(condition: Any) -> Optional[List[BaseConditionModel]]:
    """
    Direct sub-conditions of a multi-condition node.
    
    Returns:
        The operands or step conditions, or None for a leaf
    """
    if isinstance(condition, CompoundConditionModel):
        return list(condition.operands)
    if isinstance(condition, SequentialConditionModel):
        return [variable.condition for variable in condition.condition_variables]
    return None


def is_multi_condition(condition: Any) -> bool:
    return child_conditions(condition) is not None


def nested_depth(condition: Any) -> int:
    """Nesting depth of multi-condition nodes rooted at this condition."""
    children = child_conditions(condition)
    if children is None:
        return 0
    return 1 + max((nested_depth(child) for child in children), default=0)


def max_nested_depth(max_depth: int) -> Callable[[Any], bool]:
    """Build a check that accepts trees no deeper than ``max_depth``."""
    def check(condition: Any) -> bool:
        return nested_depth(condition) <= max_depth
    return check


def depth_error_message(max_depth: int = MAX_NESTED_DEPTH) -> str:
    return f"Exceeded max nested depth of {max_depth} for multi-condition type"
