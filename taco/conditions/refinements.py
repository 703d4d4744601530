"""
Whole-tree refinements.

Run after structural validation succeeds. Each refinement is a plain
function ``(node, path) -> List[ValidationIssue]`` registered per
condition type; refinements compose by listing, not by inheritance.

Order:
1. Per-node refinements for every node, children before parents
2. Root-only refinements (shared nesting depth), only if step 1 is clean
"""

from typing import Any, Callable, Dict, List

from .multi_condition import depth_error_message, max_nested_depth
from .schemas import (
    BaseConditionModel,
    CompoundConditionModel,
    ContractConditionModel,
    Loc,
    SequentialConditionModel,
    ValidationIssue,
)
from .shared import MAX_NESTED_DEPTH, ConditionType

Refinement = Callable[[Any, Loc], List[ValidationIssue]]


def check_operand_arity(node: CompoundConditionModel, path: Loc) -> List[ValidationIssue]:
    """'and'/'or' need at least two operands, 'not' exactly one."""
    count = len(node.operands)
    if node.operator in ("and", "or"):
        valid = count >= 2
    elif node.operator == "not":
        valid = count == 1
    else:
        valid = False
    
    if valid:
        return []
    return [ValidationIssue(
        loc=path + ("operands",),
        msg=f'Invalid number of operands {count} for operator "{node.operator}"',
        type="operand_arity",
    )]


def check_unique_variable_names(node: SequentialConditionModel, path: Loc) -> List[ValidationIssue]:
    names = [variable.var_name for variable in node.condition_variables]
    if len(names) == len(set(names)):
        return []
    return [ValidationIssue(
        loc=path + ("conditionVariables",),
        msg="Condition variable names must be unique",
        type="duplicate_var_name",
    )]


def check_contract_function(node: ContractConditionModel, path: Loc) -> List[ValidationIssue]:
    """Exactly one of standardContractType / functionAbi; ABI name must match method."""
    has_standard = node.standard_contract_type is not None
    has_abi = node.function_abi is not None
    
    if has_standard and has_abi:
        return [ValidationIssue(
            loc=path + ("standardContractType",),
            msg="At most one of the fields 'standardContractType' and 'functionAbi' must be defined",
            type="contract_function",
        )]
    if not has_standard and not has_abi:
        return [ValidationIssue(
            loc=path + ("standardContractType",),
            msg="At least one of the fields 'standardContractType' and 'functionAbi' must be defined",
            type="contract_function",
        )]
    if has_abi and node.function_abi["name"] != node.method:
        return [ValidationIssue(
            loc=path + ("functionAbi",),
            msg=f"Function ABI name '{node.function_abi['name']}' does not match method '{node.method}'",
            type="contract_function",
        )]
    return []


def check_nested_depth(node: Any, path: Loc, max_depth: int = MAX_NESTED_DEPTH) -> List[ValidationIssue]:
    if max_nested_depth(max_depth)(node):
        return []
    field = "operands" if isinstance(node, CompoundConditionModel) else "conditionVariables"
    return [ValidationIssue(
        loc=path + (field,),
        msg=depth_error_message(max_depth),
        type="max_nested_depth",
    )]


NODE_REFINEMENTS: Dict[str, List[Refinement]] = {
    ConditionType.COMPOUND.value: [check_operand_arity],
    ConditionType.SEQUENTIAL.value: [check_unique_variable_names],
    ConditionType.CONTRACT.value: [check_contract_function],
}

ROOT_REFINEMENTS: Dict[str, List[Refinement]] = {
    ConditionType.COMPOUND.value: [check_nested_depth],
    ConditionType.SEQUENTIAL.value: [check_nested_depth],
}


def _child_paths(node: Any, path: Loc):
    if isinstance(node, CompoundConditionModel):
        for i, operand in enumerate(node.operands):
            yield operand, path + ("operands", i)
    elif isinstance(node, SequentialConditionModel):
        for i, variable in enumerate(node.condition_variables):
            yield variable.condition, path + ("conditionVariables", i, "condition")


def _refine_nodes(node: Any, path: Loc) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    for child, child_path in _child_paths(node, path):
        issues.extend(_refine_nodes(child, child_path))
    for refinement in NODE_REFINEMENTS.get(node.condition_type, []):
        issues.extend(refinement(node, path))
    return issues


def refine_tree(root: BaseConditionModel) -> List[ValidationIssue]:
    """Run every refinement over a structurally valid tree."""
    issues = _refine_nodes(root, ())
    if issues:
        return issues
    for refinement in ROOT_REFINEMENTS.get(root.condition_type, []):
        issues.extend(refinement(root, ()))
    return issues
