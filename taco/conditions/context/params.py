"""
Context Parameter Scanner.

Walks a validated condition tree and collects every context parameter
token it references: whole-field tokens (``":authToken"``) as well as
tokens embedded in larger strings (``"https://api.example.com/:userId"``,
``"$.data[?(@.owner == :userAddress)]"``) and inside nested objects and
arrays (JSON-RPC ``params``, contract ``parameters``).

Variables produced by earlier steps of a sequential condition are bound by
the decrypting nodes and are excluded from the result.
"""

from typing import Any, Mapping, Set, Union

from ..condition import Condition
from ..shared import (
    CONTEXT_PARAM_PREFIX,
    USER_ADDRESS_PARAM_DEFAULT,
    ConditionType,
    find_context_params_in_string,
)


def _scan_value(value: Any) -> Set[str]:
    if isinstance(value, str):
        return set(find_context_params_in_string(value))
    if isinstance(value, Mapping):
        found: Set[str] = set()
        for item in value.values():
            found |= _scan_value(item)
        return found
    if isinstance(value, (list, tuple)):
        found = set()
        for item in value:
            found |= _scan_value(item)
        return found
    return set()


def _scan_condition(obj: Mapping[str, Any]) -> Set[str]:
    condition_type = obj.get("conditionType")
    
    if condition_type == ConditionType.COMPOUND.value:
        found: Set[str] = set()
        for operand in obj["operands"]:
            found |= _scan_condition(operand)
        return found
    
    if condition_type == ConditionType.SEQUENTIAL.value:
        found = set()
        produced: Set[str] = set()
        for variable in obj["conditionVariables"]:
            found |= _scan_condition(variable["condition"]) - produced
            produced.add(f"{CONTEXT_PARAM_PREFIX}{variable['varName']}")
        return found
    
    return _scan_value({k: v for k, v in obj.items() if k != "conditionType"})


def find_context_parameters(condition: Union[Condition, Mapping[str, Any]]) -> Set[str]:
    """
    Distinct context parameters referenced anywhere in a condition tree.
    
    Args:
        condition: A Condition, or the plain object of a validated one
    
    Returns:
        Set of tokens, e.g. {":userAddress", ":nftId"}
    """
    obj = condition.to_obj() if isinstance(condition, Condition) else condition
    return _scan_condition(obj)


def requested_context_parameters(
    condition: Union[Condition, Mapping[str, Any]],
    requester_authentication: bool = False,
) -> Set[str]:
    """
    Parameters that must be supplied before a decryption request.
    
    When requester authentication is engaged the nodes always ask for the
    requester's address, whether or not the tree mentions it.
    """
    params = find_context_parameters(condition)
    if requester_authentication:
        params.add(USER_ADDRESS_PARAM_DEFAULT)
    return params
