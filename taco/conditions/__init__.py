"""
Condition model.

Leaf conditions (contract, rpc, time, jsonapi, jsonrpc, jwt) and the two
multi-condition kinds (compound, sequential), validated eagerly against
the schema registry and bounded to a shared nesting depth.
"""

from .base import (
    ContractCondition,
    JsonApiCondition,
    JsonRpcCondition,
    JwtCondition,
    RpcCondition,
    TimeCondition,
)
from .compound_condition import CompoundCondition
from .condition import Condition, ConditionExpression, condition_from_obj
from .predefined import ERC20Balance, ERC721Balance, ERC721Ownership
from .schemas import (
    ANY_CONDITION_SCHEMA,
    CONDITION_SCHEMAS,
    ConditionValidationError,
    ValidationIssue,
    ValidationResult,
    get_schema,
    validate,
)
from .sequential import ConditionVariable, SequentialCondition
from .shared import (
    MAX_NESTED_DEPTH,
    MAX_OPERANDS,
    USER_ADDRESS_PARAM_DEFAULT,
    ConditionType,
)

__all__ = [
    "Condition",
    "ConditionExpression",
    "condition_from_obj",
    "ContractCondition",
    "RpcCondition",
    "TimeCondition",
    "JsonApiCondition",
    "JsonRpcCondition",
    "JwtCondition",
    "CompoundCondition",
    "SequentialCondition",
    "ConditionVariable",
    "ERC721Ownership",
    "ERC721Balance",
    "ERC20Balance",
    "ANY_CONDITION_SCHEMA",
    "CONDITION_SCHEMAS",
    "ConditionValidationError",
    "ValidationIssue",
    "ValidationResult",
    "get_schema",
    "validate",
    "ConditionType",
    "MAX_NESTED_DEPTH",
    "MAX_OPERANDS",
    "USER_ADDRESS_PARAM_DEFAULT",
]
