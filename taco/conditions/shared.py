"""
Building blocks shared by every condition variant: the context parameter
grammar, reserved parameter names and the return value test.
"""

import re
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, JsonValue

CONTEXT_PARAM_PREFIX = ":"

# Whole-string match, e.g. ":userAddress"
CONTEXT_PARAM_REGEXP = re.compile(r'^:[a-zA-Z_][a-zA-Z0-9_]*$')

# Embedded occurrences, e.g. "https://api.example.com/:userId/data"
CONTEXT_PARAM_SEARCH_REGEXP = re.compile(r':[a-zA-Z_][a-zA-Z0-9_]*')

# Address of the party requesting decryption
USER_ADDRESS_PARAM_DEFAULT = ":userAddress"
USER_ADDRESS_PARAM_EIP4361 = ":userAddressEIP4361"
USER_ADDRESS_PARAM_EXTERNAL_EIP4361 = ":userAddressExternalEIP4361"

USER_ADDRESS_PARAMS = frozenset({
    USER_ADDRESS_PARAM_DEFAULT,
    USER_ADDRESS_PARAM_EIP4361,
    USER_ADDRESS_PARAM_EXTERNAL_EIP4361,
})

# Parameters that may only be bound to an auth provider, never a literal
RESERVED_CONTEXT_PARAMS = USER_ADDRESS_PARAMS

ETH_ADDRESS_REGEXP = re.compile(r'^0x[a-fA-F0-9]{40}$')
IDENTIFIER_REGEXP = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_]*$')

MAX_OPERANDS = 5
MAX_NESTED_DEPTH = 2


class ConditionType(str, Enum):
    CONTRACT = "contract"
    RPC = "rpc"
    TIME = "time"
    JSON_API = "jsonapi"
    JSON_RPC = "jsonrpc"
    JWT = "jwt"
    COMPOUND = "compound"
    SEQUENTIAL = "sequential"


LEAF_CONDITION_TYPES = frozenset({
    ConditionType.CONTRACT.value,
    ConditionType.RPC.value,
    ConditionType.TIME.value,
    ConditionType.JSON_API.value,
    ConditionType.JSON_RPC.value,
    ConditionType.JWT.value,
})

MULTI_CONDITION_TYPES = frozenset({
    ConditionType.COMPOUND.value,
    ConditionType.SEQUENTIAL.value,
})

CONDITION_TYPES = LEAF_CONDITION_TYPES | MULTI_CONDITION_TYPES


class Comparator(str, Enum):
    EQ = "=="
    NE = "!="
    GT = ">"
    LT = "<"
    GE = ">="
    LE = "<="


def is_context_param(value: Any) -> bool:
    """True if the value is exactly one context parameter token."""
    return isinstance(value, str) and bool(CONTEXT_PARAM_REGEXP.match(value))


def find_context_params_in_string(value: str):
    """Return every context parameter token embedded in a string."""
    return CONTEXT_PARAM_SEARCH_REGEXP.findall(value)


class ReturnValueTest(BaseModel):
    """Test applied by the decrypting nodes to the value a condition produces."""
    
    model_config = ConfigDict(extra="forbid", frozen=True, allow_inf_nan=False)
    
    index: Optional[int] = Field(default=None, ge=0)
    comparator: Comparator
    value: JsonValue
