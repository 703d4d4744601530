"""
Leaf condition variants.

Leaves are structurally independent of each other; each wraps one data
source the decrypting nodes can query.
"""

from .condition import Condition
from .shared import ConditionType


class ContractCondition(Condition):
    """On-chain contract call, by standard contract type or explicit ABI."""
    condition_type = ConditionType.CONTRACT.value


class RpcCondition(Condition):
    """Chain state read over JSON-RPC (``eth_getBalance``)."""
    condition_type = ConditionType.RPC.value


class TimeCondition(Condition):
    """Latest block timestamp on a chain."""
    condition_type = ConditionType.TIME.value


class JsonApiCondition(Condition):
    """HTTPS JSON document, optionally narrowed with a JSONPath query."""
    condition_type = ConditionType.JSON_API.value


class JsonRpcCondition(Condition):
    """JSON-RPC 2.0 call against an HTTPS endpoint."""
    condition_type = ConditionType.JSON_RPC.value


class JwtCondition(Condition):
    """JSON Web Token verified against a PEM public key."""
    condition_type = ConditionType.JWT.value
