"""
Predefined contract conditions for common token standards.

Each class fills in the standard contract type, method and return value
test; callers supply the contract address, chain and any overrides.
"""

from typing import Any, Dict, Mapping, Optional

from .base import ContractCondition
from .shared import USER_ADDRESS_PARAM_DEFAULT


class _PredefinedContractCondition(ContractCondition):
    DEFAULTS: Dict[str, Any] = {}

    def __init__(self, value: Optional[Mapping[str, Any]] = None, **fields: Any):
        props: Dict[str, Any] = dict(self.DEFAULTS)
        props.update(value or {})
        props.update(fields)
        super().__init__(props)


class ERC721Ownership(_PredefinedContractCondition):
    """
    Requester owns a specific NFT.
    
    ``parameters`` holds the token id (a literal or context parameter).
    """
    DEFAULTS = {
        "standardContractType": "ERC721",
        "method": "ownerOf",
        "returnValueTest": {
            "comparator": "==",
            "value": USER_ADDRESS_PARAM_DEFAULT,
        },
    }


class ERC721Balance(_PredefinedContractCondition):
    """Requester holds at least one NFT of a collection."""
    DEFAULTS = {
        "standardContractType": "ERC721",
        "method": "balanceOf",
        "parameters": [USER_ADDRESS_PARAM_DEFAULT],
        "returnValueTest": {
            "comparator": ">",
            "value": 0,
        },
    }


class ERC20Balance(_PredefinedContractCondition):
    """Requester holds a positive balance of a fungible token."""
    DEFAULTS = {
        "standardContractType": "ERC20",
        "method": "balanceOf",
        "parameters": [USER_ADDRESS_PARAM_DEFAULT],
        "returnValueTest": {
            "comparator": ">",
            "value": 0,
        },
    }
