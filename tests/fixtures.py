"""
Shared condition objects for the test suite.

Every object is in normalized form (all defaults spelled out), so it
compares equal to the ``to_obj()`` of the condition built from it.
"""

import copy

TEST_CONTRACT_ADDRESS = "0x1e988ba4692e52Bc50b375bcC8585b95c48AaD77"
TEST_ACCOUNT_ADDRESS = "0x3aE4d2B3C9b4E5f6a7b8C9d0E1f2a3B4c5D6e7F8"
TEST_CHAIN_ID = 11155111

TEST_PUBLIC_KEY = (
    "-----BEGIN PUBLIC KEY-----\n"
    "MFkwEwYHKoZIzj0CAQYIKoZIzj0DAQcDQgAEVs/o5+uQbTjL3chynL4wXgUg2R9\n"
    "q9UU8I5mEovUf86QZ7kOBIjJwqnzD1omageEHWwHdBO6B+dFabmdT9POxg==\n"
    "-----END PUBLIC KEY-----\n"
)

TEST_CONTRACT_CONDITION = {
    "conditionType": "contract",
    "contractAddress": TEST_CONTRACT_ADDRESS,
    "chain": TEST_CHAIN_ID,
    "standardContractType": "ERC20",
    "method": "balanceOf",
    "parameters": [":userAddress"],
    "returnValueTest": {"comparator": ">", "value": 0},
}

TEST_TIME_CONDITION = {
    "conditionType": "time",
    "chain": TEST_CHAIN_ID,
    "method": "blocktime",
    "returnValueTest": {"comparator": ">", "value": 100},
}

TEST_RPC_CONDITION = {
    "conditionType": "rpc",
    "chain": TEST_CHAIN_ID,
    "method": "eth_getBalance",
    "parameters": [TEST_ACCOUNT_ADDRESS, "latest"],
    "returnValueTest": {"comparator": ">=", "value": 10000000000},
}

TEST_JSON_API_CONDITION = {
    "conditionType": "jsonapi",
    "endpoint": "https://api.coingecko.com/api/v3/simple/price",
    "query": "$.ethereum.usd",
    "parameters": {"ids": "ethereum", "vs_currencies": "usd"},
    "returnValueTest": {"comparator": "==", "value": 2},
}

TEST_JSON_RPC_CONDITION = {
    "conditionType": "jsonrpc",
    "endpoint": "https://math.example.com/",
    "method": "subtract",
    "params": [42, 23],
    "query": "$.mathresult",
    "returnValueTest": {"comparator": "==", "value": 19},
}

TEST_JWT_CONDITION = {
    "conditionType": "jwt",
    "jwtToken": ":jwtToken",
    "publicKey": TEST_PUBLIC_KEY,
    "expectedIssuer": "https://auth.example.com",
}

TEST_SEQUENTIAL_CONDITION = {
    "conditionType": "sequential",
    "conditionVariables": [
        {"varName": "rpc", "condition": TEST_RPC_CONDITION},
        {"varName": "time", "condition": TEST_TIME_CONDITION},
    ],
}

TEST_COMPOUND_CONDITION = {
    "conditionType": "compound",
    "operator": "and",
    "operands": [TEST_CONTRACT_CONDITION, TEST_TIME_CONDITION],
}


def with_fields(obj, **fields):
    """Deep copy of a condition object with some fields replaced."""
    result = copy.deepcopy(obj)
    result.update(fields)
    return result


def without_fields(obj, *names):
    """Deep copy of a condition object with some fields removed."""
    result = copy.deepcopy(obj)
    for name in names:
        result.pop(name, None)
    return result
