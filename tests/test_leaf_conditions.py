"""
Leaf condition test suite.

One class per data source, plus the predefined token-standard checks
and dispatch by condition type.
"""

import unittest

from taco.conditions import (
    Condition,
    ContractCondition,
    ERC20Balance,
    ERC721Balance,
    ERC721Ownership,
    JsonApiCondition,
    JsonRpcCondition,
    JwtCondition,
    RpcCondition,
    TimeCondition,
    condition_from_obj,
    validate,
)
from taco.errors import InvalidConditionError

from tests.fixtures import (
    TEST_CHAIN_ID,
    TEST_CONTRACT_ADDRESS,
    TEST_CONTRACT_CONDITION,
    TEST_JSON_API_CONDITION,
    TEST_JSON_RPC_CONDITION,
    TEST_JWT_CONDITION,
    TEST_RPC_CONDITION,
    TEST_TIME_CONDITION,
    with_fields,
    without_fields,
)

BALANCE_OF_ABI = {
    "type": "function",
    "name": "balanceOf",
    "stateMutability": "view",
    "inputs": [{"name": "account", "type": "address", "internalType": "address"}],
    "outputs": [{"name": "", "type": "uint256", "internalType": "uint256"}],
}


class TestContractCondition(unittest.TestCase):
    
    def test_accepts_standard_contract_type(self):
        condition = ContractCondition(TEST_CONTRACT_CONDITION)
        self.assertEqual(condition.to_obj(), TEST_CONTRACT_CONDITION)
    
    def test_accepts_function_abi(self):
        obj = with_fields(
            without_fields(TEST_CONTRACT_CONDITION, "standardContractType"),
            functionAbi=BALANCE_OF_ABI,
        )
        condition = ContractCondition(obj)
        self.assertEqual(condition.to_obj()["functionAbi"], BALANCE_OF_ABI)
    
    def test_rejects_both_standard_type_and_abi(self):
        obj = with_fields(TEST_CONTRACT_CONDITION, functionAbi=BALANCE_OF_ABI)
        result = Condition.validate(ContractCondition.schema(), obj)
        
        self.assertEqual(
            result.error.messages("standardContractType"),
            ["At most one of the fields 'standardContractType' and 'functionAbi' must be defined"],
        )
    
    def test_rejects_neither_standard_type_nor_abi(self):
        obj = without_fields(TEST_CONTRACT_CONDITION, "standardContractType")
        result = Condition.validate(ContractCondition.schema(), obj)
        
        self.assertEqual(
            result.error.messages("standardContractType"),
            ["At least one of the fields 'standardContractType' and 'functionAbi' must be defined"],
        )
    
    def test_rejects_abi_name_mismatch(self):
        obj = with_fields(
            without_fields(TEST_CONTRACT_CONDITION, "standardContractType"),
            functionAbi=BALANCE_OF_ABI,
            method="ownerOf",
        )
        result = Condition.validate(ContractCondition.schema(), obj)
        self.assertTrue(result.error.messages("functionAbi"))
    
    def test_rejects_non_view_abi(self):
        abi = dict(BALANCE_OF_ABI, stateMutability="nonpayable")
        obj = with_fields(
            without_fields(TEST_CONTRACT_CONDITION, "standardContractType"),
            functionAbi=abi,
        )
        with self.assertRaises(InvalidConditionError):
            ContractCondition(obj)
    
    def test_contract_address_may_be_context_param(self):
        condition = ContractCondition(with_fields(TEST_CONTRACT_CONDITION, contractAddress=":tokenAddress"))
        self.assertEqual(condition.to_obj()["contractAddress"], ":tokenAddress")
    
    def test_rejects_invalid_contract_address(self):
        for address in ("0x123", "not-an-address", ""):
            with self.subTest(address=address):
                with self.assertRaises(InvalidConditionError):
                    ContractCondition(with_fields(TEST_CONTRACT_CONDITION, contractAddress=address))
    
    def test_parameters_default_to_empty_list(self):
        condition = ContractCondition(without_fields(TEST_CONTRACT_CONDITION, "parameters"))
        self.assertEqual(condition.to_obj()["parameters"], [])
    
    def test_rejects_unknown_field(self):
        result = Condition.validate(
            ContractCondition.schema(),
            with_fields(TEST_CONTRACT_CONDITION, unexpected=True),
        )
        self.assertTrue(result.error.messages("unexpected"))


class TestRpcCondition(unittest.TestCase):
    
    def test_accepts_valid_condition(self):
        self.assertEqual(RpcCondition(TEST_RPC_CONDITION).to_obj(), TEST_RPC_CONDITION)
    
    def test_rejects_unsupported_method(self):
        with self.assertRaises(InvalidConditionError):
            RpcCondition(with_fields(TEST_RPC_CONDITION, method="eth_call"))
    
    def test_rejects_invalid_chain(self):
        for chain in (-1, 0, "1", True):
            with self.subTest(chain=chain):
                result = Condition.validate(RpcCondition.schema(), with_fields(TEST_RPC_CONDITION, chain=chain))
                self.assertTrue(result.error.messages("chain"))
    
    def test_rejects_missing_parameters(self):
        with self.assertRaises(InvalidConditionError):
            RpcCondition(with_fields(TEST_RPC_CONDITION, parameters=[]))
    
    def test_first_parameter_must_be_address(self):
        with self.assertRaises(InvalidConditionError):
            RpcCondition(with_fields(TEST_RPC_CONDITION, parameters=["latest"]))


class TestTimeCondition(unittest.TestCase):
    
    def test_method_defaults_to_blocktime(self):
        condition = TimeCondition(without_fields(TEST_TIME_CONDITION, "method"))
        self.assertEqual(condition.to_obj(), TEST_TIME_CONDITION)
    
    def test_rejects_other_method(self):
        with self.assertRaises(InvalidConditionError):
            TimeCondition(with_fields(TEST_TIME_CONDITION, method="timestamp"))
    
    def test_return_value_test_index(self):
        condition = TimeCondition(with_fields(
            TEST_TIME_CONDITION,
            returnValueTest={"index": 0, "comparator": ">", "value": 100},
        ))
        self.assertEqual(condition.to_obj()["returnValueTest"]["index"], 0)
    
    def test_rejects_invalid_comparator(self):
        result = Condition.validate(
            TimeCondition.schema(),
            with_fields(TEST_TIME_CONDITION, returnValueTest={"comparator": "~=", "value": 1}),
        )
        self.assertTrue(result.error.messages("returnValueTest", "comparator"))
    
    def test_rejects_missing_return_value(self):
        with self.assertRaises(InvalidConditionError):
            TimeCondition(with_fields(TEST_TIME_CONDITION, returnValueTest={"comparator": ">"}))


class TestJsonApiCondition(unittest.TestCase):
    
    def test_accepts_valid_condition(self):
        self.assertEqual(JsonApiCondition(TEST_JSON_API_CONDITION).to_obj(), TEST_JSON_API_CONDITION)
    
    def test_query_is_optional(self):
        condition = JsonApiCondition(without_fields(TEST_JSON_API_CONDITION, "query"))
        self.assertNotIn("query", condition.to_obj())
    
    def test_rejects_non_https_endpoint(self):
        for endpoint in ("http://api.example.com", "ftp://api.example.com", "https://"):
            with self.subTest(endpoint=endpoint):
                with self.assertRaises(InvalidConditionError):
                    JsonApiCondition(with_fields(TEST_JSON_API_CONDITION, endpoint=endpoint))
    
    def test_rejects_invalid_query(self):
        with self.assertRaises(InvalidConditionError):
            JsonApiCondition(with_fields(TEST_JSON_API_CONDITION, query="ethereum.usd"))
    
    def test_authorization_token_must_be_context_param(self):
        condition = JsonApiCondition(with_fields(TEST_JSON_API_CONDITION, authorizationToken=":authToken"))
        self.assertEqual(condition.to_obj()["authorizationToken"], ":authToken")
        
        with self.assertRaises(InvalidConditionError):
            JsonApiCondition(with_fields(TEST_JSON_API_CONDITION, authorizationToken="Bearer abc"))
    
    def test_accepts_embedded_context_params(self):
        condition = JsonApiCondition({
            "endpoint": "https://api.example.com/:userId/data",
            "query": "$.data[?(@.owner == :userAddress)].value",
            "authorizationToken": ":authToken",
            "returnValueTest": {"comparator": "==", "value": True},
        })
        self.assertEqual(condition.to_obj()["conditionType"], "jsonapi")


class TestJsonRpcCondition(unittest.TestCase):
    
    def test_accepts_valid_condition(self):
        self.assertEqual(JsonRpcCondition(TEST_JSON_RPC_CONDITION).to_obj(), TEST_JSON_RPC_CONDITION)
    
    def test_params_may_be_object(self):
        condition = JsonRpcCondition(with_fields(TEST_JSON_RPC_CONDITION, params={"a": 1, "b": [2, 3]}))
        self.assertEqual(condition.to_obj()["params"], {"a": 1, "b": [2, 3]})
    
    def test_rejects_scalar_params(self):
        with self.assertRaises(InvalidConditionError):
            JsonRpcCondition(with_fields(TEST_JSON_RPC_CONDITION, params="42"))
    
    def test_rejects_missing_method(self):
        with self.assertRaises(InvalidConditionError):
            JsonRpcCondition(without_fields(TEST_JSON_RPC_CONDITION, "method"))


class TestJsonValues(unittest.TestCase):
    """Free-form fields must hold values that survive JSON serialization."""

    def assertRejectedAt(self, obj, *loc):
        result = validate(None, obj)
        self.assertIsNone(result.data)
        self.assertIsNotNone(result.error)
        self.assertEqual(result.error.issues[0].loc[:len(loc)], loc)

    def test_rejects_bytes_return_value(self):
        obj = with_fields(TEST_TIME_CONDITION, returnValueTest={"comparator": "==", "value": b"\xff"})
        self.assertRejectedAt(obj, "returnValueTest", "value")

    def test_rejects_nan_return_value(self):
        obj = with_fields(TEST_TIME_CONDITION, returnValueTest={"comparator": "==", "value": float("nan")})
        self.assertRejectedAt(obj, "returnValueTest", "value")

    def test_rejects_infinite_return_value(self):
        obj = with_fields(TEST_TIME_CONDITION, returnValueTest={"comparator": "<", "value": float("inf")})
        self.assertRejectedAt(obj, "returnValueTest", "value")

    def test_rejects_non_json_contract_parameter(self):
        obj = with_fields(TEST_CONTRACT_CONDITION, parameters=[b"\x00\x01"])
        self.assertRejectedAt(obj, "parameters", 0)

    def test_rejects_nan_json_api_parameter(self):
        obj = with_fields(TEST_JSON_API_CONDITION, parameters={"ids": float("nan")})
        self.assertRejectedAt(obj, "parameters", "ids")

    def test_rejects_non_json_json_rpc_params(self):
        obj = with_fields(TEST_JSON_RPC_CONDITION, params=[42, {1, 2}])
        self.assertRejectedAt(obj, "params")

    def test_construction_raises_on_non_json_value(self):
        with self.assertRaises(InvalidConditionError):
            TimeCondition(with_fields(
                TEST_TIME_CONDITION,
                returnValueTest={"comparator": "==", "value": float("nan")},
            ))

    def test_nested_json_values_are_kept(self):
        value = {"ok": [1, 2.5, None, True, "x"]}
        result = validate(None, with_fields(TEST_TIME_CONDITION, returnValueTest={"comparator": "==", "value": value}))
        self.assertIsNone(result.error)
        self.assertEqual(result.data["returnValueTest"]["value"], value)


class TestJwtCondition(unittest.TestCase):
    
    def test_accepts_valid_condition(self):
        self.assertEqual(JwtCondition(TEST_JWT_CONDITION).to_obj(), TEST_JWT_CONDITION)
    
    def test_jwt_token_defaults(self):
        condition = JwtCondition(without_fields(TEST_JWT_CONDITION, "jwtToken"))
        self.assertEqual(condition.to_obj()["jwtToken"], ":jwtToken")
    
    def test_rejects_literal_token(self):
        with self.assertRaises(InvalidConditionError):
            JwtCondition(with_fields(TEST_JWT_CONDITION, jwtToken="eyJhbGciOi..."))
    
    def test_rejects_non_pem_public_key(self):
        with self.assertRaises(InvalidConditionError):
            JwtCondition(with_fields(TEST_JWT_CONDITION, publicKey="abc"))


class TestPredefinedConditions(unittest.TestCase):
    
    def test_erc721_ownership(self):
        condition = ERC721Ownership({
            "contractAddress": TEST_CONTRACT_ADDRESS,
            "chain": TEST_CHAIN_ID,
            "parameters": [":nftId"],
        })
        obj = condition.to_obj()
        
        self.assertIsInstance(condition, ContractCondition)
        self.assertEqual(obj["method"], "ownerOf")
        self.assertEqual(obj["standardContractType"], "ERC721")
        self.assertEqual(obj["returnValueTest"], {"comparator": "==", "value": ":userAddress"})
    
    def test_erc721_balance(self):
        obj = ERC721Balance(contractAddress=TEST_CONTRACT_ADDRESS, chain=TEST_CHAIN_ID).to_obj()
        
        self.assertEqual(obj["method"], "balanceOf")
        self.assertEqual(obj["parameters"], [":userAddress"])
        self.assertEqual(obj["returnValueTest"], {"comparator": ">", "value": 0})
    
    def test_erc20_balance_override(self):
        obj = ERC20Balance({
            "contractAddress": TEST_CONTRACT_ADDRESS,
            "chain": TEST_CHAIN_ID,
            "returnValueTest": {"comparator": ">=", "value": 1000},
        }).to_obj()
        
        self.assertEqual(obj["standardContractType"], "ERC20")
        self.assertEqual(obj["returnValueTest"], {"comparator": ">=", "value": 1000})
    
    def test_dispatch_returns_base_class(self):
        """Predefined subclasses do not replace the registered contract class."""
        condition = condition_from_obj(ERC721Balance(contractAddress=TEST_CONTRACT_ADDRESS, chain=1).to_obj())
        self.assertIs(type(condition), ContractCondition)


class TestConditionDispatch(unittest.TestCase):
    
    def test_from_obj_dispatches_by_type(self):
        cases = [
            (TEST_CONTRACT_CONDITION, ContractCondition),
            (TEST_RPC_CONDITION, RpcCondition),
            (TEST_TIME_CONDITION, TimeCondition),
            (TEST_JSON_API_CONDITION, JsonApiCondition),
            (TEST_JSON_RPC_CONDITION, JsonRpcCondition),
            (TEST_JWT_CONDITION, JwtCondition),
        ]
        for obj, condition_class in cases:
            with self.subTest(condition_type=obj["conditionType"]):
                condition = Condition.from_obj(obj)
                self.assertIsInstance(condition, condition_class)
                self.assertEqual(condition, condition_class(obj))
    
    def test_rejects_unknown_condition_type(self):
        result = validate(None, with_fields(TEST_TIME_CONDITION, conditionType="weather"))
        self.assertEqual(result.error.issues[0].msg, "Invalid or missing condition type")
    
    def test_rejects_non_object(self):
        result = validate(None, "time")
        self.assertFalse(result.ok)
    
    def test_abstract_condition_cannot_be_built(self):
        with self.assertRaises(TypeError):
            Condition(TEST_TIME_CONDITION)
    
    def test_subclass_rejects_other_variant(self):
        with self.assertRaises(InvalidConditionError):
            TimeCondition.from_obj(TEST_RPC_CONDITION)
    
    def test_conditions_are_immutable(self):
        condition = TimeCondition(TEST_TIME_CONDITION)
        obj = condition.to_obj()
        obj["chain"] = 1
        
        self.assertEqual(condition.to_obj()["chain"], TEST_CHAIN_ID)
    
    def test_json_round_trip_is_canonical(self):
        condition = ContractCondition(TEST_CONTRACT_CONDITION)
        
        self.assertEqual(Condition.from_json(condition.to_json()), condition)
        self.assertTrue(condition.to_json().startswith('{"chain":'))
        self.assertTrue(condition.hash().startswith("sha256:"))


if __name__ == "__main__":
    unittest.main(verbosity=2)
