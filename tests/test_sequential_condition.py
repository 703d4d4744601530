"""
Sequential condition test suite.

Steps are named; later steps may read earlier results through the
``:<varName>`` context variable.
"""

import unittest

from taco.conditions import (
    CompoundCondition,
    ConditionVariable,
    JsonApiCondition,
    RpcCondition,
    SequentialCondition,
    TimeCondition,
)
from taco.conditions.context import find_context_parameters
from taco.errors import InvalidConditionError

from tests.fixtures import (
    TEST_COMPOUND_CONDITION,
    TEST_CONTRACT_CONDITION,
    TEST_JSON_API_CONDITION,
    TEST_RPC_CONDITION,
    TEST_SEQUENTIAL_CONDITION,
    TEST_TIME_CONDITION,
    with_fields,
)


def validate_sequential(obj):
    return SequentialCondition.validate(SequentialCondition.schema(), obj)


class TestSequentialValidation(unittest.TestCase):
    
    def test_accepts_valid_sequential_condition(self):
        result = validate_sequential(TEST_SEQUENTIAL_CONDITION)
        
        self.assertIsNone(result.error)
        self.assertEqual(result.data, TEST_SEQUENTIAL_CONDITION)
    
    def test_infers_condition_type(self):
        condition = SequentialCondition({"conditionVariables": TEST_SEQUENTIAL_CONDITION["conditionVariables"]})
        self.assertEqual(condition.to_obj(), TEST_SEQUENTIAL_CONDITION)
    
    def test_rejects_empty_steps(self):
        result = validate_sequential({"conditionVariables": []})
        
        self.assertIsNone(result.data)
        self.assertEqual(result.error.issues[0].loc, ("conditionVariables",))
        self.assertEqual(result.error.issues[0].type, "too_short")
    
    def test_rejects_more_than_max_steps(self):
        steps = [
            {"varName": f"step{i}", "condition": TEST_TIME_CONDITION}
            for i in range(6)
        ]
        result = validate_sequential({"conditionVariables": steps})
        
        self.assertIsNone(result.data)
        self.assertEqual(result.error.issues[0].type, "too_long")
    
    def test_rejects_duplicate_var_names(self):
        result = validate_sequential({
            "conditionVariables": [
                {"varName": "same", "condition": TEST_RPC_CONDITION},
                {"varName": "same", "condition": TEST_TIME_CONDITION},
            ],
        })
        
        self.assertEqual(
            result.error.messages("conditionVariables"),
            ["Condition variable names must be unique"],
        )
    
    def test_rejects_invalid_var_name(self):
        """Variable names must be usable as context parameter identifiers."""
        for name in ("", "1st", "has-dash", ":prefixed"):
            with self.subTest(name=name):
                result = validate_sequential({
                    "conditionVariables": [{"varName": name, "condition": TEST_TIME_CONDITION}],
                })
                self.assertTrue(result.error.messages("conditionVariables", 0, "varName"))

    def test_rejects_reserved_var_name(self):
        """A step result must not shadow a requester-address parameter."""
        for name in ("userAddress", "userAddressEIP4361", "userAddressExternalEIP4361"):
            with self.subTest(name=name):
                result = validate_sequential({
                    "conditionVariables": [
                        {"varName": "time", "condition": TEST_TIME_CONDITION},
                        {"varName": name, "condition": TEST_TIME_CONDITION},
                    ],
                })
                self.assertIsNone(result.data)
                self.assertEqual(
                    result.error.messages("conditionVariables", 1, "varName"),
                    [f"Variable name {name} shadows a reserved context parameter"],
                )
    
    def test_rejects_invalid_step_condition(self):
        bad_step = with_fields(TEST_TIME_CONDITION, chain="mainnet")
        result = validate_sequential({
            "conditionVariables": [{"varName": "time", "condition": bad_step}],
        })
        
        self.assertTrue(result.error.messages("conditionVariables", 0, "condition", "chain"))
    
    def test_accepts_compound_step(self):
        result = validate_sequential({
            "conditionVariables": [
                {"varName": "compound", "condition": TEST_COMPOUND_CONDITION},
                {"varName": "time", "condition": TEST_TIME_CONDITION},
            ],
        })
        self.assertIsNone(result.error)
    
    def test_limits_depth_across_compound_steps(self):
        """sequential -> compound -> compound exceeds the shared budget."""
        nested = {
            "conditionType": "compound",
            "operator": "or",
            "operands": [TEST_TIME_CONDITION, TEST_COMPOUND_CONDITION],
        }
        result = validate_sequential({
            "conditionVariables": [{"varName": "nested", "condition": nested}],
        })
        
        self.assertIsNone(result.data)
        self.assertEqual(
            result.error.messages("conditionVariables"),
            ["Exceeded max nested depth of 2 for multi-condition type"],
        )
    
    def test_limits_depth_of_nested_sequential(self):
        inner = {
            "conditionType": "sequential",
            "conditionVariables": [{"varName": "inner", "condition": TEST_SEQUENTIAL_CONDITION}],
        }
        result = validate_sequential({
            "conditionVariables": [{"varName": "outer", "condition": inner}],
        })
        
        self.assertEqual(
            result.error.messages("conditionVariables"),
            ["Exceeded max nested depth of 2 for multi-condition type"],
        )


class TestSequentialConstruction(unittest.TestCase):
    
    def test_from_steps(self):
        """Steps may be ConditionVariables, (name, condition) pairs or objects."""
        condition = SequentialCondition.from_steps([
            ConditionVariable("rpc", RpcCondition(TEST_RPC_CONDITION)),
            ("time", TimeCondition(TEST_TIME_CONDITION)),
            {"varName": "contract", "condition": TEST_CONTRACT_CONDITION},
        ])
        
        self.assertEqual(condition.variable_names, ["rpc", "time", "contract"])
        self.assertIsInstance(condition.condition_variables[0].condition, RpcCondition)
        self.assertEqual(
            condition.to_obj()["conditionVariables"][1],
            {"varName": "time", "condition": TEST_TIME_CONDITION},
        )
    
    def test_condition_variable_context_param(self):
        self.assertEqual(ConditionVariable("balance", TEST_RPC_CONDITION).context_param, ":balance")
    
    def test_rejects_duplicate_names(self):
        with self.assertRaises(InvalidConditionError):
            SequentialCondition.from_steps([
                ("dup", TEST_RPC_CONDITION),
                ("dup", TEST_TIME_CONDITION),
            ])
    
    def test_sequential_inside_compound(self):
        condition = CompoundCondition.and_([
            SequentialCondition(TEST_SEQUENTIAL_CONDITION),
            TEST_TIME_CONDITION,
        ])
        self.assertIsInstance(condition.operands[0], SequentialCondition)


class TestSequentialContextVariables(unittest.TestCase):
    """Earlier step results are bound by the nodes, not by the requester."""
    
    def test_earlier_step_results_are_not_requested(self):
        condition = SequentialCondition.from_steps([
            ("balance", RpcCondition(with_fields(TEST_RPC_CONDITION, parameters=[":userAddress"]))),
            ("check", JsonApiCondition(with_fields(
                TEST_JSON_API_CONDITION,
                parameters={"balance": ":balance", "currency": ":currency"},
            ))),
        ])
        
        self.assertEqual(find_context_parameters(condition), {":userAddress", ":currency"})
    
    def test_later_step_names_are_still_requested(self):
        """A step cannot read a variable produced after it."""
        condition = SequentialCondition.from_steps([
            ("first", JsonApiCondition(with_fields(
                TEST_JSON_API_CONDITION, parameters={"value": ":second"},
            ))),
            ("second", TimeCondition(TEST_TIME_CONDITION)),
        ])
        
        self.assertEqual(find_context_parameters(condition), {":second"})

    def test_step_cannot_hide_requester_address(self):
        with self.assertRaises(InvalidConditionError):
            SequentialCondition({
                "conditionVariables": [
                    {"varName": "userAddress", "condition": TEST_TIME_CONDITION},
                    {"varName": "balance", "condition": TEST_CONTRACT_CONDITION},
                ],
            })

    def test_requester_address_in_later_step_is_requested(self):
        condition = SequentialCondition.from_steps([
            ("time", TimeCondition(TEST_TIME_CONDITION)),
            ("balance", TEST_CONTRACT_CONDITION),
        ])

        self.assertEqual(find_context_parameters(condition), {":userAddress"})


if __name__ == "__main__":
    unittest.main(verbosity=2)
