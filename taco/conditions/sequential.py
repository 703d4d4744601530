"""
Sequential conditions: ordered, named steps.

Each step is a full condition validated on its own. The decrypting nodes
evaluate steps in order and expose each result to later steps as the
context variable ``:<varName>``; those variables are never supplied by the
requester.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence, Tuple, Union

from .condition import Condition, condition_from_obj, to_plain_obj
from .shared import CONTEXT_PARAM_PREFIX, ConditionType


@dataclass(frozen=True)
class ConditionVariable:
    """A named step of a sequential condition."""
    var_name: str
    condition: Union[Condition, Mapping[str, Any]]

    @property
    def context_param(self) -> str:
        """Token by which later steps refer to this step's result."""
        return f"{CONTEXT_PARAM_PREFIX}{self.var_name}"

    def to_obj(self) -> Dict[str, Any]:
        return {
            "varName": self.var_name,
            "condition": to_plain_obj(self.condition),
        }


StepLike = Union[ConditionVariable, Tuple[str, Any], Mapping[str, Any]]


def _step_obj(step: StepLike) -> Any:
    if isinstance(step, ConditionVariable):
        return step.to_obj()
    if isinstance(step, tuple) and len(step) == 2:
        return ConditionVariable(step[0], step[1]).to_obj()
    return to_plain_obj(step)


class SequentialCondition(Condition):
    """
    Ordered composition of named condition steps.

    Example:
        condition = SequentialCondition.from_steps([
            ("balance", RpcCondition({...})),
            ("enough", JsonApiCondition({... "value": ":balance" ...})),
        ])
    """

    condition_type = ConditionType.SEQUENTIAL.value

    @classmethod
    def from_steps(cls, steps: Sequence[StepLike]) -> "SequentialCondition":
        """Build from ConditionVariable instances, (name, condition) pairs or plain objects."""
        return cls({"conditionVariables": [_step_obj(step) for step in steps]})

    @property
    def condition_variables(self) -> List[ConditionVariable]:
        return [
            ConditionVariable(item["varName"], condition_from_obj(item["condition"]))
            for item in self._value["conditionVariables"]
        ]

    @property
    def variable_names(self) -> List[str]:
        return [item["varName"] for item in self._value["conditionVariables"]]
