"""
Compound conditions: boolean composition with ``and``, ``or`` and ``not``.

Arity:
- ``and`` / ``or``: 2 to 5 operands
- ``not``: exactly 1 operand

Operands may themselves be compound or sequential, within the shared
nesting depth budget.
"""

from typing import Any, Dict, List, Mapping, Sequence, Union

from .condition import Condition, condition_from_obj
from .shared import ConditionType

ConditionOrProps = Union[Condition, Mapping[str, Any]]


class CompoundCondition(Condition):
    """
    Boolean composition of conditions.

    Example:
        condition = CompoundCondition.or_([owns_nft, TimeCondition({...})])
    """

    condition_type = ConditionType.COMPOUND.value

    @classmethod
    def _with_operator(cls, operands: Sequence[ConditionOrProps], operator: str) -> "CompoundCondition":
        as_objects: List[Dict[str, Any]] = [
            operand.to_obj() if isinstance(operand, Condition) else dict(operand)
            for operand in operands
        ]
        return cls({"operator": operator, "operands": as_objects})

    @classmethod
    def or_(cls, conditions: Sequence[ConditionOrProps]) -> "CompoundCondition":
        return cls._with_operator(conditions, "or")

    @classmethod
    def and_(cls, conditions: Sequence[ConditionOrProps]) -> "CompoundCondition":
        return cls._with_operator(conditions, "and")

    @classmethod
    def not_(cls, condition: ConditionOrProps) -> "CompoundCondition":
        return cls._with_operator([condition], "not")

    @property
    def operator(self) -> str:
        return self._value["operator"]

    @property
    def operands(self) -> List[Condition]:
        return [condition_from_obj(operand) for operand in self._value["operands"]]
