"""
Condition entity.

A ``Condition`` is a validated, immutable node of a condition tree. It is
built from a plain object, validated eagerly against its variant schema
(construction fails if the object is invalid) and projected back to a
plain object with ``to_obj()`` for embedding in ciphertext metadata.
"""

import copy
import json
import logging
import re
from typing import Any, ClassVar, Dict, Mapping, Optional, Type

from ..canonicalization import canonicalize_str
from ..errors import ConditionExpressionError, InvalidConditionError
from ..hashing import condition_hash
from ..logging_config import audit_log
from .schemas import (
    ANY_CONDITION_SCHEMA,
    BaseConditionModel,
    Schema,
    ValidationResult,
    get_schema,
    validate,
)
from .shared import USER_ADDRESS_PARAMS

logger = logging.getLogger(__name__)

# condition_type -> entity class
_CONDITION_CLASSES: Dict[str, Type["Condition"]] = {}


class Condition:
    """
    Base class for all condition variants.

    Subclasses declare ``condition_type``; the matching schema is taken
    from the registry. The discriminator never needs to be supplied.

    Example:
        condition = TimeCondition({
            "chain": 1,
            "returnValueTest": {"comparator": ">", "value": 1700000000},
        })
        condition.to_obj()["conditionType"]  # "time"
    """

    condition_type: ClassVar[Optional[str]] = None

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if cls.condition_type:
            # First class registered for a type wins, so specialised
            # subclasses (e.g. predefined ERC721 checks) don't shadow it.
            _CONDITION_CLASSES.setdefault(cls.condition_type, cls)

    def __init__(self, value: Optional[Mapping[str, Any]] = None, **fields: Any):
        if self.condition_type is None:
            raise TypeError("Condition is abstract; use a concrete condition class")

        props: Dict[str, Any] = {"conditionType": self.condition_type}
        props.update(value or {})
        props.update(fields)
        props = to_plain_obj(props)

        result = self.validate(self.schema(), props)
        if result.error is not None:
            audit_log.condition_rejected(self.condition_type, len(result.error))
            raise InvalidConditionError(result.error)

        self._value: Dict[str, Any] = result.data
        self._model: BaseConditionModel = result.model

    @classmethod
    def schema(cls) -> Schema:
        return get_schema(cls.condition_type)

    @staticmethod
    def validate(schema: Optional[Schema], obj: Any) -> ValidationResult:
        """Validate a plain object without constructing a condition."""
        return validate(schema, obj)

    @property
    def value(self) -> Dict[str, Any]:
        """Normalized plain object (a copy; conditions are immutable)."""
        return copy.deepcopy(self._value)

    @property
    def model(self) -> BaseConditionModel:
        return self._model

    def to_obj(self) -> Dict[str, Any]:
        return copy.deepcopy(self._value)

    def to_json(self) -> str:
        return canonicalize_str(self._value)

    def hash(self) -> str:
        return condition_hash(self._value)

    def requires_authentication(self) -> bool:
        """True if any requester-address parameter appears in the tree."""
        from .context.params import find_context_parameters
        return bool(find_context_parameters(self) & USER_ADDRESS_PARAMS)

    @classmethod
    def from_obj(cls, obj: Mapping[str, Any]) -> "Condition":
        """
        Build a condition of the right variant from a plain object.

        Called on a concrete subclass, the object must be of that variant.
        """
        if cls.condition_type is not None:
            return cls(obj)
        return condition_from_obj(obj)

    @classmethod
    def from_json(cls, data: str) -> "Condition":
        try:
            obj = json.loads(data)
        except json.JSONDecodeError as e:
            raise ConditionExpressionError(f"Invalid condition JSON: {e}") from e
        return cls.from_obj(obj)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Condition):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash(self.to_json())

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"


def to_plain_obj(value: Any) -> Any:
    """Replace any Condition instances nested in a value with their plain objects."""
    if isinstance(value, Condition):
        return value.to_obj()
    if isinstance(value, Mapping):
        return {k: to_plain_obj(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain_obj(v) for v in value]
    return value


def condition_from_obj(obj: Any) -> Condition:
    """
    Dispatch a plain object to its condition class by ``conditionType``.

    Raises:
        InvalidConditionError: if the object is not a valid condition
    """
    result = validate(ANY_CONDITION_SCHEMA, obj)
    if result.error is not None:
        audit_log.condition_rejected(
            obj.get("conditionType") if isinstance(obj, dict) else None,
            len(result.error),
        )
        raise InvalidConditionError(result.error)

    condition_class = _CONDITION_CLASSES[result.data["conditionType"]]
    logger.debug("Dispatching %s condition %s", result.data["conditionType"], condition_hash(result.data))
    return condition_class(result.data)


VERSION_PATTERN = re.compile(r'^[0-9]+\.[0-9]+\.[0-9]+$')


class ConditionExpression:
    """
    Versioned wire envelope for a condition tree.

    {"version": "1.0.0", "condition": {...}}

    Readers accept any version with the same major number.
    """

    VERSION = "1.0.0"

    def __init__(self, condition: Condition, version: str = VERSION):
        if not VERSION_PATTERN.match(version):
            raise ConditionExpressionError(f"Invalid version '{version}': must be semantic version")
        if version.split(".")[0] != self.VERSION.split(".")[0]:
            raise ConditionExpressionError(
                f"Unsupported condition expression version {version}, expected {self.VERSION}"
            )
        self.condition = condition
        self.version = version

    def to_obj(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "condition": self.condition.to_obj(),
        }

    def to_json(self) -> str:
        return canonicalize_str(self.to_obj())

    def hash(self) -> str:
        return condition_hash(self.to_obj())

    @classmethod
    def from_obj(cls, obj: Mapping[str, Any]) -> "ConditionExpression":
        if not isinstance(obj, Mapping):
            raise ConditionExpressionError("Condition expression must be an object")
        missing = [f for f in ("version", "condition") if f not in obj]
        if missing:
            raise ConditionExpressionError(f"Missing required fields: {missing}")
        version = obj["version"]
        if not isinstance(version, str):
            raise ConditionExpressionError("Condition expression version must be a string")
        return cls(condition_from_obj(obj["condition"]), version=version)

    @classmethod
    def from_json(cls, data: str) -> "ConditionExpression":
        try:
            obj = json.loads(data)
        except json.JSONDecodeError as e:
            raise ConditionExpressionError(f"Invalid condition expression JSON: {e}") from e
        return cls.from_obj(obj)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, ConditionExpression):
            return NotImplemented
        return self.to_obj() == other.to_obj()

    def __repr__(self) -> str:
        return f"ConditionExpression(version={self.version!r}, condition={self.condition!r})"
