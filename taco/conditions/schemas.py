"""
Condition Schema Registry

Per-variant structural schemas for condition trees. Each variant is a
pydantic model whose field aliases are the wire names (``conditionType``,
``returnValueTest``, ...). Compound and sequential models reference the
recursive ``AnyCondition`` union by forward reference; the cycle is
resolved once by ``model_rebuild()`` at the bottom of this module.

Validation runs in two phases:
1. Structural validation of the whole tree by pydantic
2. Whole-tree refinements (see ``refinements.py``), only if phase 1 passed

``validate()`` never raises. It returns a ``ValidationResult`` holding
either the normalized plain object or a ``ConditionValidationError``.
"""

import copy
from dataclasses import dataclass, field
from typing import Annotated, Any, ClassVar, Dict, List, Literal, Optional, Tuple, Type, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    JsonValue,
    Tag,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel, to_snake
from pydantic_core import PydanticCustomError, PydanticSerializationError

from .shared import (
    CONDITION_TYPES,
    ETH_ADDRESS_REGEXP,
    CONTEXT_PARAM_PREFIX,
    IDENTIFIER_REGEXP,
    MAX_OPERANDS,
    RESERVED_CONTEXT_PARAMS,
    ConditionType,
    ReturnValueTest,
    is_context_param,
)

ChainId = Annotated[int, Field(strict=True, gt=0)]
NonEmptyStr = Annotated[str, Field(min_length=1)]
PositiveInt = Annotated[int, Field(strict=True, gt=0)]

Loc = Tuple[Union[str, int], ...]


# ============================================================
# Field checks
# ============================================================

def _check_context_param(value: str) -> str:
    if not is_context_param(value):
        raise PydanticCustomError(
            "context_param",
            "Invalid context parameter: {value}",
            {"value": value},
        )
    return value


def _check_address_or_context_param(value: Any) -> Any:
    if isinstance(value, str) and (ETH_ADDRESS_REGEXP.match(value) or is_context_param(value)):
        return value
    raise PydanticCustomError(
        "eth_address",
        "Invalid Ethereum address or context parameter",
    )


def _check_https_url(value: str) -> str:
    if not value.startswith("https://") or len(value) <= len("https://"):
        raise PydanticCustomError("https_url", "Endpoint must be an https:// URL")
    return value


def _check_json_path(value: str) -> str:
    if not value.startswith("$"):
        raise PydanticCustomError("json_path", "Invalid JSONPath query: must start with '$'")
    return value


# ============================================================
# Base model
# ============================================================

class BaseConditionModel(BaseModel):
    """
    Common configuration for every condition variant.

    The discriminator and any declared defaults are written into the input
    before validation so that they count as explicitly set and survive
    ``model_dump(exclude_unset=True)``.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
        allow_inf_nan=False,
    )

    CONDITION_TYPE: ClassVar[str]
    DEFAULTS: ClassVar[Dict[str, Any]] = {}

    @model_validator(mode="before")
    @classmethod
    def apply_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        defaults = {"conditionType": cls.CONDITION_TYPE, **cls.DEFAULTS}
        for key, default in defaults.items():
            if key not in data and to_snake(key) not in data:
                data[key] = copy.deepcopy(default)
        return data


# ============================================================
# Leaf conditions
# ============================================================

class ContractConditionModel(BaseConditionModel):
    """Call a view function on a contract and test its return value."""

    CONDITION_TYPE: ClassVar[str] = ConditionType.CONTRACT.value
    DEFAULTS: ClassVar[Dict[str, Any]] = {"parameters": []}

    condition_type: Literal["contract"] = "contract"
    contract_address: str
    chain: ChainId
    method: NonEmptyStr
    parameters: List[JsonValue] = Field(default_factory=list)
    standard_contract_type: Optional[Literal["ERC20", "ERC721"]] = None
    function_abi: Optional[Dict[str, JsonValue]] = None
    return_value_test: ReturnValueTest

    @field_validator("contract_address")
    @classmethod
    def check_contract_address(cls, value: str) -> str:
        return _check_address_or_context_param(value)

    @field_validator("function_abi")
    @classmethod
    def check_function_abi(cls, value: Optional[Dict[str, JsonValue]]) -> Optional[Dict[str, JsonValue]]:
        if value is None:
            return value
        if value.get("type") != "function":
            raise PydanticCustomError("function_abi", "ABI entry must have type 'function'")
        if not isinstance(value.get("name"), str) or not value["name"]:
            raise PydanticCustomError("function_abi", "ABI entry must have a name")
        for key in ("inputs", "outputs"):
            if not isinstance(value.get(key), list):
                raise PydanticCustomError(
                    "function_abi", "ABI entry must define '{key}' as a list", {"key": key}
                )
        if value.get("stateMutability", "view") not in ("view", "pure"):
            raise PydanticCustomError("function_abi", "ABI function must be view or pure")
        return value


class RpcConditionModel(BaseConditionModel):
    """Query chain state over JSON-RPC (currently the account balance)."""

    CONDITION_TYPE: ClassVar[str] = ConditionType.RPC.value

    condition_type: Literal["rpc"] = "rpc"
    chain: ChainId
    method: Literal["eth_getBalance"]
    parameters: List[JsonValue] = Field(min_length=1, max_length=2)
    return_value_test: ReturnValueTest

    @field_validator("parameters")
    @classmethod
    def check_parameters(cls, value: List[JsonValue]) -> List[JsonValue]:
        _check_address_or_context_param(value[0])
        return value


class TimeConditionModel(BaseConditionModel):
    """Compare the latest block timestamp on a chain."""

    CONDITION_TYPE: ClassVar[str] = ConditionType.TIME.value
    DEFAULTS: ClassVar[Dict[str, Any]] = {"method": "blocktime"}

    condition_type: Literal["time"] = "time"
    chain: ChainId
    method: Literal["blocktime"] = "blocktime"
    return_value_test: ReturnValueTest


class JsonApiConditionModel(BaseConditionModel):
    """Fetch an HTTPS JSON document and test a JSONPath selection of it."""

    CONDITION_TYPE: ClassVar[str] = ConditionType.JSON_API.value

    condition_type: Literal["jsonapi"] = "jsonapi"
    endpoint: str
    query: Optional[str] = None
    parameters: Optional[Dict[str, JsonValue]] = None
    authorization_token: Optional[str] = None
    return_value_test: ReturnValueTest

    @field_validator("endpoint")
    @classmethod
    def check_endpoint(cls, value: str) -> str:
        return _check_https_url(value)

    @field_validator("query")
    @classmethod
    def check_query(cls, value: Optional[str]) -> Optional[str]:
        return value if value is None else _check_json_path(value)

    @field_validator("authorization_token")
    @classmethod
    def check_authorization_token(cls, value: Optional[str]) -> Optional[str]:
        return value if value is None else _check_context_param(value)


class JsonRpcConditionModel(BaseConditionModel):
    """Call a JSON-RPC 2.0 endpoint and test (a JSONPath selection of) its result."""

    CONDITION_TYPE: ClassVar[str] = ConditionType.JSON_RPC.value

    condition_type: Literal["jsonrpc"] = "jsonrpc"
    endpoint: str
    method: NonEmptyStr
    params: Optional[Union[Dict[str, JsonValue], List[JsonValue]]] = None
    query: Optional[str] = None
    authorization_token: Optional[str] = None
    return_value_test: ReturnValueTest

    @field_validator("endpoint")
    @classmethod
    def check_endpoint(cls, value: str) -> str:
        return _check_https_url(value)

    @field_validator("query")
    @classmethod
    def check_query(cls, value: Optional[str]) -> Optional[str]:
        return value if value is None else _check_json_path(value)

    @field_validator("authorization_token")
    @classmethod
    def check_authorization_token(cls, value: Optional[str]) -> Optional[str]:
        return value if value is None else _check_context_param(value)


class JwtConditionModel(BaseConditionModel):
    """Require a JSON Web Token signed by a known key."""

    CONDITION_TYPE: ClassVar[str] = ConditionType.JWT.value
    DEFAULTS: ClassVar[Dict[str, Any]] = {"jwtToken": ":jwtToken"}

    condition_type: Literal["jwt"] = "jwt"
    jwt_token: str = ":jwtToken"
    public_key: NonEmptyStr
    expected_issuer: Optional[str] = None
    subject: Optional[str] = None
    expiration_window: Optional[PositiveInt] = None
    issued_window: Optional[PositiveInt] = None

    @field_validator("jwt_token")
    @classmethod
    def check_jwt_token(cls, value: str) -> str:
        return _check_context_param(value)

    @field_validator("public_key")
    @classmethod
    def check_public_key(cls, value: str) -> str:
        if not value.strip().startswith("-----BEGIN"):
            raise PydanticCustomError("public_key", "Public key must be PEM encoded")
        return value


# ============================================================
# Multi-conditions
# ============================================================

class CompoundConditionModel(BaseConditionModel):
    """Boolean composition of 1 to MAX_OPERANDS conditions."""

    CONDITION_TYPE: ClassVar[str] = ConditionType.COMPOUND.value

    condition_type: Literal["compound"] = "compound"
    operator: Literal["and", "or", "not"]
    operands: List["AnyCondition"] = Field(min_length=1, max_length=MAX_OPERANDS)


class ConditionVariableModel(BaseModel):
    """One named step of a sequential condition."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
        allow_inf_nan=False,
    )

    var_name: str
    condition: "AnyCondition"

    @field_validator("var_name")
    @classmethod
    def check_var_name(cls, value: str) -> str:
        if not IDENTIFIER_REGEXP.match(value):
            raise PydanticCustomError(
                "var_name", "Invalid variable name: {value}", {"value": value}
            )
        if CONTEXT_PARAM_PREFIX + value in RESERVED_CONTEXT_PARAMS:
            raise PydanticCustomError(
                "var_name",
                "Variable name {value} shadows a reserved context parameter",
                {"value": value},
            )
        return value


class SequentialConditionModel(BaseConditionModel):
    """Ordered steps; later steps may read earlier results as ``:<varName>``."""

    CONDITION_TYPE: ClassVar[str] = ConditionType.SEQUENTIAL.value

    condition_type: Literal["sequential"] = "sequential"
    condition_variables: List[ConditionVariableModel] = Field(
        min_length=1, max_length=MAX_OPERANDS
    )


# ============================================================
# Registry and recursive union
# ============================================================

CONDITION_SCHEMAS: Dict[str, Type[BaseConditionModel]] = {
    ConditionType.CONTRACT.value: ContractConditionModel,
    ConditionType.RPC.value: RpcConditionModel,
    ConditionType.TIME.value: TimeConditionModel,
    ConditionType.JSON_API.value: JsonApiConditionModel,
    ConditionType.JSON_RPC.value: JsonRpcConditionModel,
    ConditionType.JWT.value: JwtConditionModel,
    ConditionType.COMPOUND.value: CompoundConditionModel,
    ConditionType.SEQUENTIAL.value: SequentialConditionModel,
}


def infer_condition_type(value: Dict[str, Any]) -> Optional[str]:
    """
    Guess the variant of a plain object that omits ``conditionType``.

    The discriminator is always optional on input, so nested operands
    written as ``{"operator": "or", "operands": [...]}`` still dispatch.
    """
    if "operator" in value or "operands" in value:
        return ConditionType.COMPOUND.value
    if "conditionVariables" in value:
        return ConditionType.SEQUENTIAL.value
    if "contractAddress" in value or "standardContractType" in value or "functionAbi" in value:
        return ConditionType.CONTRACT.value
    if "jwtToken" in value or "publicKey" in value:
        return ConditionType.JWT.value
    if "endpoint" in value:
        return ConditionType.JSON_RPC.value if "method" in value else ConditionType.JSON_API.value
    if value.get("method") == "blocktime":
        return ConditionType.TIME.value
    if "chain" in value:
        return ConditionType.RPC.value
    return None


def _condition_tag(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        tag = value.get("conditionType")
        return tag if tag is not None else infer_condition_type(value)
    return getattr(value, "condition_type", None)


AnyCondition = Annotated[
    Union[
        Annotated[ContractConditionModel, Tag("contract")],
        Annotated[RpcConditionModel, Tag("rpc")],
        Annotated[TimeConditionModel, Tag("time")],
        Annotated[JsonApiConditionModel, Tag("jsonapi")],
        Annotated[JsonRpcConditionModel, Tag("jsonrpc")],
        Annotated[JwtConditionModel, Tag("jwt")],
        Annotated[CompoundConditionModel, Tag("compound")],
        Annotated[SequentialConditionModel, Tag("sequential")],
    ],
    Discriminator(
        _condition_tag,
        custom_error_type="invalid_condition_type",
        custom_error_message="Invalid or missing condition type",
    ),
]

CompoundConditionModel.model_rebuild()
ConditionVariableModel.model_rebuild()
SequentialConditionModel.model_rebuild()

ANY_CONDITION_SCHEMA = TypeAdapter(AnyCondition)

Schema = Union[Type[BaseConditionModel], TypeAdapter]


# ============================================================
# Validation results
# ============================================================

@dataclass(frozen=True)
class ValidationIssue:
    """A single diagnostic scoped to a field path."""
    loc: Loc
    msg: str
    type: str = "value_error"

    def to_dict(self) -> Dict[str, Any]:
        return {"loc": self.loc, "msg": self.msg, "type": self.type}


class ConditionValidationError:
    """
    Structured, field-path-scoped validation diagnostics.

    Not an exception: it is returned inside ``ValidationResult`` and
    carried by ``InvalidConditionError`` when construction fails.
    """

    def __init__(self, issues: List[ValidationIssue]):
        self.issues = list(issues)

    @classmethod
    def from_pydantic(cls, error: ValidationError) -> "ConditionValidationError":
        issues = [
            ValidationIssue(
                loc=_strip_union_tags(tuple(e["loc"])),
                msg=e["msg"],
                type=e["type"],
            )
            for e in error.errors(include_url=False)
        ]
        return cls(issues)

    def errors(self) -> List[Dict[str, Any]]:
        return [issue.to_dict() for issue in self.issues]

    def messages(self, *loc: Union[str, int]) -> List[str]:
        """Messages reported at exactly the given path."""
        return [issue.msg for issue in self.issues if issue.loc == tuple(loc)]

    def format(self) -> Dict[Any, Any]:
        """
        Nest messages by path.

        Example:
            {"operands": {"_errors": ["Invalid number of operands 1 for operator \"and\""]}}
        """
        formatted: Dict[Any, Any] = {"_errors": []}
        for issue in self.issues:
            node = formatted
            for part in issue.loc:
                node = node.setdefault(part, {"_errors": []})
            node["_errors"].append(issue.msg)
        return formatted

    def __len__(self) -> int:
        return len(self.issues)

    def __str__(self) -> str:
        return "; ".join(
            f"{'.'.join(str(p) for p in issue.loc) or '<root>'}: {issue.msg}"
            for issue in self.issues
        )

    def __repr__(self) -> str:
        return f"ConditionValidationError({self.issues!r})"


@dataclass
class ValidationResult:
    """Either the normalized plain object (``data``) or diagnostics (``error``)."""
    data: Optional[Dict[str, Any]] = None
    error: Optional[ConditionValidationError] = None
    model: Optional[BaseConditionModel] = field(default=None, repr=False)

    @property
    def ok(self) -> bool:
        return self.error is None


def _strip_union_tags(loc: Loc) -> Loc:
    # Discriminated unions insert the tag into the path, e.g.
    # ("operands", 0, "rpc", "chain"); wire paths do not contain it.
    return tuple(part for part in loc if not (isinstance(part, str) and part in CONDITION_TYPES))


def dump_condition(model: BaseModel) -> Dict[str, Any]:
    """Plain-object projection of a validated model, using wire names."""
    return model.model_dump(mode="json", by_alias=True, exclude_unset=True)


def get_schema(condition_type: str) -> Type[BaseConditionModel]:
    """Look up the schema for a condition type."""
    try:
        return CONDITION_SCHEMAS[condition_type]
    except KeyError:
        raise ValueError(f"Unknown condition type: {condition_type}") from None


def validate(schema: Optional[Schema], raw: Any) -> ValidationResult:
    """
    Validate a plain-object condition against a schema.

    Args:
        schema: A model from ``CONDITION_SCHEMAS`` or ``ANY_CONDITION_SCHEMA``
            (``None`` means any condition)
        raw: The plain-object condition

    Returns:
        ValidationResult with ``data`` on success, ``error`` otherwise
    """
    from .refinements import refine_tree

    if schema is None:
        schema = ANY_CONDITION_SCHEMA

    try:
        if isinstance(schema, TypeAdapter):
            model = schema.validate_python(raw)
        else:
            model = schema.model_validate(raw)
    except ValidationError as e:
        return ValidationResult(error=ConditionValidationError.from_pydantic(e))

    issues = refine_tree(model)
    if issues:
        return ValidationResult(error=ConditionValidationError(issues))

    try:
        data = dump_condition(model)
    except (PydanticSerializationError, ValueError) as e:
        issue = ValidationIssue(loc=(), msg=f"Condition is not JSON serializable: {e}", type="json_value")
        return ValidationResult(error=ConditionValidationError([issue]))

    return ValidationResult(data=data, model=model)
