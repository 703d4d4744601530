"""
Message kit.

Ciphertext together with the condition expression that gates it. The
ciphertext itself is opaque to this package; encryption and share
combination are done by the threshold crypto library.
"""

import base64
import binascii
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .canonicalization import canonicalize_str
from .conditions.condition import Condition, ConditionExpression
from .errors import ConditionExpressionError, InvalidConditionError, MessageKitError


@dataclass(frozen=True)
class MessageKit:
    """
    Encrypted payload plus its access conditions.
    
    Attributes:
        ciphertext: Opaque encrypted payload
        conditions: Condition expression the decrypting nodes evaluate
        requester_authentication: Nodes require proof of the requester's address
        context_parameters: Default literal values for requested parameters
    """
    ciphertext: bytes
    conditions: Optional[ConditionExpression]
    requester_authentication: bool = False
    context_parameters: Dict[str, Any] = field(default_factory=dict)
    
    @classmethod
    def create(
        cls,
        ciphertext: bytes,
        condition: Condition,
        requester_authentication: bool = False,
        context_parameters: Optional[Dict[str, Any]] = None,
    ) -> "MessageKit":
        return cls(
            ciphertext=ciphertext,
            conditions=ConditionExpression(condition),
            requester_authentication=requester_authentication,
            context_parameters=dict(context_parameters or {}),
        )
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "ciphertext": base64.b64encode(self.ciphertext).decode("ascii"),
            "conditions": self.conditions.to_obj() if self.conditions else None,
            "requesterAuthentication": self.requester_authentication,
            "contextParameters": dict(self.context_parameters),
        }
    
    def to_json(self) -> str:
        return canonicalize_str(self.to_dict())
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MessageKit":
        """
        Parse a serialized message kit.
        
        Raises:
            MessageKitError: malformed kit or invalid condition expression
        """
        if "ciphertext" not in data:
            raise MessageKitError("Message kit is missing its ciphertext")
        try:
            ciphertext = base64.b64decode(data["ciphertext"], validate=True)
        except (binascii.Error, TypeError) as e:
            raise MessageKitError(f"Invalid ciphertext encoding: {e}") from e
        
        conditions = None
        if data.get("conditions") is not None:
            try:
                conditions = ConditionExpression.from_obj(data["conditions"])
            except InvalidConditionError as e:
                raise MessageKitError(
                    f"Message kit carries an invalid condition: {e.validation_error}",
                    validation_error=e.validation_error,
                ) from e
            except ConditionExpressionError as e:
                raise MessageKitError(f"Message kit carries an invalid condition expression: {e}") from e
        
        return cls(
            ciphertext=ciphertext,
            conditions=conditions,
            requester_authentication=bool(data.get("requesterAuthentication", False)),
            context_parameters=dict(data.get("contextParameters") or {}),
        )
    
    @classmethod
    def from_json(cls, data: str) -> "MessageKit":
        try:
            obj = json.loads(data)
        except json.JSONDecodeError as e:
            raise MessageKitError(f"Invalid message kit JSON: {e}") from e
        if not isinstance(obj, dict):
            raise MessageKitError("Message kit must be a JSON object")
        return cls.from_dict(obj)
