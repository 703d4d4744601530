"""Context parameter discovery, binding and resolution."""

from .context import ConditionContext
from .params import find_context_parameters, requested_context_parameters
from .providers import (
    AuthProvider,
    AuthSignature,
    CallableAuthProvider,
    SignedMessageAuthProvider,
    address_from_verify_key,
    verify_auth_signature,
)

__all__ = [
    "ConditionContext",
    "find_context_parameters",
    "requested_context_parameters",
    "AuthProvider",
    "AuthSignature",
    "CallableAuthProvider",
    "SignedMessageAuthProvider",
    "address_from_verify_key",
    "verify_auth_signature",
]
