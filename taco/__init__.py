"""
TACo Conditions Client

Version: 0.1.0
License: Apache 2.0

Client-side access-control layer for threshold decryption.

Encrypting parties attach a condition tree to ciphertext. Decrypting
parties discover which context parameters the tree requests, bind them
to literal values or auth providers, and submit the resolved values with
the ciphertext to the decrypting network. The nodes release decryption
shares only if the conditions hold.

Usage:
    from taco import (
        CompoundCondition,
        ConditionContext,
        ERC721Ownership,
        MessageKit,
        SignedMessageAuthProvider,
        TimeCondition,
        decrypt,
    )

    # Encrypting side: build a condition tree (validated eagerly)
    condition = CompoundCondition.and_([
        ERC721Ownership({
            "contractAddress": "0x1e988ba4692e52Bc50b375bcC8585b95c48AaD77",
            "chain": 1,
            "parameters": [":nftId"],
        }),
        TimeCondition({
            "chain": 1,
            "returnValueTest": {"comparator": ">", "value": 1700000000},
        }),
    ])
    message_kit = MessageKit.create(ciphertext, condition)

    # Decrypting side: bind the requested parameters
    context = ConditionContext.from_message_kit(message_kit)
    context.requested_context_parameters  # {":nftId", ":userAddress"}
    context.add_custom_context_parameter_values({":nftId": 1234})
    context.add_auth_provider(":userAddress", SignedMessageAuthProvider(key, ...))

    response = await decrypt(message_kit, context)
"""

__version__ = "0.1.0"
__license__ = "Apache-2.0"

# Canonicalization and hashing
from .canonicalization import canonicalize, canonicalize_str
from .hashing import condition_hash, sha256_hash, verify_hash

# Errors
from .errors import (
    TacoError,
    InvalidConditionError,
    ConditionExpressionError,
    ContextParameterError,
    InvalidContextParameterError,
    ReservedContextParameterError,
    UnexpectedContextParameterError,
    MissingContextParameterError,
    MessageKitError,
    DecryptionNetworkError,
)

# Conditions
from .conditions import (
    Condition,
    ConditionExpression,
    condition_from_obj,
    ContractCondition,
    RpcCondition,
    TimeCondition,
    JsonApiCondition,
    JsonRpcCondition,
    JwtCondition,
    CompoundCondition,
    SequentialCondition,
    ConditionVariable,
    ERC721Ownership,
    ERC721Balance,
    ERC20Balance,
    ConditionValidationError,
    ValidationResult,
    ConditionType,
    USER_ADDRESS_PARAM_DEFAULT,
)

# Context
from .conditions.context import (
    ConditionContext,
    find_context_parameters,
    AuthProvider,
    AuthSignature,
    CallableAuthProvider,
    SignedMessageAuthProvider,
    verify_auth_signature,
)

# Message kit and decryption
from .message_kit import MessageKit
from .decrypt import DecryptionNetwork, PorterClient, decrypt


__all__ = [
    # Version
    "__version__",

    # Canonicalization
    "canonicalize",
    "canonicalize_str",

    # Hashing
    "sha256_hash",
    "condition_hash",
    "verify_hash",

    # Errors
    "TacoError",
    "InvalidConditionError",
    "ConditionExpressionError",
    "ContextParameterError",
    "InvalidContextParameterError",
    "ReservedContextParameterError",
    "UnexpectedContextParameterError",
    "MissingContextParameterError",
    "MessageKitError",
    "DecryptionNetworkError",

    # Conditions
    "Condition",
    "ConditionExpression",
    "condition_from_obj",
    "ContractCondition",
    "RpcCondition",
    "TimeCondition",
    "JsonApiCondition",
    "JsonRpcCondition",
    "JwtCondition",
    "CompoundCondition",
    "SequentialCondition",
    "ConditionVariable",
    "ERC721Ownership",
    "ERC721Balance",
    "ERC20Balance",
    "ConditionValidationError",
    "ValidationResult",
    "ConditionType",
    "USER_ADDRESS_PARAM_DEFAULT",

    # Context
    "ConditionContext",
    "find_context_parameters",
    "AuthProvider",
    "AuthSignature",
    "CallableAuthProvider",
    "SignedMessageAuthProvider",
    "verify_auth_signature",

    # Message kit and decryption
    "MessageKit",
    "DecryptionNetwork",
    "PorterClient",
    "decrypt",
]
