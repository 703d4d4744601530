"""
Exception taxonomy for the TACo condition layer.

Validation failures are reported as structured results by
``taco.conditions.schemas.validate``; the classes here are raised when a
caller takes the ergonomic path (constructing a condition, binding or
resolving context parameters) and the operation cannot complete.
"""

from typing import Any, Iterable, List, Optional


class TacoError(Exception):
    """Base class for all errors raised by this package."""


class InvalidConditionError(TacoError, ValueError):
    """
    A condition failed validation and cannot be constructed.
    
    The structured diagnostics are available as ``validation_error``.
    """
    
    def __init__(self, validation_error: Any, message: Optional[str] = None):
        self.validation_error = validation_error
        super().__init__(message or f"Invalid condition: {validation_error}")


class ConditionExpressionError(TacoError, ValueError):
    """A serialized condition expression is malformed or has an unsupported version."""


class ContextParameterError(TacoError):
    """Base class for context parameter binding and resolution failures."""


class InvalidContextParameterError(ContextParameterError, ValueError):
    """A parameter name does not follow the context parameter grammar."""
    
    def __init__(self, parameter: str):
        self.parameter = parameter
        super().__init__(f"Invalid context parameter name: {parameter}")


class ReservedContextParameterError(ContextParameterError, ValueError):
    """A reserved parameter was given a literal value."""
    
    def __init__(self, parameter: str):
        self.parameter = parameter
        super().__init__(
            f"Cannot use reserved parameter name {parameter} as custom parameter"
        )


class UnexpectedContextParameterError(ContextParameterError, ValueError):
    """A value was supplied for a parameter the condition never references."""
    
    def __init__(self, parameter: str):
        self.parameter = parameter
        super().__init__(f"Unknown custom context parameter: {parameter}")


class MissingContextParameterError(ContextParameterError):
    """One or more requested parameters have no literal or provider binding."""
    
    def __init__(self, parameters: Iterable[str]):
        self.parameters: List[str] = sorted(parameters)
        super().__init__(
            f"Missing values for context parameters: {', '.join(self.parameters)}"
        )


class MessageKitError(TacoError, ValueError):
    """Ciphertext metadata is missing or carries an invalid condition tree."""
    
    def __init__(self, message: str, validation_error: Any = None):
        self.validation_error = validation_error
        super().__init__(message)


class DecryptionNetworkError(TacoError):
    """The decrypting network could not be reached or rejected the request."""
