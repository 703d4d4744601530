"""
Condition Context.

Runtime binding of the context parameters a condition tree requests to
literal values or auth providers, for one decryption attempt.

Usage:
    context = ConditionContext.from_message_kit(message_kit)
    context.add_custom_context_parameter_values({":nftId": 1234})
    context.add_auth_provider(":userAddress", SignedMessageAuthProvider(key, ...))
    parameters = await context.resolve()
"""

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Set, Union

from ...canonicalization import canonicalize_str
from ...errors import (
    ConditionExpressionError,
    ContextParameterError,
    InvalidConditionError,
    InvalidContextParameterError,
    MessageKitError,
    MissingContextParameterError,
    ReservedContextParameterError,
    UnexpectedContextParameterError,
)
from ...logging_config import audit_log
from ..condition import Condition, ConditionExpression, condition_from_obj
from ..shared import RESERVED_CONTEXT_PARAMS, USER_ADDRESS_PARAMS, is_context_param
from .params import requested_context_parameters
from .providers import AuthProvider

logger = logging.getLogger(__name__)


class ConditionContext:
    """
    Context parameter bindings for a single condition tree.

    The tree is never modified. Bindings may be added or replaced until
    ``resolve()`` is called; a token bound twice keeps the latest binding.
    """

    def __init__(
        self,
        condition: Union[Condition, ConditionExpression],
        requester_authentication: bool = False,
    ):
        if isinstance(condition, ConditionExpression):
            condition = condition.condition
        if not isinstance(condition, Condition):
            raise TypeError(f"Expected a Condition, got {type(condition).__name__}")

        self.condition = condition
        self.requester_authentication = requester_authentication
        self._requested: Set[str] = requested_context_parameters(condition, requester_authentication)
        self._custom_values: Dict[str, Any] = {}
        self._auth_providers: Dict[str, AuthProvider] = {}

        audit_log.context_parameters_requested(self._requested)

    @classmethod
    def from_message_kit(cls, message_kit: Any) -> "ConditionContext":
        """
        Build a context from the condition tree embedded in a message kit.

        Raises:
            MessageKitError: if the kit has no conditions, or they are invalid
        """
        conditions = getattr(message_kit, "conditions", None)
        if conditions is None:
            raise MessageKitError("Message kit does not carry any conditions")

        if isinstance(conditions, Mapping):
            try:
                if "version" in conditions:
                    conditions = ConditionExpression.from_obj(conditions)
                else:
                    conditions = condition_from_obj(conditions)
            except InvalidConditionError as e:
                raise MessageKitError(
                    f"Message kit carries an invalid condition: {e.validation_error}",
                    validation_error=e.validation_error,
                ) from e
            except ConditionExpressionError as e:
                raise MessageKitError(f"Message kit carries an invalid condition expression: {e}") from e

        context = cls(
            conditions,
            requester_authentication=getattr(message_kit, "requester_authentication", False),
        )

        defaults = getattr(message_kit, "context_parameters", None) or {}
        if defaults:
            try:
                context.add_custom_context_parameter_values(defaults)
            except ContextParameterError as e:
                raise MessageKitError(f"Message kit carries invalid default parameters: {e}") from e
        return context

    @property
    def requested_context_parameters(self) -> Set[str]:
        """Tokens that must be bound before ``resolve()`` can succeed."""
        return set(self._requested)

    @property
    def missing_context_parameters(self) -> Set[str]:
        return self._requested - set(self._custom_values) - set(self._auth_providers)

    def add_custom_context_parameter_values(self, values: Mapping[str, Any]) -> "ConditionContext":
        """
        Bind literal values to requested parameters.

        The whole mapping is checked before any value is bound.

        Raises:
            InvalidContextParameterError: malformed token
            ReservedContextParameterError: token is reserved for auth providers
            UnexpectedContextParameterError: token is not requested by the tree
        """
        for parameter in values:
            if not is_context_param(parameter):
                raise InvalidContextParameterError(parameter)
            if parameter in RESERVED_CONTEXT_PARAMS:
                raise ReservedContextParameterError(parameter)
            if parameter not in self._requested:
                raise UnexpectedContextParameterError(parameter)

        for parameter, value in values.items():
            self._auth_providers.pop(parameter, None)
            self._custom_values[parameter] = value
        return self

    def add_auth_provider(self, parameter: str, provider: AuthProvider) -> "ConditionContext":
        """
        Bind an auth provider to a parameter.

        Requester-address parameters may always be bound; other parameters
        only if the tree requests them.
        """
        if not isinstance(provider, AuthProvider):
            raise TypeError(f"Expected an AuthProvider, got {type(provider).__name__}")
        if not is_context_param(parameter):
            raise InvalidContextParameterError(parameter)
        if parameter not in self._requested and parameter not in USER_ADDRESS_PARAMS:
            raise UnexpectedContextParameterError(parameter)

        self._custom_values.pop(parameter, None)
        self._auth_providers[parameter] = provider
        audit_log.auth_provider_bound(parameter, provider.name)
        return self

    async def resolve(self) -> Dict[str, Any]:
        """
        Produce a value for every requested parameter.

        Fails before any provider is called if some parameter is unbound.
        Providers run concurrently; parameters sharing one provider instance
        are resolved through it one after another. The first provider error
        cancels the remaining work and propagates.
        """
        missing = self.missing_context_parameters
        if missing:
            audit_log.context_unresolved(missing)
            raise MissingContextParameterError(missing)

        resolved: Dict[str, Any] = {
            p: v for p, v in self._custom_values.items() if p in self._requested
        }

        groups: Dict[int, List[str]] = {}
        providers: Dict[int, AuthProvider] = {}
        for parameter in sorted(self._requested):
            provider = self._auth_providers.get(parameter)
            if provider is None:
                continue
            groups.setdefault(id(provider), []).append(parameter)
            providers[id(provider)] = provider

        tasks = [
            asyncio.ensure_future(self._resolve_group(providers[key], parameters))
            for key, parameters in groups.items()
        ]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

        for values in results:
            resolved.update(values)

        audit_log.context_resolved(resolved, len(providers))
        return resolved

    @staticmethod
    async def _resolve_group(provider: AuthProvider, parameters: List[str]) -> Dict[str, Any]:
        values = {}
        for parameter in parameters:
            logger.debug("Resolving %s via %s", parameter, provider.name)
            values[parameter] = await provider.resolve(parameter)
        return values

    async def to_json(self) -> str:
        """Canonical JSON of the resolved parameters, for submission."""
        return canonicalize_str(await self.resolve())

    def __repr__(self) -> str:
        return (
            f"ConditionContext(requested={sorted(self._requested)!r}, "
            f"bound={sorted(set(self._custom_values) | set(self._auth_providers))!r})"
        )
