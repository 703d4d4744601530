"""
Decryption request orchestration.

Resolves a condition context and hands the ciphertext, its condition
expression and the resolved context parameters to the decrypting network.
The network evaluates the conditions and releases decryption shares only
if they are satisfied; combining shares is outside this package.
"""

import asyncio
import base64
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests

from . import config
from .conditions.context import ConditionContext
from .errors import DecryptionNetworkError, MessageKitError
from .logging_config import audit_log, set_attempt_id
from .message_kit import MessageKit

logger = logging.getLogger(__name__)


class DecryptionNetwork(ABC):
    """Transport to the nodes that evaluate conditions and release shares."""
    
    @abstractmethod
    async def request_decryption(
        self,
        message_kit: MessageKit,
        context_parameters: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Submit a decryption request and return the network's response."""


class PorterClient(DecryptionNetwork):
    """
    HTTP client for a Porter gateway.
    
    Endpoints are tried in order; the first successful response wins.
    """
    
    def __init__(
        self,
        uris: Optional[List[str]] = None,
        domain: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.uris = list(uris) if uris else config.get_porter_uris(domain)
        self.domain = domain or config.DOMAIN
        self.timeout = timeout if timeout is not None else config.REQUEST_TIMEOUT
    
    def _payload(self, message_kit: MessageKit, context_parameters: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "domain": self.domain,
            "ciphertext": base64.b64encode(message_kit.ciphertext).decode("ascii"),
            "conditions": message_kit.conditions.to_obj(),
            "context": context_parameters,
        }
    
    def _post(self, uri: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = requests.post(f"{uri.rstrip('/')}/decrypt", json=payload, timeout=self.timeout)
        response.raise_for_status()
        return response.json()
    
    async def request_decryption(
        self,
        message_kit: MessageKit,
        context_parameters: Dict[str, Any],
    ) -> Dict[str, Any]:
        payload = self._payload(message_kit, context_parameters)
        errors = []
        for uri in self.uris:
            try:
                result = await asyncio.to_thread(self._post, uri, payload)
            except (requests.RequestException, ValueError) as e:
                logger.warning("Porter %s failed: %s", uri, e)
                errors.append(f"{uri}: {e}")
                continue
            audit_log.decryption_submitted(message_kit.conditions.hash(), uri)
            return result
        raise DecryptionNetworkError(f"All Porter endpoints failed: {'; '.join(errors)}")


async def decrypt(
    message_kit: MessageKit,
    context: Optional[ConditionContext] = None,
    network: Optional[DecryptionNetwork] = None,
) -> Dict[str, Any]:
    """
    Request decryption of a message kit.
    
    Context parameters are resolved before anything is sent, so an unbound
    parameter or a failing auth provider never reaches the network.
    
    Args:
        message_kit: Ciphertext and its conditions
        context: Bindings for the requested parameters; built from the
            message kit if omitted
        network: Decrypting network; a PorterClient for the configured
            domain if omitted
    
    Returns:
        The network's response
    
    Raises:
        MessageKitError: the kit carries no conditions
        ContextParameterError: a requested parameter is unbound
        DecryptionNetworkError: no endpoint accepted the request
    """
    if message_kit.conditions is None:
        raise MessageKitError("Message kit does not carry any conditions")
    
    set_attempt_id()
    if context is None:
        context = ConditionContext.from_message_kit(message_kit)
    
    context_parameters = await context.resolve()
    
    if network is None:
        network = PorterClient()
    return await network.request_decryption(message_kit, context_parameters)
