"""
Auth providers.

An auth provider produces the value of a context parameter on demand,
possibly over the network or after user interaction. Providers are
resolved concurrently by ``ConditionContext.resolve``; a provider shared by
several parameters is called for them one at a time.
"""

import asyncio
import hashlib
import inspect
import logging
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Mapping, Optional, Union

from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

logger = logging.getLogger(__name__)


class AuthProvider(ABC):
    """Capability that produces a value for a context parameter."""
    
    @abstractmethod
    async def resolve(self, parameter: str) -> Any:
        """Return the value for ``parameter``. Errors propagate to the caller."""
    
    @property
    def name(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class AuthSignature:
    """A signed login message proving control of an address."""
    signature: str
    address: str
    public_key: str
    scheme: str
    typed_data: str
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "signature": self.signature,
            "address": self.address,
            "publicKey": self.public_key,
            "scheme": self.scheme,
            "typedData": self.typed_data,
        }
    
    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AuthSignature":
        required = ["signature", "address", "publicKey", "scheme", "typedData"]
        missing = [f for f in required if f not in data]
        if missing:
            raise ValueError(f"Missing required fields: {missing}")
        return cls(
            signature=data["signature"],
            address=data["address"],
            public_key=data["publicKey"],
            scheme=data["scheme"],
            typed_data=data["typedData"],
        )


def address_from_verify_key(verify_key: Union[VerifyKey, bytes]) -> str:
    """Derive a 20-byte hex address from an Ed25519 public key."""
    digest = hashlib.sha256(bytes(verify_key)).digest()
    return "0x" + digest[-20:].hex()


class SignedMessageAuthProvider(AuthProvider):
    """
    Proves the requester's address with one Ed25519-signed login message.
    
    The signature is created once and reused for every parameter bound to
    this provider until it expires. Concurrent callers wait on the same
    in-flight signing request instead of signing again.
    """
    
    SCHEME = "ed25519-login"
    
    def __init__(
        self,
        signing_key: Union[SigningKey, bytes],
        domain: str,
        uri: str,
        statement: str = "Sign in to request decryption",
        ttl_seconds: int = 7200,
        signer: Optional[Callable[[bytes], Any]] = None,
    ):
        self._signing_key = signing_key if isinstance(signing_key, SigningKey) else SigningKey(signing_key)
        self.domain = domain
        self.uri = uri
        self.statement = statement
        self.ttl_seconds = ttl_seconds
        # Optional hook around the signature, e.g. a wallet confirmation prompt
        self._signer = signer
        self._lock = asyncio.Lock()
        self._cached: Optional[AuthSignature] = None
        self._expires_at: Optional[datetime] = None
        self.signatures_issued = 0
    
    @property
    def address(self) -> str:
        return address_from_verify_key(self._signing_key.verify_key)
    
    def _build_message(self, issued_at: datetime) -> str:
        return (
            f"{self.domain} wants you to sign in with your account:\n"
            f"{self.address}\n"
            f"\n"
            f"{self.statement}\n"
            f"\n"
            f"URI: {self.uri}\n"
            f"Version: 1\n"
            f"Nonce: {secrets.token_hex(8)}\n"
            f"Issued At: {issued_at.isoformat().replace('+00:00', 'Z')}"
        )
    
    async def _sign(self, message: bytes) -> bytes:
        if self._signer is not None:
            signature = self._signer(message)
            if inspect.isawaitable(signature):
                signature = await signature
            return signature
        return self._signing_key.sign(message).signature
    
    async def resolve(self, parameter: str) -> Dict[str, Any]:
        async with self._lock:
            now = datetime.now(timezone.utc)
            if self._cached is not None and self._expires_at > now:
                return self._cached.to_dict()
            
            message = self._build_message(now)
            signature = await self._sign(message.encode("utf-8"))
            self._cached = AuthSignature(
                signature=signature.hex(),
                address=self.address,
                public_key=bytes(self._signing_key.verify_key).hex(),
                scheme=self.SCHEME,
                typed_data=message,
            )
            self._expires_at = now + timedelta(seconds=self.ttl_seconds)
            self.signatures_issued += 1
            logger.debug("Issued login signature for %s", self.address)
            return self._cached.to_dict()
    
    def clear(self) -> None:
        """Forget the cached signature so the next request signs again."""
        self._cached = None
        self._expires_at = None


def verify_auth_signature(auth_signature: Union[AuthSignature, Mapping[str, Any]]) -> bool:
    """
    Check a login signature and that its address matches its public key.
    
    Returns:
        True if valid, False otherwise
    """
    if not isinstance(auth_signature, AuthSignature):
        try:
            auth_signature = AuthSignature.from_dict(auth_signature)
        except ValueError:
            return False
    
    try:
        verify_key = VerifyKey(bytes.fromhex(auth_signature.public_key))
        verify_key.verify(
            auth_signature.typed_data.encode("utf-8"),
            bytes.fromhex(auth_signature.signature),
        )
    except (BadSignatureError, ValueError):
        return False
    
    if address_from_verify_key(verify_key) != auth_signature.address:
        return False
    return auth_signature.address in auth_signature.typed_data


class CallableAuthProvider(AuthProvider):
    """
    Wraps a sync or async callable, e.g. a JWT fetcher or a user prompt.
    
    The callable receives the parameter name. With ``cache=True`` each
    parameter is produced at most once.
    """
    
    def __init__(self, func: Callable[[str], Any], cache: bool = False):
        self._func = func
        self._cache = cache
        self._values: Dict[str, Any] = {}
    
    async def resolve(self, parameter: str) -> Any:
        if self._cache and parameter in self._values:
            return self._values[parameter]
        value = self._func(parameter)
        if inspect.isawaitable(value):
            value = await value
        if self._cache:
            self._values[parameter] = value
        return value
