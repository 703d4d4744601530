"""
TACo condition hashing.

All hashes use SHA-256 over canonical JSON with lowercase hexadecimal output.
"""

import hashlib
from typing import Any, Dict, Union

from .canonicalization import canonicalize


def sha256_hash(data: Union[bytes, str]) -> str:
    """
    Compute a SHA-256 hash.
    
    Returns:
        Hash string in format "sha256:abcdef..."
    """
    if isinstance(data, str):
        data = data.encode('utf-8')
    
    digest = hashlib.sha256(data).hexdigest().lower()
    return f"sha256:{digest}"


def condition_hash(condition_obj: Dict[str, Any]) -> str:
    """
    Compute the hash of a condition's plain-object form.
    
    condition_hash = SHA-256(canonical_json(condition))
    """
    return sha256_hash(canonicalize(condition_obj))


def verify_hash(declared_hash: str, obj: Any) -> bool:
    """Recompute the hash of a JSON object and compare with a declared value."""
    if not declared_hash.startswith("sha256:"):
        return False
    return sha256_hash(canonicalize(obj)) == declared_hash
