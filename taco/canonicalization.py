"""
Canonical JSON for condition trees.

Condition trees are embedded in ciphertext metadata and hashed, so two
semantically identical trees must serialize to identical bytes whatever
key order they were built with.

Form:
- object keys sorted by code point, at every level
- no insignificant whitespace
- UTF-8, non-ASCII characters left unescaped
- NaN and infinities rejected
"""

import json
from typing import Any, Mapping


def _normalize(value: Any, path: str = "$") -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Mapping):
        normalized = {}
        for key in sorted(value, key=_sort_key(path)):
            normalized[key] = _normalize(value[key], f"{path}.{key}")
        return normalized
    if isinstance(value, (list, tuple)):
        return [_normalize(item, f"{path}[{i}]") for i, item in enumerate(value)]
    raise ValueError(f"Cannot canonicalize {type(value).__name__} at {path}")


def _sort_key(path: str):
    def key(k: Any) -> str:
        if not isinstance(k, str):
            raise ValueError(f"Object keys must be strings, got {type(k).__name__} at {path}")
        return k
    return key


def canonicalize(obj: Any) -> bytes:
    """
    Canonical JSON bytes of a JSON-compatible value.

    Raises:
        ValueError: on non-JSON types, non-string keys, NaN or infinity
    """
    return json.dumps(
        _normalize(obj),
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    ).encode("utf-8")


def canonicalize_str(obj: Any) -> str:
    return canonicalize(obj).decode("utf-8")
