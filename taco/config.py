"""
Configuration module for the TACo client.

Centralizes settings with environment variable support.
"""

import os
from typing import List

# ============================================================
# Environment Configuration
# ============================================================

DOMAIN = os.getenv("TACO_DOMAIN", "lynx")  # lynx|tapir|mainnet

# Comma separated list of Porter endpoints
PORTER_URIS = os.getenv("TACO_PORTER_URIS", "")

# Network timeout for decryption requests (seconds)
REQUEST_TIMEOUT = float(os.getenv("TACO_REQUEST_TIMEOUT", "10"))

# Logging
LOG_LEVEL = os.getenv("TACO_LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("TACO_LOG_JSON", "true").lower() in ("1", "true", "yes")

DEFAULT_PORTER_URIS = {
    "mainnet": "https://porter.nucypher.io",
    "tapir": "https://porter-tapir.nucypher.io",
    "lynx": "https://porter-lynx.nucypher.io",
}


def get_porter_uris(domain: str = None) -> List[str]:
    """
    Porter endpoints to contact, in order of preference.
    
    Explicit TACO_PORTER_URIS entries come first, followed by the default
    endpoint for the domain.
    """
    domain = domain or DOMAIN
    uris = [u.strip() for u in PORTER_URIS.split(",") if u.strip()]
    default = DEFAULT_PORTER_URIS.get(domain)
    if default and default not in uris:
        uris.append(default)
    if not uris:
        raise ValueError(f"No Porter endpoint configured for domain '{domain}'")
    return uris


# ============================================================
# Feature Flags
# ============================================================

def is_debug() -> bool:
    """Check if debug mode is enabled."""
    return os.getenv("TACO_DEBUG", "").lower() in ("1", "true", "yes")
