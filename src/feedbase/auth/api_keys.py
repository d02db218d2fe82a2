"""Workspace API key material.

The full key is only shown once, on creation. The database keeps a
SHA-256 hash for lookup and a short prefix for identification.
"""

import hashlib
import secrets

KEY_PREFIX = "fb_"


def hash_api_key(key: str) -> str:
    return hashlib.sha256(key.encode()).hexdigest()


def generate_api_key() -> tuple[str, str, str]:
    """Create a new key. Returns (key, display_prefix, key_hash)."""
    key = f"{KEY_PREFIX}{secrets.token_urlsafe(32)}"
    return key, key[:10], hash_api_key(key)
