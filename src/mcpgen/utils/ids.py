"""Identifier and content-hash helpers for endpoints and stored records."""

import hashlib
import re
import uuid

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def hash_content(content: str | bytes) -> str:
    """Compute SHA256 hash of string or bytes content.

    Args:
        content: Content to hash, string or bytes.

    Returns:
        Lowercase hexadecimal SHA256 digest (64 chars).
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest()


def endpoint_id(method: str, path: str) -> str:
    """Build the deterministic endpoint id ``{method}-{path}``.

    Every non-alphanumeric character becomes ``-``, so ``get /pets/{id}``
    yields ``get--pets--id-``.

    Args:
        method: HTTP method as it appears in the source document.
        path: URL path template.

    Returns:
        Id string stable across repeated extraction of the same document.
    """
    return _NON_ALNUM.sub("-", f"{method}-{path}")


def random_id() -> str:
    """Return a fresh random identifier for records and synthesized endpoints."""
    return uuid.uuid4().hex
