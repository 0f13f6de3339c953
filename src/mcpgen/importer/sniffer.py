"""Surface-syntax detection for uploaded API definitions."""

from __future__ import annotations

import json
from typing import Any

import yaml

from mcpgen.models import ContentType

_RAML_HEADER = "#%RAML"
_BLUEPRINT_PREFIXES = ("# ", "FORMAT:")
_BLUEPRINT_EXTENSIONS = (".md", ".apib")


def decode_content(content: str | bytes) -> str:
    """Decode raw upload bytes as UTF-8; strings pass through unchanged."""
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    return content


def detect(content: Any, filename: str | None = None) -> ContentType:
    """Guess the surface syntax of an API definition.

    Rules are applied in order and the first match wins:

    1. already-decoded objects are ``json``
    2. text starting with ``#%RAML`` is ``raml``
    3. text starting with ``# `` or ``FORMAT:`` is ``apiblueprint``
    4. a ``.raml`` file name is ``raml``; ``.md``/``.apib`` is ``apiblueprint``
    5. text that parses as strict JSON is ``json``
    6. text that parses as YAML is ``yaml``
    7. otherwise ``unknown``

    Args:
        content: Raw text, bytes, or an already-decoded object.
        filename: Optional original file name, used for extension hints.

    Returns:
        Detected content type.
    """
    if not isinstance(content, (str, bytes)):
        return ContentType.JSON

    text = decode_content(content)
    trimmed = text.strip()

    if trimmed.startswith(_RAML_HEADER):
        return ContentType.RAML
    if trimmed.startswith(_BLUEPRINT_PREFIXES):
        return ContentType.API_BLUEPRINT

    lowered_name = (filename or "").lower()
    if lowered_name.endswith(".raml"):
        return ContentType.RAML
    if lowered_name.endswith(_BLUEPRINT_EXTENSIONS):
        return ContentType.API_BLUEPRINT

    try:
        json.loads(text)
        return ContentType.JSON
    except ValueError:
        pass

    try:
        yaml.safe_load(text)
        return ContentType.YAML
    except yaml.YAMLError:
        return ContentType.UNKNOWN
