"""Decode raw definition text into a parsed document."""

from __future__ import annotations

import json
import re
from typing import Any

import yaml

from mcpgen.errors import ParseError
from mcpgen.importer.sniffer import decode_content
from mcpgen.models import ContentType
from mcpgen.utils.logging import get_logger

logger = get_logger(__name__)

_RAML_VERSION_RE = re.compile(r"^#%RAML\s+(\S+)", re.MULTILINE)
_RAML_TITLE_RE = re.compile(r"^title:\s*(.+?)\s*$", re.MULTILINE)


def parse(content: Any, detected: ContentType) -> Any:
    """Turn raw content into a parsed document according to its detected type.

    RAML and API Blueprint are not decoded by a grammar; they produce small
    marker records (``isRaml`` / ``isApiBlueprint``) that keep the original
    text for the line-oriented extractors.

    Args:
        content: Raw text or bytes, or an already-decoded object.
        detected: Result of ``sniffer.detect``.

    Returns:
        A mapping (or list) describing the document.

    Raises:
        ParseError: When the content cannot be decoded.
    """
    if not isinstance(content, (str, bytes)):
        return content

    text = decode_content(content)

    if detected == ContentType.JSON:
        try:
            return _ensure_container(json.loads(text))
        except ValueError as exc:
            raise ParseError(f"Invalid JSON: {exc}") from exc

    if detected == ContentType.YAML:
        try:
            return _ensure_container(yaml.safe_load(text))
        except yaml.YAMLError as exc:
            raise ParseError(f"Invalid YAML: {exc}") from exc

    if detected == ContentType.RAML:
        return _parse_raml(text)

    if detected == ContentType.API_BLUEPRINT:
        return {"isApiBlueprint": True, "content": text}

    # Unknown: JSON first, then YAML
    try:
        return _ensure_container(json.loads(text))
    except ValueError:
        pass
    try:
        return _ensure_container(yaml.safe_load(text))
    except yaml.YAMLError as exc:
        logger.debug("unknown_content_undecodable", error=str(exc))
        raise ParseError(f"Unable to parse content: {exc}") from exc


def _parse_raml(text: str) -> dict[str, Any]:
    """Pull version and title out of a RAML document without a grammar."""
    version_match = _RAML_VERSION_RE.search(text)
    title_match = _RAML_TITLE_RE.search(text)
    return {
        "isRaml": True,
        "version": version_match.group(1) if version_match else None,
        "title": title_match.group(1).strip("'\"") if title_match else None,
        "content": text,
    }


def _ensure_container(document: Any) -> Any:
    """Reject decodes that produced a scalar instead of a mapping or list."""
    if isinstance(document, (dict, list)):
        return document
    raise ParseError(f"Definition decoded to {type(document).__name__}, expected a mapping")
