"""Unit tests for content-type sniffing."""

from __future__ import annotations

import pytest

from mcpgen.importer.sniffer import decode_content, detect
from mcpgen.models import ContentType


def test_decoded_object_is_json() -> None:
    assert detect({"openapi": "3.0.0"}) == ContentType.JSON
    assert detect([1, 2, 3]) == ContentType.JSON


def test_raml_header_wins_over_extension(raml_text: str) -> None:
    assert detect(raml_text, "library.yaml") == ContentType.RAML


def test_raml_header_after_leading_whitespace() -> None:
    assert detect("\n\n  #%RAML 1.0\ntitle: x") == ContentType.RAML


@pytest.mark.parametrize("text", ["FORMAT: 1A\n\n# API", "# My API\n\nSome text"])
def test_blueprint_prefixes(text: str) -> None:
    assert detect(text) == ContentType.API_BLUEPRINT


@pytest.mark.parametrize(
    ("filename", "expected"),
    [
        ("api.raml", ContentType.RAML),
        ("API.RAML", ContentType.RAML),
        ("notes.md", ContentType.API_BLUEPRINT),
        ("notes.apib", ContentType.API_BLUEPRINT),
    ],
)
def test_extension_hints(filename: str, expected: ContentType) -> None:
    assert detect("title: something", filename) == expected


def test_json_extension_is_not_a_hint() -> None:
    """Only .raml/.md/.apib are hints; other names fall through to content checks."""
    assert detect("title: something", "api.json") == ContentType.YAML


def test_strict_json(swagger2_text: str) -> None:
    assert detect(swagger2_text) == ContentType.JSON


def test_yaml(openapi3_text: str) -> None:
    assert detect(openapi3_text) == ContentType.YAML


def test_bytes_are_decoded(openapi3_text: str) -> None:
    assert detect(openapi3_text.encode("utf-8")) == ContentType.YAML


def test_unparseable_text_is_unknown() -> None:
    assert detect("key: [unclosed") == ContentType.UNKNOWN


def test_decode_content_passes_strings_through() -> None:
    assert decode_content("abc") == "abc"
    assert decode_content(b"abc") == "abc"
