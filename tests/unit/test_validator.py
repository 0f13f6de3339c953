"""Unit tests for definition validation."""

from __future__ import annotations

from mcpgen.importer.validator import validate
from mcpgen.models import ApiFormat


def test_valid_openapi3() -> None:
    document = {"openapi": "3.0.1", "info": {"title": "T", "version": "1"}, "paths": {"/a": {}}}
    assert validate(document, ApiFormat.OPENAPI3) == []


def test_openapi3_missing_version_reported() -> None:
    document = {"openapi": "3.0.1", "info": {"title": "T"}, "paths": {"/a": {}}}
    assert validate(document, ApiFormat.OPENAPI3) == ["Missing API version"]


def test_all_errors_are_collected() -> None:
    errors = validate({"openapi": "2.5"}, ApiFormat.OPENAPI3)
    assert errors == [
        "Invalid OpenAPI version. Must start with 3.",
        "Missing info object",
        "No paths defined in the API",
    ]


def test_swagger_version_must_be_20() -> None:
    document = {"swagger": "1.2", "info": {"title": "T", "version": "1"}, "paths": {"/a": {}}}
    assert validate(document, ApiFormat.OPENAPI2) == ["Invalid Swagger version. Must be 2.0"]


def test_swagger_float_version_accepted() -> None:
    document = {"swagger": 2.0, "info": {"title": "T", "version": "1"}, "paths": {"/a": {}}}
    assert validate(document, ApiFormat.OPENAPI2) == []


def test_empty_paths_rejected() -> None:
    document = {"openapi": "3.0.0", "info": {"title": "T", "version": "1"}, "paths": {}}
    assert validate(document, ApiFormat.OPENAPI3) == ["No paths defined in the API"]


def test_raml_requires_version_and_title() -> None:
    assert validate({"isRaml": True, "version": None, "title": None}, ApiFormat.RAML) == [
        "Could not determine RAML version",
        "Missing API title",
    ]
    assert validate({"isRaml": True, "version": "1.0", "title": "Books"}, ApiFormat.RAML) == []


def test_blueprint_checks() -> None:
    assert validate({"isApiBlueprint": True, "content": "  "}, ApiFormat.API_BLUEPRINT) == [
        "Empty API Blueprint document"
    ]
    assert validate({"isApiBlueprint": True, "content": "plain text"}, ApiFormat.API_BLUEPRINT) == [
        "Missing API Blueprint header or format specification"
    ]
    assert validate({"isApiBlueprint": True, "content": "FORMAT: 1A"}, ApiFormat.API_BLUEPRINT) == []


def test_non_mapping_document() -> None:
    errors = validate(["not", "a", "mapping"], ApiFormat.OPENAPI3)
    assert "Missing info object" in errors
