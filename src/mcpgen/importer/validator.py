"""Structural checks for parsed API definitions."""

from __future__ import annotations

from typing import Any

from mcpgen.models import ApiFormat


def validate(parsed: Any, api_format: ApiFormat) -> list[str]:
    """Check a parsed definition against the minimal rules of its format.

    All rules run; errors are collected rather than stopping at the first.

    Args:
        parsed: Output of ``content_parser.parse``.
        api_format: Format from the classifier.

    Returns:
        Human-readable error strings, empty when the definition is valid.
    """
    document = parsed if isinstance(parsed, dict) else {}

    if api_format == ApiFormat.OPENAPI2:
        return _validate_openapi(document, version_key="swagger")
    if api_format == ApiFormat.OPENAPI3:
        return _validate_openapi(document, version_key="openapi")
    if api_format == ApiFormat.RAML:
        return _validate_raml(document)
    if api_format == ApiFormat.API_BLUEPRINT:
        return _validate_blueprint(document)
    return [f"Unsupported API format: {api_format}"]


def _validate_openapi(document: dict[str, Any], version_key: str) -> list[str]:
    errors: list[str] = []
    version = document.get(version_key)

    if version_key == "swagger":
        if version is None or str(version) != "2.0":
            errors.append("Invalid Swagger version. Must be 2.0")
    elif version is None or not str(version).startswith("3."):
        errors.append("Invalid OpenAPI version. Must start with 3.")

    info = document.get("info")
    if not isinstance(info, dict):
        errors.append("Missing info object")
    else:
        if not info.get("title"):
            errors.append("Missing API title")
        if not info.get("version"):
            errors.append("Missing API version")

    paths = document.get("paths")
    if not isinstance(paths, dict) or not paths:
        errors.append("No paths defined in the API")

    return errors


def _validate_raml(document: dict[str, Any]) -> list[str]:
    errors: list[str] = []
    if not document.get("version"):
        errors.append("Could not determine RAML version")
    if not document.get("title"):
        errors.append("Missing API title")
    return errors


def _validate_blueprint(document: dict[str, Any]) -> list[str]:
    content = document.get("content")
    if not isinstance(content, str) or not content.strip():
        return ["Empty API Blueprint document"]
    if "# " not in content and "FORMAT:" not in content:
        return ["Missing API Blueprint header or format specification"]
    return []
