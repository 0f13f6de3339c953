"""Map a parsed document to the API description format it follows."""

from __future__ import annotations

from typing import Any, NamedTuple

from mcpgen.models import ApiFormat

# Used when no format marker is present
FALLBACK_FORMAT = ApiFormat.OPENAPI3


class Classification(NamedTuple):
    """Detected format plus whether it came from the fallback rule."""

    format: ApiFormat
    by_fallback: bool


def classify_with_source(parsed: Any) -> Classification:
    """Classify a parsed document and report how the decision was made.

    Args:
        parsed: Output of ``content_parser.parse``.

    Returns:
        Classification with ``by_fallback`` set when no marker matched.
    """
    if isinstance(parsed, dict):
        if parsed.get("isRaml") is True:
            return Classification(ApiFormat.RAML, False)
        if parsed.get("isApiBlueprint") is True:
            return Classification(ApiFormat.API_BLUEPRINT, False)
        # YAML turns an unquoted 2.0 into a float, str() restores the marker
        swagger = parsed.get("swagger")
        if swagger is not None and str(swagger) == "2.0":
            return Classification(ApiFormat.OPENAPI2, False)
        openapi = parsed.get("openapi")
        if openapi is not None and str(openapi).startswith("3."):
            return Classification(ApiFormat.OPENAPI3, False)
    return Classification(FALLBACK_FORMAT, True)


def classify(parsed: Any) -> ApiFormat:
    """Return the API format of a parsed document (OpenAPI3 when unmarked)."""
    return classify_with_source(parsed).format
