"""Import pipeline: sniff, parse, classify, validate and extract in one call."""

from __future__ import annotations

from typing import Any

from mcpgen.errors import ParseError
from mcpgen.importer import classifier, content_parser, sniffer, validator
from mcpgen.importer.extractor import extract_endpoints
from mcpgen.models import Endpoint, ImportResult, ValidationResult
from mcpgen.utils.logging import get_logger

logger = get_logger(__name__)


def validate_api_definition(content: Any, filename: str | None = None) -> ValidationResult:
    """Decode and validate a raw definition.

    Parse failures are reported inside the result instead of being raised so
    callers can show every problem at once.

    Args:
        content: Raw text, bytes, or an already-decoded object.
        filename: Optional original file name.

    Returns:
        Validation result carrying the parsed document when decoding worked.
    """
    detected = sniffer.detect(content, filename)
    try:
        parsed = content_parser.parse(content, detected)
    except ParseError as exc:
        logger.warning("definition_parse_failed", detected=str(detected), error=str(exc))
        return ValidationResult(is_valid=False, errors=[str(exc)])

    classification = classifier.classify_with_source(parsed)
    errors = validator.validate(parsed, classification.format)

    logger.info(
        "definition_validated",
        detected=str(detected),
        format=str(classification.format),
        by_fallback=classification.by_fallback,
        errors=len(errors),
    )
    return ValidationResult(
        is_valid=not errors,
        format=classification.format,
        errors=errors,
        parsed_definition=parsed,
        classified_by_fallback=classification.by_fallback,
    )


def parse_api_definition(
    content: Any,
    filename: str | None = None,
    extract_when_invalid: bool = False,
    include_base_path: bool = False,
) -> ImportResult:
    """Run the whole import pipeline on a raw definition.

    Args:
        content: Raw text, bytes, or an already-decoded object.
        filename: Optional original file name.
        extract_when_invalid: Extract endpoints even when validation reported errors.
        include_base_path: Prefix OpenAPI paths with the document's base path.

    Returns:
        Validation outcome and extracted endpoints (empty when extraction was skipped).
    """
    validation = validate_api_definition(content, filename)
    if validation.format is None or (not validation.is_valid and not extract_when_invalid):
        return ImportResult(validation=validation)

    endpoints = extract_endpoints(validation.parsed_definition, validation.format, include_base_path=include_base_path)
    return ImportResult(validation=validation, endpoints=endpoints)


def merge_endpoint_mappings(extracted: list[Endpoint], existing: list[Endpoint]) -> list[Endpoint]:
    """Carry saved role and selection choices over to freshly extracted endpoints.

    Endpoints are matched on (path, method). Extracted endpoints without a
    saved counterpart keep their defaults; saved endpoints that vanished from
    the definition are dropped.

    Args:
        extracted: Endpoints from the current definition.
        existing: Previously saved endpoint mapping.

    Returns:
        New endpoint list in extraction order.
    """
    saved = {(ep.path, ep.method): ep for ep in existing}
    merged: list[Endpoint] = []
    for endpoint in extracted:
        previous = saved.get((endpoint.path, endpoint.method))
        if previous is None:
            merged.append(endpoint)
            continue
        merged.append(
            endpoint.model_copy(
                update={"id": previous.id or endpoint.id, "mcp_type": previous.mcp_type, "selected": previous.selected}
            )
        )
    return merged
