"""Load API definitions from local files or remote URLs."""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from urllib.parse import urljoin, urlparse

import httpx
from pydantic import BaseModel

from mcpgen.errors import DefinitionFetchError
from mcpgen.utils.logging import get_logger

logger = get_logger(__name__)

# Swagger UI pages embed the definition URL in one of these shapes
_SWAGGER_URL_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"""url:\s*['"](.*?)['"]"""),
    re.compile(r"""spec:\s*\{\s*["']url["']\s*:\s*["'](.*?)["']"""),
    re.compile(r"""href=["']([^"']+\.(?:json|ya?ml))["']""", re.IGNORECASE),
)


class FetchedDefinition(BaseModel):
    """Raw definition text plus the name used for format sniffing."""

    content: str
    filename: str | None
    source: str


def extract_swagger_url(html: str, page_url: str) -> str | None:
    """Find the definition URL referenced by a Swagger UI HTML page.

    Args:
        html: Page body.
        page_url: URL the page was loaded from, used to absolutize relative links.

    Returns:
        Absolute definition URL, or None when the page references none.
    """
    for pattern in _SWAGGER_URL_PATTERNS:
        match = pattern.search(html)
        if match and match.group(1):
            return urljoin(page_url, match.group(1))
    return None


def _looks_like_html(response: httpx.Response) -> bool:
    content_type = response.headers.get("content-type", "")
    if "text/html" in content_type:
        return True
    head = response.text.lstrip()[:256].lower()
    return head.startswith("<!doctype html") or head.startswith("<html")


async def fetch_definition(
    source: str,
    headers: dict[str, str] | None = None,
    timeout: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FetchedDefinition:
    """Read a definition from a path or download it from an HTTP(S) URL.

    Swagger UI pages are followed one hop to the definition they load.

    Args:
        source: Filesystem path or URL.
        headers: Extra request headers (API keys, bearer tokens).
        timeout: Request timeout in seconds.
        transport: Optional httpx transport, mainly for tests.

    Returns:
        Fetched definition text with a filename hint.

    Raises:
        DefinitionFetchError: When the file cannot be read or the request fails.
    """
    parsed = urlparse(source)
    if parsed.scheme not in ("http", "https"):
        return _read_local(source)

    try:
        async with httpx.AsyncClient(timeout=timeout, headers=headers, transport=transport) as client:
            response = await client.get(source, follow_redirects=True)
            response.raise_for_status()

            if _looks_like_html(response):
                spec_url = extract_swagger_url(response.text, str(response.url))
                if spec_url is None:
                    raise DefinitionFetchError(f"No API definition found in HTML page {source}")
                logger.info("swagger_ui_detected", page=source, definition_url=spec_url)
                response = await client.get(spec_url, follow_redirects=True)
                response.raise_for_status()
    except httpx.HTTPError as exc:
        raise DefinitionFetchError(f"Failed to fetch API definition from {source}: {exc}") from exc

    final_url = str(response.url)
    filename = PurePosixPath(urlparse(final_url).path).name or None
    logger.info("definition_fetched", url=final_url, size=len(response.text))
    return FetchedDefinition(content=response.text, filename=filename, source=final_url)


def _read_local(path: str) -> FetchedDefinition:
    try:
        with open(path, encoding="utf-8") as f:
            content = f.read()
    except OSError as exc:
        raise DefinitionFetchError(f"Failed to read API definition file {path}: {exc}") from exc
    return FetchedDefinition(content=content, filename=PurePosixPath(path).name, source=path)
