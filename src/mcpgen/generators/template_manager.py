"""Template registry with ``{{ dotted.path }}`` placeholder substitution."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from mcpgen.errors import TemplateManifestError, TemplateNotFoundError
from mcpgen.utils.logging import get_logger

logger = get_logger(__name__)

# Directory containing the per-language template files
_TEMPLATES_DIR = Path(__file__).parent / "templates"

_PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Za-z_][\w.]*)\s*\}\}")

_MISSING = object()

_COMMON = "common"

# Expected context keys per template, keyed by template directory and name
TEMPLATE_MANIFEST: dict[str, dict[str, frozenset[str]]] = {
    "common": {
        "readme": frozenset(
            {
                "config.name",
                "config.description",
                "config.language",
                "config.mode",
                "config.authentication.type",
                "endpointCount",
                "resourceCount",
                "toolCount",
                "gettingStarted",
                "authSection",
                "endpointDocs",
            }
        ),
        "env": frozenset({"config.name", "port", "extraVariables"}),
    },
    "typescript": {
        "package_json": frozenset({"packageNameLiteral", "descriptionLiteral"}),
        "tsconfig": frozenset({"target"}),
        "index_ts": frozenset(
            {
                "authImport",
                "serverNameLiteral",
                "serverDescriptionLiteral",
                "mode",
                "resourcesList",
                "toolsList",
                "authMiddleware",
            }
        ),
        "resource_routes": frozenset({"imports", "routes"}),
        "tool_routes": frozenset({"imports", "routes"}),
        "auth": frozenset({"authLocationLiteral", "authNameLiteral", "authSchemeLiteral"}),
        "proxy_service": frozenset({"targetBaseUrlLiteral", "cacheEnabled", "rateLimitingEnabled"}),
    },
    "python": {
        "requirements": frozenset({"extraRequirements"}),
        "main_py": frozenset(
            {
                "fastapiImports",
                "authImport",
                "serverNameLiteral",
                "serverDescriptionLiteral",
                "mode",
                "resourcesList",
                "toolsList",
                "routerRegistration",
            }
        ),
        "resource_routes": frozenset({"imports", "routes"}),
        "tool_routes": frozenset({"imports", "routes"}),
        "auth": frozenset({"authLocationLiteral", "authNameLiteral", "authSchemeLiteral"}),
        "proxy_service": frozenset({"targetBaseUrlLiteral", "cacheEnabled", "rateLimitingEnabled"}),
    },
    "go": {
        "go_mod": frozenset({"moduleName"}),
        "main_go": frozenset(
            {
                "imports",
                "serverNameLiteral",
                "serverDescriptionLiteral",
                "resourcesList",
                "toolsList",
                "routeRegistrations",
                "authMiddleware",
            }
        ),
        "handlers_go": frozenset({"imports", "handlers"}),
        "auth_middleware": frozenset({"credentialLookup", "authSchemeLiteral"}),
        "dockerfile": frozenset({"binaryName", "port"}),
    },
}


def placeholders(template: str) -> frozenset[str]:
    """Return every placeholder key used by a template string."""
    return frozenset(_PLACEHOLDER_RE.findall(template))


def _lookup(context: Any, dotted: str) -> Any:
    """Resolve a dotted path through mappings and object attributes."""
    node = context
    for part in dotted.split("."):
        if isinstance(node, Mapping):
            node = node.get(part, _MISSING)
        else:
            node = getattr(node, part, _MISSING)
        if node is _MISSING:
            return _MISSING
    return node


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def render(template: str, context: Any) -> str:
    """Replace each ``{{ key }}`` with the value found at that dotted path.

    Keys that do not resolve are left in place verbatim. ``None`` renders as
    an empty string and booleans as ``true``/``false``.

    Args:
        template: Template text.
        context: Mapping (or object) the keys are resolved against.

    Returns:
        Rendered text.
    """

    def _substitute(match: re.Match[str]) -> str:
        value = _lookup(context, match.group(1))
        if value is _MISSING:
            return match.group(0)
        return _stringify(value)

    return _PLACEHOLDER_RE.sub(_substitute, template)


class TemplateManager:
    """Per-language registry of named templates.

    Templates shared by all languages live in ``templates/common``; language
    templates live in ``templates/<language>``. Each registered template is
    checked against its manifest of expected keys when it is registered.
    """

    def __init__(self, language: str | None = None, templates_dir: Path | None = None) -> None:
        """Load the common templates and those of one language.

        Args:
            language: Language directory name (``typescript``, ``python``, ``go``),
                or None for the common templates only.
            templates_dir: Override for the template root directory.

        Raises:
            TemplateManifestError: When a bundled template disagrees with its manifest.
        """
        self._language = language
        self._templates: dict[str, str] = {}
        self._expected: dict[str, frozenset[str]] = {}

        root = templates_dir or _TEMPLATES_DIR
        for group in (_COMMON, language):
            if group is None:
                continue
            manifest = TEMPLATE_MANIFEST.get(group, {})
            for path in sorted((root / group).glob("*.tmpl")):
                self.register_template(path.stem, path.read_text(encoding="utf-8"), manifest.get(path.stem))

        logger.debug("templates_loaded", language=language, count=len(self._templates))

    @property
    def language(self) -> str | None:
        return self._language

    def register_template(self, name: str, template: str, expected_keys: Iterable[str] | None = None) -> None:
        """Register (or replace) a template.

        Args:
            name: Template name.
            template: Template text.
            expected_keys: Keys the template must use. When omitted, the
                template's own placeholders become its manifest.

        Raises:
            TemplateManifestError: When placeholders and expected keys differ.
        """
        found = placeholders(template)
        expected = frozenset(expected_keys) if expected_keys is not None else found
        if found != expected:
            missing = sorted(expected - found)
            undeclared = sorted(found - expected)
            raise TemplateManifestError(
                f"Template '{name}' does not match its manifest (unused keys: {missing}, undeclared keys: {undeclared})"
            )
        self._templates[name] = template
        self._expected[name] = expected

    def has_template(self, name: str) -> bool:
        return name in self._templates

    def template_names(self) -> list[str]:
        return sorted(self._templates)

    def get_template(self, name: str) -> str:
        """Return the raw text of a registered template.

        Raises:
            TemplateNotFoundError: When the name is not registered.
        """
        try:
            return self._templates[name]
        except KeyError:
            raise TemplateNotFoundError(f"Template '{name}' is not registered for {self._language or _COMMON}") from None

    def expected_keys(self, name: str) -> frozenset[str]:
        self.get_template(name)
        return self._expected[name]

    def missing_keys(self, name: str, context: Any) -> list[str]:
        """Manifest keys of a template that the context cannot resolve."""
        return sorted(key for key in self.expected_keys(name) if _lookup(context, key) is _MISSING)

    def render(self, template: str, context: Any) -> str:
        return render(template, context)

    def render_template(self, name: str, context: Any) -> str:
        """Render a registered template by name.

        Args:
            name: Registered template name.
            context: Values for the template's placeholders.

        Returns:
            Rendered text; unresolved placeholders stay verbatim.

        Raises:
            TemplateNotFoundError: When the name is not registered.
        """
        template = self.get_template(name)
        missing = self.missing_keys(name, context)
        if missing:
            logger.warning("template_context_incomplete", template=name, missing=missing)
        return render(template, context)
