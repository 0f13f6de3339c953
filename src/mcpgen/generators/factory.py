"""Generator dispatch: one (language, mode) table drives creation and support queries."""

from __future__ import annotations

from mcpgen.errors import UnsupportedLanguageError, UnsupportedModeError
from mcpgen.generators.base import BaseGenerator
from mcpgen.generators.go import GoGenerator
from mcpgen.generators.python import PythonGenerator, PythonProxyGenerator
from mcpgen.generators.typescript import TypeScriptGenerator, TypeScriptProxyGenerator
from mcpgen.models import GenerationResult, ServerConfig
from mcpgen.utils.logging import get_logger

logger = get_logger(__name__)

SERVER_MODES: tuple[str, ...] = ("direct", "proxy")

# None marks a combination that is known but has no generator
_GENERATORS: dict[tuple[str, str], type[BaseGenerator] | None] = {
    ("TypeScript", "direct"): TypeScriptGenerator,
    ("Python", "direct"): PythonGenerator,
    ("Go", "direct"): GoGenerator,
    ("TypeScript", "proxy"): TypeScriptProxyGenerator,
    ("Python", "proxy"): PythonProxyGenerator,
    ("Go", "proxy"): None,
}


def create_generator(language: str, mode: str = "direct") -> BaseGenerator:
    """Instantiate the generator registered for a language and mode.

    Args:
        language: ``TypeScript``, ``Python`` or ``Go``.
        mode: ``direct`` or ``proxy``.

    Returns:
        A fresh generator instance.

    Raises:
        UnsupportedModeError: When the mode is not one of SERVER_MODES.
        UnsupportedLanguageError: When the combination has no generator.
    """
    if mode not in SERVER_MODES:
        raise UnsupportedModeError(f"Unsupported server mode: {mode}")
    generator_cls = _GENERATORS.get((language, mode))
    if generator_cls is None:
        raise UnsupportedLanguageError(f"Unsupported language for {mode} mode: {language}")
    return generator_cls()


def get_supported_languages(mode: str = "direct") -> list[str]:
    return [language for (language, table_mode), cls in _GENERATORS.items() if table_mode == mode and cls is not None]


def is_language_supported(language: str, mode: str = "direct") -> bool:
    return _GENERATORS.get((language, mode)) is not None


def generate_server_code(config: ServerConfig) -> GenerationResult:
    """Generate a server for ``config``; failures are returned, never raised.

    Args:
        config: Server configuration including language, mode and endpoints.

    Returns:
        GenerationResult with the files, or with ``success=False`` and the error.
    """
    try:
        generator = create_generator(config.language, config.mode)
    except (UnsupportedLanguageError, UnsupportedModeError) as exc:
        logger.warning("generator_unavailable", language=config.language, mode=config.mode, error=str(exc))
        return GenerationResult(success=False, error=str(exc))
    return generator.generate_server(config)
