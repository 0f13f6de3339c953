"""Server code generators for TypeScript, Python and Go."""

from mcpgen.generators.factory import (
    create_generator,
    generate_server_code,
    get_supported_languages,
    is_language_supported,
)

__all__ = [
    "create_generator",
    "generate_server_code",
    "get_supported_languages",
    "is_language_supported",
]
