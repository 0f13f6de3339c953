"""Conformance checks for generated server trees.

Verifies that a generation result carries the fixed file layout of its
language, and that the files Python can read back (Python sources, JSON
configs, YAML manifests) are at least syntactically valid.
"""

from __future__ import annotations

import ast
import json

import yaml

from mcpgen.models import GenerationResult
from mcpgen.utils.logging import get_logger

logger = get_logger(__name__)

REQUIRED_FILES: dict[str, tuple[str, ...]] = {
    "TypeScript": (
        "package.json",
        "tsconfig.json",
        "src/index.ts",
        "src/routes/resourceRoutes.ts",
        "src/routes/toolRoutes.ts",
        "README.md",
    ),
    "Python": (
        "main.py",
        "requirements.txt",
        "routes/resources.py",
        "routes/tools.py",
        "README.md",
    ),
    "Go": (
        "go.mod",
        "main.go",
        "handlers.go",
        "README.md",
    ),
}


def check_required_files(result: GenerationResult, language: str) -> list[str]:
    """Return the required paths missing from a generation result.

    Args:
        result: Generation result to inspect.
        language: Target language of the result.

    Returns:
        Missing relative paths, in table order. Empty when conformant.
    """
    present = {f.full_path for f in result.files or []}
    return [path for path in REQUIRED_FILES.get(language, ()) if path not in present]


def _syntax_error(name: str, content: str) -> str | None:
    try:
        if name.endswith(".py"):
            ast.parse(content, filename=name)
        elif name.endswith(".json"):
            json.loads(content)
        elif name.endswith((".yml", ".yaml")):
            yaml.safe_load(content)
    except SyntaxError as exc:
        return f"{name}: invalid Python syntax at line {exc.lineno}: {exc.msg}"
    except json.JSONDecodeError as exc:
        return f"{name}: invalid JSON: {exc}"
    except yaml.YAMLError as exc:
        return f"{name}: invalid YAML: {exc}"
    return None


def validate_generation_result(result: GenerationResult, language: str) -> list[str]:
    """Run every conformance check on a generation result.

    Args:
        result: Generation result to inspect.
        language: Target language of the result.

    Returns:
        Human-readable problems; an empty list means the result conforms.
    """
    if not result.success:
        return [f"Generation failed: {result.error or 'unknown error'}"]

    problems = [f"Missing required file: {path}" for path in check_required_files(result, language)]
    for server_file in result.files or []:
        error = _syntax_error(server_file.full_path, server_file.content)
        if error:
            problems.append(error)

    if problems:
        logger.warning("generation_nonconformant", language=language, problems=len(problems))
    return problems
