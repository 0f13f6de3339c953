"""Unit tests for generated-tree conformance checks."""

from __future__ import annotations

import pytest

from mcpgen.generators import generate_server_code
from mcpgen.generators.conformance import check_required_files, validate_generation_result
from mcpgen.models import AuthConfig, GenerationResult, ServerFile


@pytest.mark.parametrize(
    ("language", "mode"),
    [("TypeScript", "direct"), ("Python", "direct"), ("Go", "direct"), ("TypeScript", "proxy"), ("Python", "proxy")],
)
@pytest.mark.parametrize("auth_type", ["None", "ApiKey", "Bearer"])
def test_every_generator_conforms(make_config, language: str, mode: str, auth_type: str) -> None:
    config = make_config(
        language=language,
        mode=mode,
        authentication=AuthConfig(type=auth_type),
        target_base_url="https://upstream.example.com" if mode == "proxy" else None,
    )
    result = generate_server_code(config)
    assert validate_generation_result(result, language) == []


def test_missing_files_are_listed() -> None:
    result = GenerationResult(
        success=True,
        files=[ServerFile(name="main.py", path="/", content="print('hi')\n")],
    )
    assert check_required_files(result, "Python") == [
        "requirements.txt",
        "routes/resources.py",
        "routes/tools.py",
        "README.md",
    ]
    assert "Missing required file: README.md" in validate_generation_result(result, "Python")


def test_syntax_problems_are_reported() -> None:
    result = GenerationResult(
        success=True,
        files=[
            ServerFile(name="broken.py", path="/", content="def f(:\n"),
            ServerFile(name="package.json", path="/", content="{not json"),
            ServerFile(name="app.yaml", path="/", content="a: [unclosed\n"),
        ],
    )
    problems = validate_generation_result(result, "Unknown")
    assert len(problems) == 3
    assert problems[0].startswith("broken.py: invalid Python syntax")
    assert problems[1].startswith("package.json: invalid JSON")
    assert problems[2].startswith("app.yaml: invalid YAML")


def test_failed_result() -> None:
    result = GenerationResult(success=False, error="boom")
    assert validate_generation_result(result, "Go") == ["Generation failed: boom"]
