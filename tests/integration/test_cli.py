"""Tests for the mcpgen command line."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from mcpgen.__main__ import main, write_server_files
from mcpgen.models import ServerFile

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


@pytest.fixture(autouse=True)
def _fast_deployments(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MCPGEN_DEPLOY_DELAY_SECONDS", "0")
    monkeypatch.setenv("MCPGEN_CONFIGURE_DELAY_SECONDS", "0")
    monkeypatch.setenv("MCPGEN_LOG_LEVEL", "WARNING")


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "server.json"
    path.write_text(
        json.dumps(
            {
                "name": "Widget Server",
                "language": "Python",
                "authentication": {"type": "API Key"},
                "hosting": {"provider": "GCP", "type": "Serverless"},
                "endpoints": [],
            }
        ),
        encoding="utf-8",
    )
    return path


def test_no_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    assert _run([]) == 0
    assert "usage: mcpgen" in capsys.readouterr().out


def test_inspect_valid_definition(capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(["inspect", str(FIXTURES_DIR / "widgets_openapi3.yaml")]) == 0

    report = json.loads(capsys.readouterr().out)
    assert report["valid"] is True
    assert report["format"] == "OpenAPI3"
    assert report["classifiedByFallback"] is False
    assert [(ep["method"], ep["path"], ep["mcpType"]) for ep in report["endpoints"]][:2] == [
        ("GET", "/widgets", "resource"),
        ("POST", "/widgets", "tool"),
    ]


def test_inspect_invalid_definition(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = tmp_path / "api.json"
    source.write_text('{"swagger": "1.2", "info": {"title": "Old"}, "paths": {}}', encoding="utf-8")

    assert _run(["inspect", str(source)]) == 1
    report = json.loads(capsys.readouterr().out)
    assert report["valid"] is False
    assert report["classifiedByFallback"] is True
    assert "Invalid OpenAPI version. Must start with 3." in report["errors"]
    assert report["endpoints"] == []


def test_inspect_missing_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(["inspect", str(tmp_path / "missing.yaml")]) == 1
    assert "Error: Failed to read API definition file" in capsys.readouterr().err


def test_inspect_rejects_bad_header(capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(["inspect", "https://example.com/api.json", "--header", "no-separator"]) == 1
    assert "expected NAME:VALUE" in capsys.readouterr().err


def test_generate_writes_files(tmp_path: Path, config_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    output_dir = tmp_path / "out"
    definition = FIXTURES_DIR / "petstore_swagger2.json"

    assert _run(["generate", str(config_file), str(output_dir), "--definition", str(definition)]) == 0

    assert "Generated" in capsys.readouterr().out
    resources = (output_dir / "routes" / "resources.py").read_text(encoding="utf-8")
    assert '@router.get("/pets")' in resources
    assert (output_dir / "middleware" / "auth.py").exists()
    assert (output_dir / "main.py").exists()


def test_generate_unsupported_combination(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config = tmp_path / "go-proxy.json"
    config.write_text(json.dumps({"name": "x", "language": "Go", "mode": "proxy"}), encoding="utf-8")

    assert _run(["generate", str(config), str(tmp_path / "out")]) == 1
    assert "Error generating server" in capsys.readouterr().err
    assert not (tmp_path / "out").exists()


def test_generate_invalid_config(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config = tmp_path / "bad.json"
    config.write_text(json.dumps({"language": "Cobol"}), encoding="utf-8")

    assert _run(["generate", str(config), str(tmp_path / "out")]) == 1
    assert "Invalid server config" in capsys.readouterr().err


def test_deploy_reports_progress(config_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    definition = FIXTURES_DIR / "widgets_openapi3.yaml"

    assert _run(["deploy", str(config_file), "--definition", str(definition)]) == 0

    out = capsys.readouterr().out.splitlines()
    assert out[0] == "[ 10%] preparing: Preparing deployment files..."
    assert out[-2] == "[100%] success: Deployment successful!"
    assert out[-1] == "Deployed to https://mcp-server-dot-project.appspot.com"


@pytest.mark.parametrize(("mode", "expected"), [("direct", ["TypeScript", "Python", "Go"]), ("proxy", ["TypeScript", "Python"])])
def test_languages(mode: str, expected: list[str], capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(["languages", "--mode", mode]) == 0
    assert capsys.readouterr().out.split() == expected


def test_write_server_files(tmp_path: Path) -> None:
    files = [
        ServerFile(name="index.ts", path="/src", content="export {};\n"),
        ServerFile(name="package.json", path="/", content="{}"),
    ]
    written = write_server_files(files, str(tmp_path))
    assert written == [tmp_path / "src" / "index.ts", tmp_path / "package.json"]
    assert (tmp_path / "src" / "index.ts").read_text(encoding="utf-8") == "export {};\n"
