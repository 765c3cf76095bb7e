"""Pytest configuration and fixtures for AST context tests."""

import json
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator

import pytest

from astcontext_cli.config import ContextSettings


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture(autouse=True)
def _isolated_environment(temp_dir: Path, monkeypatch):
    """Keep tests away from the user's config file, environment and cwd.

    Settings are read from ``config.CONFIG_FILE`` and ``$AST_JSON_PATH``; both
    are redirected so a developer's local setup cannot leak into results.
    """
    home = temp_dir / "home"
    monkeypatch.setattr("astcontext_cli.config.BASE_DIR", home)
    monkeypatch.setattr("astcontext_cli.config.CONFIG_FILE", home / "config.toml")
    monkeypatch.delenv("AST_JSON_PATH", raising=False)
    monkeypatch.delenv("AST_CONTEXT_OUTPUT_DIR", raising=False)
    monkeypatch.chdir(temp_dir)


@pytest.fixture
def sample_ast_path() -> Path:
    """Path to the sample AST document."""
    return Path(__file__).parent / "fixtures" / "sample_ast.json"


@pytest.fixture
def sample_document(sample_ast_path: Path) -> Dict[str, Any]:
    return json.loads(sample_ast_path.read_text(encoding="utf-8"))


@pytest.fixture
def settings(sample_ast_path: Path, temp_dir: Path) -> ContextSettings:
    """Settings pointing at the sample document with snapshots in a temp dir."""
    return ContextSettings(ast_json_path=sample_ast_path, output_dir=temp_dir / "results")


@pytest.fixture
def minimal_document() -> Dict[str, Any]:
    """The two-node document from the end-to-end scenarios."""
    return {
        "modules": [
            {
                "name": "main",
                "functions": [
                    {"id": "fn_a", "name": "foo", "resolvesTo": "type_b"},
                    {"id": "type_b", "name": "Bar"},
                ],
            }
        ]
    }


@pytest.fixture
def write_document(temp_dir: Path):
    """Return a helper that writes a document as JSON into the temp dir."""

    def _write(document: Any, name: str = "ast.json") -> Path:
        path = temp_dir / name
        path.write_text(json.dumps(document), encoding="utf-8")
        return path

    return _write
