"""End-to-end tests for the getASTContext tool."""

import asyncio
import json
from pathlib import Path

import pytest

from astcontext_cli import config
from astcontext_cli.config import ContextSettings
from astcontext_cli.tool import TOOL_NAME, aget_ast_context, get_ast_context, run_tool, tool_spec


def _settings(path: Path, temp_dir: Path, **kwargs) -> ContextSettings:
    return ContextSettings(ast_json_path=path, output_dir=temp_dir / "results", **kwargs)


class TestScenarios:
    """End-to-end context requests."""

    def test_forward_dependency(self, write_document, minimal_document, temp_dir):
        """foo resolves to Bar, so both come back."""
        settings = _settings(write_document(minimal_document), temp_dir)
        payload = get_ast_context(["foo"], settings)

        ids = {node.get("id") for node in payload["nodes"]}
        assert {"fn_a", "type_b"} <= ids
        assert payload["matchedSymbols"] == ["foo"]

    def test_unknown_symbol(self, settings):
        payload = get_ast_context(["doesNotExist"], settings)
        assert "error" not in payload
        assert payload["symbols"] == ["doesNotExist"]
        assert payload["matchedSymbols"] == []
        assert payload["nodes"] == []

    def test_reverse_dependency(self, write_document, temp_dir):
        document = {
            "modules": [{"functions": [{"id": "fn_a", "name": "caller"}, {"id": "fn_c", "name": "callee"}]}],
            "dependency_graph": {"relationships": {"r": {"from": "fn_a", "to": "fn_c", "type": "calls"}}},
        }
        payload = get_ast_context(["callee"], _settings(write_document(document), temp_dir))
        ids = [node["id"] for node in payload["nodes"]]
        assert ids == ["fn_a", "fn_c"]
        assert set(payload["relationships"]) == {"r"}

    def test_duplicate_names(self, settings):
        payload = get_ast_context(["handler"], settings)
        ids = [node["id"] for node in payload["nodes"]]
        assert ids == ["fn_handler_main", "fn_handler_util"]
        assert payload["matchedSymbols"] == ["handler"]

    def test_full_slice(self, settings):
        payload = get_ast_context(["foo", "nothing"], settings)
        assert [n["id"] for n in payload["nodes"]] == ["fn_a", "fn_c", "type_b", "type_order", "fn_helper"]
        assert payload["symbols"] == ["foo", "nothing"]
        assert payload["matchedSymbols"] == ["foo"]
        assert set(payload["relationships"]) == {"rel_1", "rel_2"}
        assert "endpoints" not in payload
        assert payload["metadata"]["total_nodes"] == 5
        assert payload["metadata"]["strategy"] == "symbol"

    def test_file_request(self, settings):
        payload = get_ast_context(["util.bal"], settings)
        assert payload["metadata"]["strategy"] == "file"
        assert {"mod_util", "fn_helper", "fn_handler_util"} <= {n.get("id") for n in payload["nodes"]}

    def test_endpoints_included(self, settings):
        payload = get_ast_context(["deleteOrder"], settings)
        assert set(payload["endpoints"]) == {"DELETE /orders"}

    def test_idempotent(self, settings):
        first = get_ast_context(["foo", "Order"], settings)
        second = get_ast_context(["foo", "Order"], settings)
        assert first["nodes"] == second["nodes"]
        assert first["savedTo"] != second["savedTo"]


class TestErrors:
    """Configuration errors come back as structured payloads."""

    def test_missing_path_setting(self, temp_dir):
        payload = get_ast_context(["foo"], ContextSettings(output_dir=temp_dir))
        assert payload == {"error": "AST_JSON_PATH environment variable is not set"}

    def test_missing_file(self, temp_dir):
        payload = get_ast_context(["foo"], _settings(temp_dir / "missing.json", temp_dir))
        assert "error" in payload
        assert "not found" in payload["error"]
        assert not (temp_dir / "results").exists()

    def test_unparsable_file(self, temp_dir):
        path = temp_dir / "bad.json"
        path.write_text("[1, 2", encoding="utf-8")
        payload = get_ast_context(["foo"], _settings(path, temp_dir))
        assert set(payload) == {"error"}

    def test_environment_lookup(self, sample_ast_path, temp_dir, monkeypatch):
        monkeypatch.setenv("AST_JSON_PATH", str(sample_ast_path))
        monkeypatch.setenv("AST_CONTEXT_OUTPUT_DIR", str(temp_dir / "env-results"))
        payload = get_ast_context(["foo"])
        assert payload["matchedSymbols"] == ["foo"]
        assert Path(payload["savedTo"]).parent == temp_dir / "env-results"

    def test_snapshot_failure_still_returns_result(self, sample_ast_path, temp_dir):
        blocker = temp_dir / "blocker"
        blocker.write_text("file")
        settings = ContextSettings(ast_json_path=sample_ast_path, output_dir=blocker / "results")
        payload = get_ast_context(["foo"], settings)
        assert payload["matchedSymbols"] == ["foo"]
        assert payload["savedTo"] is None
        assert "snapshotError" in payload

    def test_invalid_config_file(self, sample_ast_path, monkeypatch):
        config.ensure_base_dirs()
        config.CONFIG_FILE.write_text('[context]\nambiguity_policy = "weird"\n')
        monkeypatch.setenv("AST_JSON_PATH", str(sample_ast_path))

        payload = get_ast_context(["foo"])
        assert set(payload) == {"error"}
        assert "ambiguity_policy" in payload["error"]

    def test_synthesized_ids_returned(self, write_document, temp_dir):
        document = {"modules": [{"sourceFile": "a.bal", "functions": [{"name": "foo"}]}]}
        payload = get_ast_context(["a.bal"], _settings(write_document(document), temp_dir))
        assert [n["id"] for n in payload["nodes"]] == ["$.modules[0]", "$.modules[0].functions[0]"]


class TestSnapshots:
    def test_saved_snapshot_matches_payload(self, settings):
        payload = get_ast_context(["foo"], settings)
        saved = json.loads(Path(payload["savedTo"]).read_text(encoding="utf-8"))
        assert saved["nodes"] == payload["nodes"]
        assert saved["matchedSymbols"] == payload["matchedSymbols"]

    def test_snapshots_disabled(self, sample_ast_path, temp_dir):
        settings = _settings(sample_ast_path, temp_dir, save_snapshots=False)
        payload = get_ast_context(["foo"], settings)
        assert payload["savedTo"] is None
        assert not (temp_dir / "results").exists()


class TestToolInterface:
    def test_tool_spec(self):
        spec = tool_spec()
        assert spec["name"] == TOOL_NAME == "getASTContext"
        assert spec["input_schema"]["properties"]["symbols"]["type"] == "array"
        assert spec["input_schema"]["required"] == ["symbols"]

    def test_run_tool(self, settings):
        payload = run_tool({"symbols": ["foo"]}, settings)
        assert payload["matchedSymbols"] == ["foo"]

    def test_run_tool_invalid_arguments(self, settings):
        payload = run_tool({"symbols": "foo"}, settings)
        assert "error" in payload
        payload = run_tool({}, settings)
        assert "error" in payload

    def test_async_entry_point(self, settings):
        payload = asyncio.run(aget_ast_context(["handler"], settings))
        assert payload["matchedSymbols"] == ["handler"]
