"""Tests for symbol resolution."""

import pytest

from astcontext_cli.config import ContextSettings
from astcontext_cli.indexer import TreeIndexer
from astcontext_cli.resolver import SymbolResolver


@pytest.fixture
def resolver(sample_document) -> SymbolResolver:
    return SymbolResolver(TreeIndexer().index(sample_document))


class TestResolve:
    """Tests for SymbolResolver.resolve."""

    def test_exact_name(self, resolver: SymbolResolver):
        seeds, matched = resolver.resolve(["foo"])
        assert seeds == {"fn_a"}
        assert matched == ["foo"]

    def test_unmatched_symbol_is_not_an_error(self, resolver: SymbolResolver):
        seeds, matched = resolver.resolve(["doesNotExist"])
        assert seeds == set()
        assert matched == []

    def test_matched_is_ordered_subset(self, resolver: SymbolResolver):
        symbols = ["nothingHere", "foo", "handler", "foo"]
        _, matched = resolver.resolve(symbols)
        assert matched == ["foo", "handler"]
        assert set(matched) <= set(symbols)

    def test_duplicate_names_preserved(self, resolver: SymbolResolver):
        seeds, _ = resolver.resolve(["handler"])
        assert seeds == {"fn_handler_main", "fn_handler_util"}

    def test_case_insensitive(self, resolver: SymbolResolver):
        seeds, matched = resolver.resolve(["DELETEORDER"])
        assert "fn_c" in seeds
        assert matched == ["DELETEORDER"]

    def test_substring_symbol_inside_name(self, resolver: SymbolResolver):
        seeds, _ = resolver.resolve(["delete"])
        assert seeds == {"fn_c"}

    def test_substring_name_inside_symbol(self, resolver: SymbolResolver):
        """A longer symbol matches the shorter registered name it contains."""
        seeds, _ = resolver.resolve(["formatDateTime"])
        assert seeds == {"fn_helper"}

    def test_substring_accumulates_with_exact(self, resolver: SymbolResolver):
        seeds, _ = resolver.resolve(["Order"])
        assert seeds == {"type_order", "fn_c", "svc_orders", "res_get_orders"}

    def test_direct_id(self, resolver: SymbolResolver):
        seeds, matched = resolver.resolve(["type_b"])
        assert seeds == {"type_b"}
        assert matched == ["type_b"]

    def test_file_name(self, resolver: SymbolResolver):
        seeds, matched = resolver.resolve(["util.bal"])
        assert seeds == {"mod_util", "fn_helper", "fn_handler_util"}
        assert matched == ["util.bal"]

    def test_file_name_with_directory_prefix(self):
        document = {"modules": [{"id": "m", "sourceFile": "src/app/main.bal"}]}
        resolver = SymbolResolver(TreeIndexer().index(document))
        seeds, _ = resolver.resolve(["main.bal"])
        assert seeds == {"m"}

    def test_file_name_case_insensitive(self, resolver: SymbolResolver):
        assert resolver.is_file_symbol("Util.BAL")
        seeds, _ = resolver.resolve(["Util.BAL"])
        assert seeds == {"mod_util", "fn_helper", "fn_handler_util"}
        assert resolver.explain("UTIL.bal")["file"] == ["mod_util", "fn_helper", "fn_handler_util"]

    def test_empty_symbol(self, resolver: SymbolResolver):
        seeds, matched = resolver.resolve([""])
        assert seeds == set()
        assert matched == []

    def test_idempotent(self, resolver: SymbolResolver):
        symbols = ["foo", "Order", "util.bal", "missing"]
        assert resolver.resolve(symbols) == resolver.resolve(symbols)

    def test_does_not_mutate_index(self, resolver: SymbolResolver):
        before = (dict(resolver.index.by_name), len(resolver.index))
        resolver.resolve(["foo", "Order", "util.bal"])
        assert (dict(resolver.index.by_name), len(resolver.index)) == before


class TestMinimumSubstringLength:
    """Tests for the substring length threshold."""

    def test_short_names_overmatch_by_default(self):
        document = {"modules": [{"id": "short", "name": "id"}, {"id": "long", "name": "userId"}]}
        resolver = SymbolResolver(TreeIndexer().index(document))
        seeds, _ = resolver.resolve(["validate"])
        assert "short" in seeds

    def test_threshold_suppresses_short_matches(self):
        document = {"modules": [{"id": "short", "name": "id"}, {"id": "long", "name": "userId"}]}
        settings = ContextSettings(min_substring_length=3)
        resolver = SymbolResolver(TreeIndexer(settings).index(document), settings)
        seeds, _ = resolver.resolve(["validate"])
        assert seeds == set()
        seeds, _ = resolver.resolve(["user"])
        assert seeds == {"long"}


class TestExplain:
    """Tests for per-strategy explanations."""

    def test_reports_each_strategy(self, resolver: SymbolResolver):
        hits = resolver.explain("Order")
        assert hits["exact"] == ["type_order"]
        assert hits["lowercase"] == ["type_order"]
        assert "fn_c" in hits["substring"]
        assert "file" not in hits
        assert "id" not in hits

    def test_file_strategy(self, resolver: SymbolResolver):
        hits = resolver.explain("types.bal")
        assert hits["file"][0] == "mod_types"

    def test_no_hits(self, resolver: SymbolResolver):
        assert resolver.explain("doesNotExist") == {}

    def test_is_file_symbol(self, resolver: SymbolResolver):
        assert resolver.is_file_symbol("main.bal")
        assert resolver.is_file_symbol("Service.PY")
        assert not resolver.is_file_symbol("main")
