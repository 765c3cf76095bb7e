"""Coordinates the indexer, resolver, closure engine and assembler."""

from __future__ import annotations

from collections import Counter
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from .assembler import ContextAssembler, strategy_label
from .closure import DependencyClosure
from .config import ContextSettings
from .indexer import TreeIndexer
from .models import ContextResult
from .resolver import SymbolResolver


class ContextOrchestrator:
    """Builds a fresh index for one document and answers context requests.

    Nothing is shared between orchestrators, so concurrent requests never
    see each other's state.
    """

    def __init__(self, document: Mapping[str, Any], settings: Optional[ContextSettings] = None):
        self.document = document
        self.settings = settings or ContextSettings()
        self.index = TreeIndexer(self.settings).index(document)
        self.resolver = SymbolResolver(self.index, self.settings)
        self.closure = DependencyClosure(self.index, document, self.settings)
        self.assembler = ContextAssembler(self.index, document)

    def resolve(self, symbols: Sequence[str]) -> Tuple[Set[str], List[str]]:
        return self.resolver.resolve(symbols)

    def context_ids(self, symbols: Sequence[str]) -> Set[str]:
        seeds, _ = self.resolver.resolve(symbols)
        return self.closure.close(seeds)

    def context(self, symbols: Sequence[str]) -> ContextResult:
        symbols = list(symbols)
        seeds, matched = self.resolver.resolve(symbols)
        ids = self.closure.close(seeds)
        file_symbols = [s for s in symbols if isinstance(s, str) and self.resolver.is_file_symbol(s)]
        return self.assembler.assemble(
            ids, matched, symbols, strategy=strategy_label(symbols, file_symbols),
        )

    def explain(self, symbol: str) -> Dict[str, List[str]]:
        return self.resolver.explain(symbol)

    def stats(self) -> Dict[str, Any]:
        kinds = Counter({kind: len(nodes) for kind, nodes in self.index.by_kind.items()})
        files = Counter({name: len(nodes) for name, nodes in self.index.by_file.items()})
        return {
            "nodes": len(self.index),
            "names": len(self.index.by_name),
            "relationships": len(self.closure.relationships),
            "kinds": dict(kinds.most_common()),
            "files": dict(files.most_common()),
        }
