"""Symbol resolution: map requested symbol strings to indexed node ids.

Every strategy is applied to every symbol and the hits are accumulated:

1. file       – the symbol looks like a file name; all nodes from that file
2. exact      – name index, original case
3. lowercase  – name index, lower-cased symbol
4. substring  – either lower-cased string contains the other
5. id         – the symbol is itself a known node id
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .config import ContextSettings
from .indexer import ASTIndex

logger = logging.getLogger(__name__)

STRATEGIES = ("file", "exact", "lowercase", "substring", "id")


class SymbolResolver:
    """Resolves symbols against an :class:`ASTIndex` without modifying it."""

    def __init__(self, index: ASTIndex, settings: Optional[ContextSettings] = None):
        self.index = index
        self.settings = settings or ContextSettings()

    def resolve(self, symbols: Sequence[str]) -> Tuple[Set[str], List[str]]:
        """Return ``(seed_ids, matched_symbols)``.

        ``matched_symbols`` keeps request order and drops duplicates; symbols
        that hit nothing are simply absent from it.
        """
        seed_ids: Set[str] = set()
        matched: List[str] = []
        for symbol in symbols:
            hits = self.match(symbol)
            if hits:
                seed_ids.update(hits)
                if symbol not in matched:
                    matched.append(symbol)
            else:
                logger.debug("Symbol %r matched no nodes", symbol)
        return seed_ids, matched

    def match(self, symbol: str) -> List[str]:
        """All node ids matched by *symbol*, in first-hit order."""
        out: List[str] = []
        for ids in self.explain(symbol).values():
            out.extend(i for i in ids if i not in out)
        return out

    def explain(self, symbol: str) -> Dict[str, List[str]]:
        """Per-strategy hits for *symbol*; strategies without hits are omitted."""
        if not isinstance(symbol, str) or not symbol:
            return {}

        hits: Dict[str, List[str]] = {}
        if self.is_file_symbol(symbol):
            hits["file"] = self._match_file(symbol)
        hits["exact"] = self.index.ids_named(symbol)
        hits["lowercase"] = self.index.ids_named(symbol.lower())
        hits["substring"] = self._match_substring(symbol)
        hits["id"] = [symbol] if symbol in self.index else []
        return {name: hits[name] for name in STRATEGIES if hits.get(name)}

    def is_file_symbol(self, symbol: str) -> bool:
        lowered = symbol.lower()
        return any(lowered.endswith(suffix) for suffix in self.settings.file_suffixes)

    def _match_file(self, symbol: str) -> List[str]:
        wanted = symbol.replace("\\", "/").lower()
        out: List[str] = []
        for file_name in self.index.files():
            candidate = file_name.replace("\\", "/").lower()
            if candidate == wanted or candidate.endswith("/" + wanted):
                out.extend(i for i in self.index.ids_in_file(file_name) if i not in out)
        return out

    def _match_substring(self, symbol: str) -> List[str]:
        needle = symbol.lower()
        minimum = self.settings.min_substring_length
        out: List[str] = []
        for name in self.index.names():
            candidate = name.lower()
            if candidate in needle:
                contained = candidate
            elif needle in candidate:
                contained = needle
            else:
                continue
            if len(contained) < minimum:
                continue
            out.extend(i for i in self.index.ids_named(name) if i not in out)
        return out
