"""Assemble a :class:`ContextResult` from a closure id set."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set

from .indexer import ASTIndex
from .models import ContextMetadata, ContextResult, endpoints_of, relationships_of

logger = logging.getLogger(__name__)


def strategy_label(symbols: Sequence[str], file_symbols: Iterable[str]) -> str:
    """Coarse label for logs and metadata: ``file``, ``symbol`` or ``mixed``."""
    files = set(file_symbols)
    if not files:
        return "symbol"
    if all(s in files for s in symbols):
        return "file"
    return "mixed"


class ContextAssembler:
    def __init__(self, index: ASTIndex, document: Optional[Mapping[str, Any]] = None):
        self.index = index
        self.document: Mapping[str, Any] = document if isinstance(document, Mapping) else {}

    def assemble(
        self,
        context_ids: Iterable[str],
        matched_symbols: Sequence[str],
        symbols: Sequence[str],
        strategy: str = "symbol",
    ) -> ContextResult:
        context = set(context_ids)
        ordered_ids = self.index.sort_ids(context)
        nodes = tuple(self.index.by_id[i] for i in ordered_ids)
        if len(ordered_ids) != len(context):
            logger.debug("Dropped %d unresolvable ids", len(context) - len(ordered_ids))

        return ContextResult(
            symbols=tuple(symbols),
            matched_symbols=tuple(matched_symbols),
            nodes=nodes,
            node_ids=tuple(ordered_ids),
            endpoints=self._endpoints(context, set(matched_symbols)),
            relationships=self._relationships(context),
            metadata=self._metadata(len(nodes), strategy),
        )

    def _endpoints(self, context: Set[str], matched: Set[str]) -> Dict[str, Any]:
        selected: Dict[str, Any] = {}
        for endpoint in endpoints_of(self.document):
            if (
                endpoint.entity in matched
                or matched.intersection(endpoint.operations)
                or endpoint.endpoint_id in context
            ):
                selected[endpoint.key] = dict(endpoint.raw)
        return selected

    def _relationships(self, context: Set[str]) -> Dict[str, Any]:
        selected: Dict[str, Any] = {}
        for rel in relationships_of(self.document):
            if self._touches(rel.source, context) or self._touches(rel.target, context):
                selected[rel.key] = dict(rel.raw)
        return selected

    def _touches(self, ref: Optional[str], context: Set[str]) -> bool:
        if ref is None:
            return False
        if ref in context:
            return True
        return any(i in context for i in self.index.ids_named(ref))

    def _metadata(self, total_nodes: int, strategy: str) -> ContextMetadata:
        structure = _section(self.document, "project_structure")
        ast_section = _section(self.document, "ast")
        imports = ast_section.get("imports", structure.get("imports"))
        return ContextMetadata(
            source_files=_list_field(structure.get("source_files"), "source_files"),
            imports=_list_field(imports, "imports"),
            dependencies=_dict_field(structure.get("dependencies"), "dependencies"),
            total_nodes=total_nodes,
            strategy=strategy,
        )


def _section(document: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = document.get(name)
    return value if isinstance(value, Mapping) else {}


def _list_field(value: Any, label: str) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    logger.warning("Metadata field '%s' is not a list; using []", label)
    return []


def _dict_field(value: Any, label: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return dict(value)
    logger.warning("Metadata field '%s' is not a mapping; using {}", label)
    return {}
