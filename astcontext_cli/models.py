"""Core data models shared by the indexer, closure engine and assembler."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Relationship:
    """Typed directed edge from the document's relationship registry.

    ``source`` and ``target`` hold either node ids or symbol names.
    """

    key: str
    source: Optional[str]
    target: Optional[str]
    rel_type: str = ""
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_mapping(cls, key: str, data: Mapping[str, Any]) -> "Relationship":
        return cls(
            key=key,
            source=_as_ref(data.get("from")),
            target=_as_ref(data.get("to")),
            rel_type=str(data.get("type") or ""),
            raw=data,
        )


@dataclass(frozen=True)
class Endpoint:
    """Externally reachable operation tied to an entity and/or operations."""

    key: str
    entity: Optional[str]
    operations: Tuple[str, ...]
    endpoint_id: str
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_mapping(cls, key: str, data: Mapping[str, Any]) -> "Endpoint":
        operations = data.get("operations")
        if not isinstance(operations, (list, tuple)):
            operations = []
        return cls(
            key=key,
            entity=_as_ref(data.get("entity")),
            operations=tuple(op for op in operations if isinstance(op, str)),
            endpoint_id=_as_ref(data.get("id")) or key,
            raw=data,
        )


@dataclass(frozen=True)
class ContextMetadata:
    source_files: List[Any] = field(default_factory=list)
    imports: List[Any] = field(default_factory=list)
    dependencies: Dict[str, Any] = field(default_factory=dict)
    total_nodes: int = 0
    strategy: str = "symbol"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_files": list(self.source_files),
            "imports": list(self.imports),
            "dependencies": dict(self.dependencies),
            "total_nodes": self.total_nodes,
            "strategy": self.strategy,
        }


@dataclass(frozen=True)
class ContextResult:
    """The contextual slice returned for one request.

    ``symbols`` echoes the request verbatim; ``matched_symbols`` is the
    subset that resolved to at least one node, in request order.
    """

    symbols: Tuple[str, ...]
    matched_symbols: Tuple[str, ...]
    nodes: Tuple[Mapping[str, Any], ...]
    node_ids: Tuple[str, ...]
    endpoints: Dict[str, Any] = field(default_factory=dict)
    relationships: Dict[str, Any] = field(default_factory=dict)
    metadata: ContextMetadata = field(default_factory=ContextMetadata)
    saved_to: Optional[str] = None

    @property
    def unmatched_symbols(self) -> List[str]:
        matched = set(self.matched_symbols)
        return [s for s in self.symbols if s not in matched]

    def with_saved_to(self, location: str) -> "ContextResult":
        return replace(self, saved_to=location)

    def to_dict(self, include_saved_to: bool = True) -> Dict[str, Any]:
        """Serialise to the tool's wire shape.

        Every node carries its indexed ``id``, synthesized ones included.
        ``endpoints`` and ``relationships`` are omitted when empty.
        """
        payload: Dict[str, Any] = {
            "symbols": list(self.symbols),
            "matchedSymbols": list(self.matched_symbols),
        }
        nodes = [dict(node) for node in self.nodes]
        for node, node_id in zip(nodes, self.node_ids):
            node["id"] = node_id
        payload["nodes"] = nodes
        if self.endpoints:
            payload["endpoints"] = dict(self.endpoints)
        if self.relationships:
            payload["relationships"] = dict(self.relationships)
        payload["metadata"] = self.metadata.to_dict()
        if include_saved_to:
            payload["savedTo"] = self.saved_to
        return payload


def _as_ref(value: Any) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def as_table(value: Any, label: str = "table") -> Dict[str, Mapping[str, Any]]:
    """Normalise a registry (mapping or list of records) to ``key -> record``.

    List entries are keyed by their ``id`` field, falling back to position.
    Non-mapping records are dropped.
    """
    table: Dict[str, Mapping[str, Any]] = {}
    if isinstance(value, Mapping):
        items = [(str(k), v) for k, v in value.items()]
    elif isinstance(value, (list, tuple)):
        items = [
            ((_as_ref(v.get("id")) if isinstance(v, Mapping) else None) or str(i), v)
            for i, v in enumerate(value)
        ]
    elif value is None:
        return table
    else:
        logger.warning("Ignoring %s of unexpected type %s", label, type(value).__name__)
        return table

    for key, record in items:
        if isinstance(record, Mapping):
            table[key] = record
    return table


def relationships_of(document: Mapping[str, Any]) -> List[Relationship]:
    graph = document.get("dependency_graph")
    if not isinstance(graph, Mapping):
        return []
    table = as_table(graph.get("relationships"), "relationships")
    return [Relationship.from_mapping(k, v) for k, v in table.items()]


def endpoints_of(document: Mapping[str, Any]) -> List[Endpoint]:
    graph = document.get("dependency_graph")
    if not isinstance(graph, Mapping):
        return []
    table = as_table(graph.get("endpoints"), "endpoints")
    return [Endpoint.from_mapping(k, v) for k, v in table.items()]
