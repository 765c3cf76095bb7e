"""Tree indexer: one pass over an AST document building lookup tables.

The input document is never modified. Nodes without an ``id`` receive a
synthesized one derived from their position (``$.modules[0].functions[2]``),
recorded in an identity side table so re-indexing the same document yields
the same ids.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .config import ContextSettings
from .tree import format_path, walk_objects

logger = logging.getLogger(__name__)

ROOT_ID = "$"

# Document-level registries read by the assembler; never indexed as nodes.
REGISTRY_FIELDS = ("dependency_graph", "project_structure", "ast")

Node = Mapping[str, Any]


class ASTIndex:
    """Lookup tables over one indexed document.

    ``by_id`` is bijective; ``by_name``, ``by_kind`` and ``by_file`` are
    one-to-many in traversal order. Names are registered under their
    original case and, when different, their lower-cased form.
    """

    def __init__(self) -> None:
        self.by_id: Dict[str, Node] = {}
        self.by_name: Dict[str, List[Node]] = {}
        self.by_kind: Dict[str, List[Node]] = {}
        self.by_file: Dict[str, List[Node]] = {}
        self._ids: Dict[int, str] = {}
        self._files: Dict[int, str] = {}
        self._order: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self.by_id)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.by_id

    def get(self, node_id: str) -> Optional[Node]:
        return self.by_id.get(node_id)

    def id_of(self, node: Node) -> Optional[str]:
        return self._ids.get(id(node))

    def file_of(self, node_id: str) -> Optional[str]:
        node = self.by_id.get(node_id)
        if node is None:
            return None
        return self._files.get(id(node))

    def source_file_of(self, node: Node) -> Optional[str]:
        return self._files.get(id(node))

    def ids_named(self, name: str) -> List[str]:
        return self._ids_for(self.by_name.get(name, []))

    def ids_in_file(self, file_name: str) -> List[str]:
        return self._ids_for(self.by_file.get(file_name, []))

    def names(self) -> List[str]:
        return list(self.by_name)

    def files(self) -> List[str]:
        return list(self.by_file)

    def sort_ids(self, node_ids: Iterable[str]) -> List[str]:
        """Order ids by traversal position; unknown ids are dropped."""
        known = [i for i in node_ids if i in self._order]
        return sorted(known, key=self._order.__getitem__)

    def _ids_for(self, nodes: Iterable[Node]) -> List[str]:
        out: List[str] = []
        for node in nodes:
            node_id = self._ids.get(id(node))
            if node_id is not None and node_id not in out:
                out.append(node_id)
        return out

    def register(self, node: Node, node_id: str, name: Optional[str], kind: Optional[str],
                 source_file: Optional[str]) -> None:
        if node_id in self.by_id and self.by_id[node_id] is not node:
            logger.debug("Duplicate node id %r; keeping the later node", node_id)
        self.by_id[node_id] = node
        self._ids[id(node)] = node_id
        self._order.setdefault(node_id, len(self._order))

        if name:
            self.by_name.setdefault(name, []).append(node)
            lowered = name.lower()
            if lowered != name:
                self.by_name.setdefault(lowered, []).append(node)
        if kind:
            self.by_kind.setdefault(kind, []).append(node)
        if source_file:
            self._files[id(node)] = source_file
            self.by_file.setdefault(source_file, []).append(node)


class TreeIndexer:
    """Walks a document once and produces an :class:`ASTIndex`."""

    def __init__(self, settings: Optional[ContextSettings] = None):
        self.settings = settings or ContextSettings()

    def index(self, document: Any) -> ASTIndex:
        index = ASTIndex()
        if isinstance(document, Mapping) and isinstance(document.get("modules"), (list, tuple)):
            visits = walk_objects(document["modules"], ("modules",))
        else:
            visits = walk_objects(document, skip=REGISTRY_FIELDS)

        for visit in visits:
            node = visit.node
            if visit.parent is None:
                parent_id, inherited_file = ROOT_ID, None
            else:
                parent_id = index.id_of(visit.parent) or ROOT_ID
                inherited_file = index.source_file_of(visit.parent)

            node_id = self._explicit_id(node)
            if node_id is None:
                node_id = format_path(parent_id, visit.path) if visit.path else parent_id

            index.register(
                node,
                node_id,
                name=self._string_field(node, ("name",)),
                kind=self._string_field(node, self.settings.kind_fields),
                source_file=self._string_field(node, self.settings.file_fields) or inherited_file,
            )

        logger.debug(
            "Indexed %d nodes (%d names, %d kinds, %d files)",
            len(index), len(index.by_name), len(index.by_kind), len(index.by_file),
        )
        return index

    @staticmethod
    def _explicit_id(node: Node) -> Optional[str]:
        value = node.get("id")
        if isinstance(value, str) and value:
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return None

    @staticmethod
    def _string_field(node: Node, fields: Iterable[str]) -> Optional[str]:
        for name in fields:
            value = node.get(name)
            if isinstance(value, str) and value:
                return value
        return None
