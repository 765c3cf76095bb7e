"""Dependency closure over an indexed AST.

Forward pass: worklist over dependency-bearing fields (``resolvesTo``,
``usesFunctions`` ...), scanning each node and everything nested in it.
Reverse pass: relationship registry edges touching a seed pull in the node
on the other end. An optional back-reference scan adds nodes whose own
dependency fields point at a seed.

References to ids that are not indexed are ignored.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Set

from .config import ContextSettings
from .indexer import ASTIndex
from .models import Relationship, relationships_of
from .tree import walk_objects

logger = logging.getLogger(__name__)


class DependencyClosure:
    """Computes the closure id set for a seed set."""

    def __init__(
        self,
        index: ASTIndex,
        document: Optional[Mapping[str, Any]] = None,
        settings: Optional[ContextSettings] = None,
    ):
        self.index = index
        self.settings = settings or ContextSettings()
        self.relationships: List[Relationship] = (
            relationships_of(document) if isinstance(document, Mapping) else []
        )

    def close(self, seed_ids: Iterable[str]) -> Set[str]:
        """Seeds ∪ forward closure ∪ reverse dependencies."""
        seeds = set(seed_ids)
        context = self.forward(seeds)
        reverse = self.reverse(seeds)
        context |= reverse
        if self.settings.reverse_scan:
            context |= self.back_references(seeds)
        logger.debug(
            "Closure: %d seeds -> %d ids (%d via relationships)",
            len(seeds), len(context), len(reverse),
        )
        return context

    def forward(self, seed_ids: Iterable[str], trace: Optional[List[int]] = None) -> Set[str]:
        """Transitive closure along dependency-bearing fields.

        When *trace* is given, the closure size is appended after every
        worklist step.
        """
        context: Set[str] = set(seed_ids)
        worklist = deque(self.index.sort_ids(context))
        while worklist:
            node = self.index.get(worklist.popleft())
            if node is not None:
                for dep_id in self.references(node):
                    if dep_id in self.index and dep_id not in context:
                        context.add(dep_id)
                        worklist.append(dep_id)
            if trace is not None:
                trace.append(len(context))
        return context

    def reverse(self, seed_ids: Iterable[str]) -> Set[str]:
        """Nodes on the far side of relationships that touch a seed."""
        seeds = set(seed_ids)
        found: Set[str] = set()
        for rel in self.relationships:
            if rel.source is None or rel.target is None:
                continue
            target_seeds = [c for c in self.candidates(rel.target) if c in seeds]
            if target_seeds:
                found.update(self._pick(rel.source, target_seeds))
            source_seeds = [c for c in self.candidates(rel.source) if c in seeds]
            if source_seeds:
                found.update(self._pick(rel.target, source_seeds))
        return found

    def back_references(self, seed_ids: Iterable[str]) -> Set[str]:
        """Nodes whose own dependency fields reference a seed."""
        seeds = set(seed_ids)
        found: Set[str] = set()
        for node_id, node in self.index.by_id.items():
            if node_id in seeds:
                continue
            if any(ref in seeds for ref in self.references(node, deep=False)):
                found.add(node_id)
        return found

    def references(self, node: Mapping[str, Any], deep: bool = True) -> Iterator[str]:
        """Yield id strings held in dependency-bearing fields of *node*.

        With ``deep`` the scan covers every object nested inside *node*.
        """
        objects = (visit.node for visit in walk_objects(node)) if deep else (node,)
        for current in objects:
            for key in self.settings.dependency_keys:
                value = current.get(key)
                if isinstance(value, str):
                    yield value
                elif isinstance(value, (list, tuple)):
                    for item in value:
                        if isinstance(item, str):
                            yield item

    def candidates(self, ref: str) -> List[str]:
        if ref in self.index:
            return [ref]
        return self.index.ids_named(ref)

    def _pick(self, ref: str, anchors: List[str]) -> List[str]:
        """Resolve *ref* to node ids according to the ambiguity policy.

        *anchors* are the seed ids on the other end of the relationship;
        ``same_file`` prefers a candidate declared in one of their files.
        """
        options = self.candidates(ref)
        if len(options) <= 1:
            return options
        policy = self.settings.ambiguity_policy
        if policy == "all":
            return options
        if policy == "same_file":
            files = {self.index.file_of(a) for a in anchors} - {None}
            for candidate in options:
                if self.index.file_of(candidate) in files:
                    return [candidate]
        return options[:1]
