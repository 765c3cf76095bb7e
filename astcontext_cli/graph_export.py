"""Graph export helpers: render a context slice as Graphviz DOT."""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence, Set, Tuple

from .orchestrator import ContextOrchestrator


def slice_edges(orchestrator: ContextOrchestrator, context: Set[str]) -> List[Tuple[str, str, str]]:
    """Edges between nodes of *context*: direct dependency fields and relationships."""
    index = orchestrator.index
    edges: List[Tuple[str, str, str]] = []
    seen: Set[Tuple[str, str, str]] = set()

    def add(src: str, dst: str, label: str) -> None:
        edge = (src, dst, label)
        if src != dst and edge not in seen:
            seen.add(edge)
            edges.append(edge)

    for node_id in index.sort_ids(context):
        node = index.by_id[node_id]
        for key in orchestrator.settings.dependency_keys:
            value = node.get(key)
            targets = [value] if isinstance(value, str) else value if isinstance(value, (list, tuple)) else []
            for dst in targets:
                if isinstance(dst, str) and dst in context:
                    add(node_id, dst, key)

    for rel in orchestrator.closure.relationships:
        if rel.source is None or rel.target is None:
            continue
        sources = [c for c in orchestrator.closure.candidates(rel.source) if c in context]
        targets = [c for c in orchestrator.closure.candidates(rel.target) if c in context]
        for src in sources:
            for dst in targets:
                add(src, dst, rel.rel_type or "related")
    return edges


def export_dot(orchestrator: ContextOrchestrator, symbols: Sequence[str], output_file: Path) -> int:
    """Write the closure for *symbols* to *output_file*; returns the node count."""
    index = orchestrator.index
    seeds, _ = orchestrator.resolve(symbols)
    context = orchestrator.closure.close(seeds)

    lines = ["digraph ASTContext {"]
    lines.append("  rankdir=LR;")

    for node_id in index.sort_ids(context):
        node = index.by_id[node_id]
        kind = next(
            (node[f] for f in orchestrator.settings.kind_fields if isinstance(node.get(f), str)),
            "node",
        )
        name = node.get("name") if isinstance(node.get("name"), str) else node_id
        label = f"{kind}\\n{name}"
        style = ", style=bold" if node_id in seeds else ""
        lines.append(f'  "{_esc(node_id)}" [label="{_esc(label)}"{style}];')

    for src, dst, label in slice_edges(orchestrator, context):
        lines.append(f'  "{_esc(src)}" -> "{_esc(dst)}" [label="{_esc(label)}"];')

    lines.append("}")
    output_file.write_text("\n".join(lines), encoding="utf-8")
    return len(context)


def _esc(text: str) -> str:
    return text.replace('"', '\\"')
