"""Typer-based CLI for AST context slicing."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import typer
from rich.console import Console
from rich.table import Table

from . import __version__, config, config_manager
from .config import ContextSettings, load_settings
from .errors import ASTContextError
from .graph_export import export_dot
from .orchestrator import ContextOrchestrator
from .storage import SnapshotStore, load_document
from .tool import get_ast_context

console = Console()

app = typer.Typer(
    help="🌳 AST Context — slice parsed ASTs into minimal, complete context for code generation.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

snapshots_app = typer.Typer(help="📸 Saved context snapshots.", no_args_is_help=True)
app.add_typer(snapshots_app, name="snapshots")


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"AST Context CLI v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """AST Context CLI: dependency-aware symbol lookup over parsed AST documents."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _settings(**overrides: Any) -> ContextSettings:
    try:
        return load_settings(**overrides)
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid configuration: {exc}")


def _open_orchestrator(settings: ContextSettings) -> ContextOrchestrator:
    try:
        document = load_document(settings.ast_json_path)
    except ASTContextError as exc:
        raise typer.BadParameter(str(exc))
    return ContextOrchestrator(document, settings)


def _node_label(node: Dict[str, Any], fields: Sequence[str]) -> str:
    for name in fields:
        value = node.get(name)
        if isinstance(value, str):
            return value
    return "-"


AST_OPTION = typer.Option(None, "--ast", "-a", help="AST JSON document (defaults to $AST_JSON_PATH).")


@app.command("context")
def context(
    symbols: List[str] = typer.Argument(..., help="Symbols or file names to fetch."),
    ast_path: Optional[Path] = AST_OPTION,
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", help="Snapshot directory."),
    save: Optional[bool] = typer.Option(None, "--save/--no-save", help="Write a snapshot of the result."),
    reverse_scan: Optional[bool] = typer.Option(
        None, "--reverse-scan/--no-reverse-scan", help="Also include nodes that reference the matches.",
    ),
    policy: Optional[str] = typer.Option(
        None, "--policy", help="Duplicate-name policy for relationships: first, same_file, all.",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result as JSON."),
):
    """Fetch the contextual slice for SYMBOLS: definitions, dependencies and dependents."""
    settings = _settings(
        ast_json_path=ast_path,
        output_dir=output_dir,
        save_snapshots=save,
        reverse_scan=reverse_scan,
        ambiguity_policy=policy,
    )
    payload = get_ast_context(symbols, settings)

    if "error" in payload:
        typer.echo(f"❌ {payload['error']}", err=True)
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(payload, indent=2, default=str))
        return

    matched = set(payload["matchedSymbols"])
    unmatched = [s for s in payload["symbols"] if s not in matched]
    typer.echo(f"Matched: {', '.join(payload['matchedSymbols']) or 'none'}")
    if unmatched:
        typer.echo(f"Unmatched: {', '.join(unmatched)}")

    if payload["nodes"]:
        table = Table(title=f"{len(payload['nodes'])} nodes")
        table.add_column("ID", style="cyan", overflow="fold")
        table.add_column("Kind", style="magenta")
        table.add_column("Name", style="green")
        for node in payload["nodes"]:
            table.add_row(
                str(node["id"]),
                _node_label(node, settings.kind_fields),
                _node_label(node, ["name"]),
            )
        console.print(table)
    else:
        typer.echo("No nodes found.")

    typer.echo(
        f"Endpoints: {len(payload.get('endpoints', {}))} | "
        f"Relationships: {len(payload.get('relationships', {}))} | "
        f"Strategy: {payload['metadata']['strategy']}"
    )
    if payload.get("savedTo"):
        typer.echo(f"Saved to {payload['savedTo']}")
    elif payload.get("snapshotError"):
        typer.echo(f"⚠️  {payload['snapshotError']}", err=True)


@app.command("resolve")
def resolve(
    symbols: List[str] = typer.Argument(..., help="Symbols to resolve."),
    ast_path: Optional[Path] = AST_OPTION,
):
    """Show which matching strategies hit each symbol, without following dependencies."""
    orchestrator = _open_orchestrator(_settings(ast_json_path=ast_path))

    table = Table(title="Symbol resolution")
    table.add_column("Symbol", style="cyan")
    table.add_column("Strategy", style="magenta")
    table.add_column("Node IDs", overflow="fold")
    for symbol in symbols:
        hits = orchestrator.explain(symbol)
        if not hits:
            table.add_row(symbol, "[red]no match[/red]", "")
            continue
        for strategy, ids in hits.items():
            table.add_row(symbol, strategy, ", ".join(ids))
    console.print(table)


@app.command("stats")
def stats(ast_path: Optional[Path] = AST_OPTION):
    """Summarise the indexed document: node, name, kind and file counts."""
    orchestrator = _open_orchestrator(_settings(ast_json_path=ast_path))
    summary = orchestrator.stats()

    typer.echo(
        f"Nodes: {summary['nodes']} | Names: {summary['names']} | "
        f"Relationships: {summary['relationships']}"
    )
    if summary["kinds"]:
        table = Table(title="Kinds")
        table.add_column("Kind", style="magenta")
        table.add_column("Count", justify="right")
        for kind, count in summary["kinds"].items():
            table.add_row(kind, str(count))
        console.print(table)
    if summary["files"]:
        table = Table(title="Files")
        table.add_column("File", style="cyan")
        table.add_column("Nodes", justify="right")
        for name, count in summary["files"].items():
            table.add_row(name, str(count))
        console.print(table)


@app.command("export-graph")
def export_graph(
    symbols: List[str] = typer.Argument(..., help="Symbols whose slice to export."),
    ast_path: Optional[Path] = AST_OPTION,
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output .dot file."),
):
    """Export the context slice for SYMBOLS as a Graphviz DOT file."""
    orchestrator = _open_orchestrator(_settings(ast_json_path=ast_path))
    if output is None:
        output = Path.cwd() / "ast_context_graph.dot"
    count = export_dot(orchestrator, symbols, output)
    typer.echo(f"Exported {count} nodes to {output}")


@snapshots_app.command("list")
def list_snapshots(
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", help="Snapshot directory."),
    limit: int = typer.Option(20, min=1, help="Maximum entries to show."),
):
    """List saved snapshots, newest first."""
    settings = _settings(output_dir=output_dir)
    snapshots = SnapshotStore(settings.output_dir).list_snapshots()
    if not snapshots:
        typer.echo("No snapshots saved yet.")
        raise typer.Exit(code=0)
    for path in snapshots[:limit]:
        typer.echo(path.name)


@snapshots_app.command("show")
def show_snapshot(
    name: Optional[str] = typer.Argument(None, help="Snapshot file name (defaults to the latest)."),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", help="Snapshot directory."),
):
    """Print a saved snapshot."""
    store = SnapshotStore(_settings(output_dir=output_dir).output_dir)
    if name is None:
        latest = store.latest()
        if latest is None:
            raise typer.BadParameter("No snapshots saved yet.")
        name = latest.name
    try:
        payload = store.read(name)
    except (FileNotFoundError, json.JSONDecodeError) as exc:
        raise typer.BadParameter(str(exc))
    typer.echo(json.dumps(payload, indent=2))


@app.command("show-config")
def show_config():
    """Show effective settings and where they come from."""
    settings = _settings()
    typer.echo(f"Config file: {config.CONFIG_FILE}")
    table = Table(title="Settings")
    table.add_column("Key", style="cyan")
    table.add_column("Value", overflow="fold")
    for key, value in settings.model_dump().items():
        if isinstance(value, (list, tuple)):
            value = ", ".join(str(v) for v in value)
        table.add_row(key, str(value))
    console.print(table)


@app.command("set-config")
def set_config(
    key: str = typer.Argument(..., help="Setting name, e.g. min_substring_length."),
    value: str = typer.Argument(..., help="New value; lists are comma separated."),
):
    """Persist a setting in the config file."""
    try:
        stored = config_manager.save_setting(key, value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc))
    typer.echo(f"Set {key} = {stored}")


@app.command("reset-config")
def reset_config():
    """Remove all persisted settings."""
    if config_manager.reset_context_config():
        typer.echo("Settings reset to defaults.")
    else:
        typer.echo("No persisted settings to reset.")


if __name__ == "__main__":
    app()
