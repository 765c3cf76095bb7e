"""The ``getASTContext`` tool exposed to code-generation agents.

Callers receive plain dicts. A missing or unparsable document yields
``{"error": message}`` instead of an exception so the surrounding agent
conversation can continue. A snapshot that cannot be written is logged and
reported through ``snapshotError``; the computed context is still returned.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from .config import ContextSettings, load_settings
from .errors import DocumentNotFoundError, DocumentParseError, SnapshotError, error_payload
from .orchestrator import ContextOrchestrator
from .storage import SnapshotStore, load_document

logger = logging.getLogger(__name__)

TOOL_NAME = "getASTContext"
TOOL_DESCRIPTION = (
    "Fetches a complete contextual slice of the AST for given symbols, including their "
    "definitions, dependencies, reverse dependencies, related endpoints, entities, and metadata."
)


class ASTContextInput(BaseModel):
    symbols: List[str] = Field(
        ...,
        description=(
            "An array of symbols (functions, types, variables, resources, etc.) "
            "OR file names to fetch from the AST."
        ),
    )


def tool_spec() -> Dict[str, Any]:
    """Name, description and JSON schema for registering the tool."""
    return {
        "name": TOOL_NAME,
        "description": TOOL_DESCRIPTION,
        "input_schema": ASTContextInput.model_json_schema(),
    }


def get_ast_context(symbols: List[str], settings: Optional[ContextSettings] = None) -> Dict[str, Any]:
    """Compute, persist and return the context slice for *symbols*."""
    if settings is None:
        try:
            settings = load_settings()
        except ValueError as exc:
            logger.error("Invalid configuration: %s", exc)
            return error_payload(exc)
    try:
        document = load_document(settings.ast_json_path)
    except (DocumentNotFoundError, DocumentParseError) as exc:
        logger.error("%s", exc)
        return error_payload(exc)

    result = ContextOrchestrator(document, settings).context(symbols)
    logger.info("TOOL CALLED: %s", TOOL_NAME)
    logger.info("Found %d nodes for symbols: %s", len(result.nodes), list(symbols))

    payload = result.to_dict()
    if settings.save_snapshots:
        try:
            payload["savedTo"] = str(SnapshotStore(settings.output_dir).write(result))
        except SnapshotError as exc:
            logger.error("Snapshot not saved: %s", exc)
            payload["snapshotError"] = str(exc)
    return payload


async def aget_ast_context(symbols: List[str], settings: Optional[ContextSettings] = None) -> Dict[str, Any]:
    """Awaitable entry point for agent loops; runs to completion without yielding."""
    return get_ast_context(symbols, settings)


def run_tool(arguments: Mapping[str, Any], settings: Optional[ContextSettings] = None) -> Dict[str, Any]:
    """Validate raw tool-call arguments and execute the tool."""
    try:
        payload = ASTContextInput.model_validate(arguments)
    except ValidationError as exc:
        return {"error": f"Invalid arguments for {TOOL_NAME}: {exc.errors(include_url=False)}"}
    return get_ast_context(payload.symbols, settings)
