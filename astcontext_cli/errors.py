"""Error types for AST context retrieval.

Only a document that cannot be located or parsed fails a request as a
whole. A snapshot that cannot be written is reported alongside the result.
Symbols that match nothing and dangling references are not errors.
"""

from __future__ import annotations

from typing import Any, Dict


class ASTContextError(Exception):
    """Base class for all errors raised by this package."""


class DocumentNotFoundError(ASTContextError):
    """The AST document location is unset or does not exist."""


class DocumentParseError(ASTContextError):
    """The AST document exists but is not valid JSON."""


class SnapshotError(ASTContextError):
    """A context snapshot could not be persisted."""


def error_payload(exc: BaseException) -> Dict[str, Any]:
    """Structured error returned to tool callers instead of raising."""
    return {"error": str(exc)}
