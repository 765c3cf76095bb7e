"""Configuration paths and settings for AST context retrieval."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

load_dotenv()

BASE_DIR = Path(os.environ.get("ASTCONTEXT_HOME", str(Path.home() / ".astcontext"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"
DEFAULT_OUTPUT_DIR = Path("ast-context-results")

AST_PATH_ENV = "AST_JSON_PATH"
OUTPUT_DIR_ENV = "AST_CONTEXT_OUTPUT_DIR"

DEFAULT_DEPENDENCY_KEYS = [
    "resolvesTo",
    "typeResolvesTo",
    "usesVariables",
    "usesFunctions",
    "usesTypes",
    "dependsOn",
    "calls",
    "accesses",
    "contains",
]
DEFAULT_FILE_SUFFIXES = [".bal", ".py", ".ts", ".js", ".java", ".go"]
DEFAULT_FILE_FIELDS = ["sourceFile", "source_file", "filePath", "file_path", "file"]
DEFAULT_KIND_FIELDS = ["kind", "nodeType", "type"]

AmbiguityPolicy = Literal["first", "same_file", "all"]


class ContextSettings(BaseModel):
    """Settings threaded through every stage of a context request.

    Loaded once per process by :func:`load_settings` and passed by
    reference; components never modify it. Frozen, with tuple fields, so
    it cannot be changed in place either.
    """

    model_config = {"frozen": True}

    ast_json_path: Optional[Path] = Field(default=None, description="Location of the AST JSON document")
    output_dir: Path = Field(default=DEFAULT_OUTPUT_DIR, description="Directory for context snapshots")
    save_snapshots: bool = True
    dependency_keys: Tuple[str, ...] = Field(default=tuple(DEFAULT_DEPENDENCY_KEYS))
    file_suffixes: Tuple[str, ...] = Field(default=tuple(DEFAULT_FILE_SUFFIXES))
    file_fields: Tuple[str, ...] = Field(default=tuple(DEFAULT_FILE_FIELDS))
    kind_fields: Tuple[str, ...] = Field(default=tuple(DEFAULT_KIND_FIELDS))
    min_substring_length: int = Field(default=1, ge=1)
    ambiguity_policy: AmbiguityPolicy = "first"
    reverse_scan: bool = False

    @field_validator("file_suffixes")
    @classmethod
    def _normalise_suffixes(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        return tuple(s.lower() if s.startswith(".") else f".{s.lower()}" for s in value if s)


def load_settings(**overrides) -> ContextSettings:
    """Build settings from defaults, ``config.toml`` and the environment.

    Keyword overrides (typically CLI options) win over everything else;
    ``None`` values are ignored so unset options fall through.
    """
    from .config_manager import load_context_config

    values = dict(load_context_config())

    env_path = os.environ.get(AST_PATH_ENV)
    if env_path:
        values["ast_json_path"] = env_path
    env_output = os.environ.get(OUTPUT_DIR_ENV)
    if env_output:
        values["output_dir"] = env_output

    values.update({k: v for k, v in overrides.items() if v is not None})
    return ContextSettings(**values)


def ensure_base_dirs() -> None:
    """Create the base directory for local configuration if needed."""
    BASE_DIR.mkdir(parents=True, exist_ok=True)
