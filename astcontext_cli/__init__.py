"""AST context slicing for code-generation agents."""

__version__ = "0.3.0"
