"""
activation — shell integration for cmdshield.

Public API:
    render_activation : The evaluable activation script for bash, zsh or fish.
    get_dialect       : Per-shell statement syntax.
    ScriptTable       : CallableTable that emits define/undefine statements.
"""

from .dialects import DIALECTS, ScriptTable, ShellDialect, get_dialect
from .scripts import render_activation

__all__ = [
    "DIALECTS",
    "ScriptTable",
    "ShellDialect",
    "get_dialect",
    "render_activation",
]
