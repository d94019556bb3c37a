"""
activation/dialects.py

Per-shell statement syntax for the reconciliation output.
──────────────────────────────────────────────────────────
In a real shell the reconciler runs as `cmdshield reconcile`, and its stdout
is evaluated by the activation script. A ShellDialect knows how to spell the
three statements that output is made of:

    define(name)      bind `name` to the generic dispatcher function
    undefine(name)    remove the function entirely
    assign(var, val)  record the new binding set in a session variable

Every bound function has the same one-line body, forwarding its own name and
all of its arguments to `__cmdshield_dispatch`, which the activation script
defines once. ScriptTable is the CallableTable that collects those
statements, so the shell path goes through exactly the same BindingReconciler
as the in-process host.
"""

import logging
import os
import shlex
from abc import ABC, abstractmethod
from typing import Iterable

from binding_engine.base import CallableTable, UnsupportedShellError
from binding_engine.config import BINDINGS_VARIABLE
from binding_engine.names import (
    POSIX_RESERVED_WORDS,
    PROTECTED_BUILTINS,
    check_command_name,
    is_plain_token,
)

logger = logging.getLogger(__name__)

DISPATCH_FUNCTION = "__cmdshield_dispatch"


class ShellDialect(ABC):
    name: str = ""
    template: str = ""
    reserved_words: frozenset = frozenset()
    # Builtins and commands the dialect's activation template calls by name.
    protected_builtins: frozenset = PROTECTED_BUILTINS

    @abstractmethod
    def define(self, command: str) -> str:
        ...

    @abstractmethod
    def undefine(self, command: str) -> str:
        ...

    @abstractmethod
    def assign(self, variable: str, value: str) -> str:
        ...

    def quote(self, value: str) -> str:
        return shlex.quote(value)


class BashDialect(ShellDialect):
    name = "bash"
    template = "bash.sh"
    reserved_words = POSIX_RESERVED_WORDS
    protected_builtins = PROTECTED_BUILTINS | frozenset({"declare", "local"})

    def define(self, command: str) -> str:
        # `function name` form: an alias called `name` is not expanded here.
        return f'function {command} {{ {DISPATCH_FUNCTION} {command} "$@"; }}'

    def undefine(self, command: str) -> str:
        return f"unset -f {command} 2>/dev/null"

    def assign(self, variable: str, value: str) -> str:
        return f"{variable}={self.quote(value)}"


class ZshDialect(BashDialect):
    name = "zsh"
    template = "zsh.zsh"
    reserved_words = POSIX_RESERVED_WORDS | frozenset({
        "declare", "end", "export", "float", "foreach", "integer", "local",
        "nocorrect", "readonly", "repeat", "typeset",
    })

    def undefine(self, command: str) -> str:
        return f"(( ${{+functions[{command}]}} )) && unfunction {command}"

    def assign(self, variable: str, value: str) -> str:
        return f"typeset -g {variable}={self.quote(value)}"


class FishDialect(ShellDialect):
    name = "fish"
    template = "fish.fish"
    protected_builtins = PROTECTED_BUILTINS | frozenset({"count", "env"})
    reserved_words = frozenset({
        "[", "and", "argparse", "begin", "bg", "bind", "block", "break",
        "builtin", "case", "command", "continue", "else", "end", "eval",
        "exec", "fg", "for", "function", "functions", "if", "not", "or",
        "read", "return", "set", "status", "string", "switch", "test",
        "time", "while",
    })

    def define(self, command: str) -> str:
        return (
            f"function {command} --description 'cmdshield interception'; "
            f"{DISPATCH_FUNCTION} {command} $argv; end"
        )

    def undefine(self, command: str) -> str:
        return f"functions --erase {command}"

    def assign(self, variable: str, value: str) -> str:
        return f"set -g {variable} {self.quote(value)}"

    def quote(self, value: str) -> str:
        escaped = value.replace("\\", "\\\\").replace("'", "\\'")
        return f"'{escaped}'"


DIALECTS: dict[str, ShellDialect] = {
    dialect.name: dialect for dialect in (BashDialect(), ZshDialect(), FishDialect())
}


def get_dialect(shell: str) -> ShellDialect:
    """Look up a dialect by shell name or path ("zsh", "/usr/bin/zsh")."""
    key = os.path.basename(shell.strip()).lstrip("-").lower()
    try:
        return DIALECTS[key]
    except KeyError:
        raise UnsupportedShellError(
            f"Unsupported shell: {shell!r} (supported: {', '.join(sorted(DIALECTS))})"
        ) from None


class ScriptTable(CallableTable):
    """Collects define/undefine statements for one reconciliation."""

    def __init__(self, dialect: ShellDialect) -> None:
        self.dialect = dialect
        self._statements: list[str] = []

    def define(self, name: str) -> None:
        check_command_name(
            name, self.dialect.reserved_words, self.dialect.protected_builtins
        )
        self._statements.append(self.dialect.define(name))

    def undefine(self, name: str) -> None:
        if not is_plain_token(name):
            # Never splice an unchecked token into code the shell will eval.
            logger.warning("Refusing to emit unbind statement for %r", name)
            return
        self._statements.append(self.dialect.undefine(name))

    @property
    def statements(self) -> list:
        return list(self._statements)

    def render(self, bindings: Iterable[str]) -> str:
        """The full script: statements, then the new binding set variable."""
        value = " ".join(sorted(bindings))
        lines = self._statements + [self.dialect.assign(BINDINGS_VARIABLE, value)]
        return "\n".join(lines) + "\n"
