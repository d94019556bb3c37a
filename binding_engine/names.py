"""
binding_engine/names.py

Command name rules and the resolver listing parser.
────────────────────────────────────────────────────
A CommandName is a single token that the session can define as a callable.
The resolver prints one name per line; this module turns that raw listing
into an ordered, de-duplicated tuple and decides whether a given name may be
bound in a given shell.

Design notes:
    • Patterns are compiled once at module load time.
    • Blank lines are dropped (line-oriented output often ends with one).
    • A non-blank line that is not a single token means the resolver printed
      something other than a simple listing, and the whole listing is
      rejected rather than guessed at.
"""

import logging
import re
from typing import Iterable, Tuple

from .base import InvalidCommandName, ResolutionError

logger = logging.getLogger(__name__)

# Prefix reserved for the activation layer's own helper functions.
INTERNAL_PREFIX = "__cmdshield"

# Characters every supported shell accepts in a function name without quoting.
_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.+@%:][A-Za-z0-9_.+@%:,\-]*$")

# Any whitespace or control character inside a listing line.
_MALFORMED_LINE = re.compile(r"[\s\x00-\x1f\x7f]")

# Reserved words of a POSIX / bash session. They cannot name a function.
POSIX_RESERVED_WORDS = frozenset({
    "!", "{", "}", "[[", "]]",
    "case", "coproc", "do", "done", "elif", "else", "esac", "fi", "for",
    "function", "if", "in", "select", "then", "time", "until", "while",
})

# Builtins the activation layer calls itself. Shadowing any of them with the
# dispatcher would make the dispatcher (or reconciliation) recurse.
PROTECTED_BUILTINS = frozenset({
    ".", "builtin", "command", "eval", "functions", "printf", "return",
    "set", "source", "unfunction", "unset",
})

# Session entry points defined by activation. Binding one would replace it,
# and the next unbind would delete it for the rest of the session.
REFRESH_FUNCTION_NAME = "cmdshield_refresh"
BYPASS_FUNCTION_NAME = "cmdshield_bypass"
ENTRY_POINT_NAMES = frozenset({REFRESH_FUNCTION_NAME, BYPASS_FUNCTION_NAME})


def check_command_name(
    name: str,
    reserved: Iterable[str] = POSIX_RESERVED_WORDS,
    protected: Iterable[str] = PROTECTED_BUILTINS,
) -> None:
    """
    Raise InvalidCommandName unless `name` can be bound as a callable.

    Args:
        name      : Candidate command name.
        reserved  : Reserved words of the target session.
        protected : Builtins and commands the session's activation code calls.
    """
    if not name:
        raise InvalidCommandName(name, "empty name")
    if name.startswith(INTERNAL_PREFIX):
        raise InvalidCommandName(name, "name uses the internal helper prefix")
    if name in ENTRY_POINT_NAMES:
        raise InvalidCommandName(name, "name of a cmdshield entry point")
    if name in reserved:
        raise InvalidCommandName(name, "reserved word")
    if name in protected:
        raise InvalidCommandName(name, "builtin required by the activation layer")
    if not _NAME_PATTERN.match(name):
        raise InvalidCommandName(name, "not a plain command token")


def is_plain_token(name: str) -> bool:
    """True if `name` is safe to splice unquoted into a shell statement."""
    return bool(name) and bool(_NAME_PATTERN.match(name))


def parse_listing(raw: str) -> Tuple[str, ...]:
    """
    Parse `resolver list --simple` output into an ordered set of names.

    Examples:
        "node\\nnpm\\n"        → ("node", "npm")
        "node\\n\\nnode\\n"    → ("node",)
        "Active commands:\\n" → ResolutionError

    Raises:
        ResolutionError: if a non-blank line is not a single token.
    """
    names: list[str] = []
    seen: set[str] = set()

    for line_no, line in enumerate(raw.splitlines(), start=1):
        name = line.strip()
        if not name:
            continue
        if _MALFORMED_LINE.search(name):
            raise ResolutionError(
                f"malformed listing at line {line_no}: {name[:60]!r}"
            )
        if name in seen:
            logger.debug("Dropping duplicate resolver entry '%s'", name)
            continue
        seen.add(name)
        names.append(name)

    return tuple(names)


def split_binding_variable(value: str) -> Tuple[str, ...]:
    """
    Parse the space separated binding set a shell hands back to us.

    Only plain tokens are kept: anything else cannot have been bound by this
    layer and must never be spliced into an evaluated script.
    """
    names: list[str] = []
    for token in value.split():
        if not is_plain_token(token):
            logger.warning("Ignoring unexpected bound name %r", token)
            continue
        if token not in names:
            names.append(token)
    return tuple(names)
