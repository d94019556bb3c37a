"""
binding_engine/host.py

SessionHost — an in-process model of an interactive shell session.
───────────────────────────────────────────────────────────────────
The binding layer needs four things from the environment it runs in:

  • a callable-name table        (shell functions)
  • a "location changed" hook    (zsh chpwd_functions, fish --on-variable PWD)
  • a prompt-rendering hook      (bash PROMPT_COMMAND)
  • a way to run real programs   (PATH lookup + fork/exec)

SessionHost provides exactly those, so the full reconciliation protocol can be
embedded in a Python-driven session and exercised end to end without a real
shell. Hooks are registered by NAME, like shell functions: re-registering the
same name replaces the function body but never adds a second hook entry.

HostFunctionTable is the CallableTable the reconciler mutates: binding a name
points it at the generic CommandDispatcher, unbinding deletes it so the host
falls through to the real program.
"""

import functools
import logging
import os
from typing import Callable, Iterable, Optional, Sequence

from interceptor.dispatcher import CommandDispatcher
from interceptor.shim import run_foreground

from .base import CallableTable
from .names import POSIX_RESERVED_WORDS, check_command_name

logger = logging.getLogger(__name__)

HostFunction = Callable[[Sequence[str]], int]


class SessionHost:
    """
    Args:
        cwd                  : Initial location. Defaults to os.getcwd().
        native_location_hook : True if the host fires its location hooks on
                               chdir (zsh/fish style). False means the binding
                               layer has to poll from the prompt (bash style).
        reserved_words       : Names the host cannot define as functions.
    """

    def __init__(
        self,
        cwd: Optional[str] = None,
        native_location_hook: bool = True,
        reserved_words: Iterable[str] = POSIX_RESERVED_WORDS,
    ) -> None:
        self.cwd = cwd or os.getcwd()
        self.native_location_hook = native_location_hook
        self.reserved_words = frozenset(reserved_words)

        self.functions: dict[str, HostFunction] = {}
        self.chpwd_functions: list[str] = []
        self.prompt_functions: list[str] = []
        # Session variables; survive re-activation like shell globals do.
        self.variables: dict[str, object] = {}

    # ── Command execution ────────────────────────────────────────────────────

    def call(self, name: str, args: Sequence[str] = ()) -> int:
        """Invoke `name` the way a shell would: function first, then PATH."""
        function = self.functions.get(name)
        if function is not None:
            return function(list(args))
        return self.run_program(name, args)

    def run_program(self, name: str, args: Sequence[str] = ()) -> int:
        return run_foreground([name, *args], cwd=self.cwd)

    # ── Session events ───────────────────────────────────────────────────────

    def chdir(self, path: str) -> None:
        self.cwd = path
        if self.native_location_hook:
            self._run_hooks(self.chpwd_functions)

    def prompt(self) -> None:
        """Simulate rendering the interactive prompt."""
        self._run_hooks(self.prompt_functions)

    def _run_hooks(self, hook_names: list) -> None:
        for hook in list(hook_names):
            function = self.functions.get(hook)
            if function is None:
                logger.debug("Hook %s is registered but not defined", hook)
                continue
            function([])


class HostFunctionTable(CallableTable):
    """Binds names in a SessionHost to a shared CommandDispatcher."""

    def __init__(self, host: SessionHost, dispatcher: CommandDispatcher) -> None:
        self._host = host
        self._dispatcher = dispatcher

    def define(self, name: str) -> None:
        check_command_name(name, self._host.reserved_words)
        # Replaces any user function of the same name; it is not restored later.
        self._host.functions[name] = functools.partial(self._dispatcher.dispatch, name)
        self._dispatcher.bind(name)

    def undefine(self, name: str) -> None:
        self._host.functions.pop(name, None)
        self._dispatcher.unbind(name)
