"""
interceptor/dispatcher.py

CommandDispatcher — one generic dispatcher for every bound name.

Rather than synthesizing a bespoke callable per command, the session makes
this dispatcher reachable under each bound name and keeps a lookup table of
name → BindingMode. The table decides where an invocation goes:

    INTERCEPT  → InterceptionShim.intercept (through the executor)
    BYPASS     → InterceptionShim.bypass    (real program, binding kept)

Names absent from the table are run directly.
"""

import logging
from enum import Enum
from typing import Optional, Sequence

from .shim import InterceptionShim

logger = logging.getLogger(__name__)


class BindingMode(Enum):
    INTERCEPT = "intercept"
    BYPASS = "bypass"


class CommandDispatcher:

    def __init__(self, shim: InterceptionShim) -> None:
        self._shim = shim
        self._modes: dict[str, BindingMode] = {}

    def bind(self, name: str) -> None:
        self._modes[name] = BindingMode.INTERCEPT

    def unbind(self, name: str) -> None:
        self._modes.pop(name, None)

    def set_mode(self, name: str, mode: BindingMode) -> None:
        """Switch a bound name between intercept and bypass without unbinding it."""
        if name not in self._modes:
            raise KeyError(name)
        self._modes[name] = mode

    def mode_of(self, name: str) -> Optional[BindingMode]:
        return self._modes.get(name)

    def bound_names(self) -> frozenset:
        return frozenset(self._modes)

    def dispatch(self, name: str, args: Sequence[str] = ()) -> int:
        mode = self._modes.get(name)
        if mode is BindingMode.INTERCEPT:
            return self._shim.intercept(name, args)
        if mode is None:
            logger.debug("Dispatch for unbound name %s, running it directly", name)
        return self._shim.bypass(name, args)

    def bypass(self, name: str, args: Sequence[str] = ()) -> int:
        """Opt out of interception for a single invocation."""
        return self._shim.bypass(name, args)
