"""
binding_engine/base.py

Core abstractions for cmdshield's binding synchronization layer.

Architecture Note:
    The reconciler never talks to a shell directly. It mutates a
    `CallableTable` — the session's name → callable mapping — and is driven
    by a `TriggerSource`. Concrete tables exist for the in-process session
    host (binding_engine.host) and for shell script emission
    (activation.dialects), so the same full-cycle algorithm serves every
    environment.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable


class SessionState(Enum):
    """Lifecycle of a session's binding layer. There is no terminal state."""
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"


# ─────────────────────────────────────────────────────────────────────────────
# Errors
# ─────────────────────────────────────────────────────────────────────────────

class CmdShieldError(Exception):
    """Root of every error raised by this package."""


class ResolutionError(CmdShieldError):
    """The resolver could not produce a command listing."""


class BindingError(CmdShieldError):
    """A command name could not be bound in the session."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"cannot bind '{name}': {reason}")
        self.name = name
        self.reason = reason


class InvalidCommandName(BindingError):
    """The name is not a token the session can define as a callable."""


class UnsupportedShellError(CmdShieldError, ValueError):
    """No activation dialect exists for the requested shell."""


# ─────────────────────────────────────────────────────────────────────────────
# Interfaces
# ─────────────────────────────────────────────────────────────────────────────

class CallableTable(ABC):
    """
    The session's callable-name table, as seen by the reconciler.

    `define` binds a name to the interception shim, replacing any prior
    definition. `undefine` removes the definition entirely so the real
    program (if any) is found on the search path again.
    """

    @abstractmethod
    def define(self, name: str) -> None:
        """Bind `name` to the shim. Raises BindingError if it cannot be bound."""
        ...

    @abstractmethod
    def undefine(self, name: str) -> None:
        """Remove the binding for `name`. Unbinding an unbound name is a no-op."""
        ...


LocationCallback = Callable[[str], None]


class TriggerSource(ABC):
    """Emits a pulse with the current location when bindings may be stale."""

    @abstractmethod
    def on_location_changed(self, callback: LocationCallback) -> None:
        """
        Register `callback` to be called with the current location.

        Registering again (e.g. because the activation unit was sourced a
        second time) must not cause the callback to fire twice per event.
        """
        ...
