"""
binding_engine/session.py

Session wiring: context object, BindingSession, and activate().

The only mutable core state of a session is its binding set. It lives in an
explicit SessionContext rather than in module globals, and the context is
stored in the host's session variables so that activating a second time (the
equivalent of sourcing the activation script twice) picks up the same state
instead of starting over.
"""

import logging
import sys
from dataclasses import dataclass, field
from typing import Optional, Sequence

from interceptor.dispatcher import CommandDispatcher
from interceptor.shim import InterceptionShim

from .base import SessionState
from .config import Settings
from .diagnostics import DiagnosticLog
from .host import HostFunctionTable, SessionHost
from .names import BYPASS_FUNCTION_NAME
from .reconciler import BindingReconciler
from .resolver import ResolverClient
from .triggers import ManualTrigger, NativeHookTrigger, PollingTrigger

logger = logging.getLogger(__name__)

CONTEXT_VARIABLE = "CMDSHIELD_CONTEXT"


@dataclass
class SessionContext:
    bindings: frozenset = field(default_factory=frozenset)
    state: SessionState = SessionState.UNINITIALIZED
    # Last location seen by the polling trigger.
    observed_location: Optional[str] = None
    reconcile_count: int = 0


class BindingSession:
    """
    Owns the reconciler, dispatcher and triggers of one session.

    Args:
        host        : The SessionHost the bindings are installed in.
        resolver    : ResolverClient used on every trigger.
        shim        : InterceptionShim that bound names forward to.
        diagnostics : Shared DiagnosticLog.
        context     : Existing SessionContext to continue from.
    """

    def __init__(
        self,
        host: SessionHost,
        resolver: ResolverClient,
        shim: InterceptionShim,
        diagnostics: Optional[DiagnosticLog] = None,
        context: Optional[SessionContext] = None,
    ) -> None:
        self.host = host
        self.context = context or SessionContext()
        self.diagnostics = diagnostics or DiagnosticLog()
        self.dispatcher = CommandDispatcher(shim)
        self.table = HostFunctionTable(host, self.dispatcher)
        self.reconciler = BindingReconciler(resolver, self.table, self.diagnostics)
        self.manual_trigger = ManualTrigger(host, self.diagnostics)

    @property
    def bindings(self) -> frozenset:
        return self.context.bindings

    def install_triggers(self) -> None:
        if self.host.native_location_hook:
            trigger = NativeHookTrigger(self.host, self.diagnostics)
        else:
            trigger = PollingTrigger(self.host, self.context, self.diagnostics)
        trigger.on_location_changed(self.refresh)
        self.manual_trigger.on_location_changed(self.refresh)
        self.host.functions[BYPASS_FUNCTION_NAME] = self._bypass_function

    def refresh(self, location: Optional[str] = None) -> frozenset:
        """Run one full reconciliation cycle. Never raises."""
        if location is None:
            location = self.host.cwd
        return self.reconciler.run(self.context, location)

    def _bypass_function(self, args: Sequence[str]) -> int:
        if not args:
            sys.stderr.write(f"usage: {BYPASS_FUNCTION_NAME} command [args...]\n")
            return 2
        return self.dispatcher.bypass(args[0], args[1:])


def activate(
    host: SessionHost,
    resolver: ResolverClient,
    shim: InterceptionShim,
    diagnostics: Optional[DiagnosticLog] = None,
) -> BindingSession:
    """
    Install the binding layer in `host` and run the first reconciliation.

    Safe to call repeatedly: triggers are registered once, the existing
    context is reused, and the full cycle replaces every earlier binding.
    """
    context = host.variables.get(CONTEXT_VARIABLE)
    if context is None:
        context = SessionContext()
        host.variables[CONTEXT_VARIABLE] = context
    else:
        logger.debug("Re-activating session with %d existing binding(s)", len(context.bindings))

    session = BindingSession(host, resolver, shim, diagnostics, context)
    session.install_triggers()
    session.refresh()
    return session


def activate_with_settings(host: SessionHost, settings: Settings) -> BindingSession:
    diagnostics = settings.diagnostics()
    resolver = ResolverClient(
        resolver=settings.resolver,
        timeout=settings.resolver_timeout,
        diagnostics=diagnostics,
    )
    return activate(host, resolver, InterceptionShim(settings.resolver), diagnostics)
