"""
binding_engine/reconciler.py

BindingReconciler — keeps the bound names equal to the resolver's output.
──────────────────────────────────────────────────────────────────────────
Every reconciliation runs the full cycle, in this order:

  1. Unbind every name in the previous binding set.
  2. Ask the ResolverClient for the names that apply at the location.
  3. Bind every resolved name.

Because step 1 is unconditional, a name dropped from the configuration since
the last trigger can never stay bound. Names are only ever unbound between
two prompts, never while a wrapped command runs.

Binding one name may fail (reserved word, builtin the shell layer needs,
token the shell cannot define). That name is skipped and reported; the rest
of the reconciliation proceeds.
"""

import logging
from typing import Iterable, Optional

from .base import BindingError, CallableTable, SessionState
from .diagnostics import DiagnosticLog
from .resolver import ResolverClient

logger = logging.getLogger(__name__)


class BindingReconciler:
    """
    Args:
        resolver    : Source of the desired command set.
        table       : The session's callable-name table to mutate.
        diagnostics : Shared DiagnosticLog.
    """

    def __init__(
        self,
        resolver: ResolverClient,
        table: CallableTable,
        diagnostics: Optional[DiagnosticLog] = None,
    ) -> None:
        self._resolver = resolver
        self._table = table
        self._diagnostics = diagnostics or DiagnosticLog()

        # Names bound so far in the cycle that is currently running.
        self._in_flight: set[str] = set()
        # Names rejected during the most recent cycle.
        self.last_skipped: dict[str, str] = {}

    def reconcile(self, previous: Iterable[str], location: str) -> frozenset:
        """
        Move the table from `previous` to the names resolved at `location`.

        Returns:
            The new binding set.
        """
        self._in_flight = set()
        self.last_skipped = {}

        for name in sorted(set(previous)):
            self._table.undefine(name)
            self._diagnostics.binding_removed(name)

        resolved = self._resolver.resolve(location)

        for name in resolved:
            if name in self._in_flight:
                continue
            try:
                self._table.define(name)
            except BindingError as exc:
                self.last_skipped[name] = exc.reason
                logger.warning("Skipping command %s", exc)
                self._diagnostics.binding_skipped(name, exc.reason)
                continue
            self._in_flight.add(name)
            self._diagnostics.binding_added(name)

        bound = frozenset(self._in_flight)
        self._in_flight = set()
        return bound

    def run(self, context, location: str) -> frozenset:
        """
        Reconcile `context` (a SessionContext) in place. Never raises.

        If the cycle blows up halfway, everything that may still be bound is
        unbound and the session continues with nothing intercepted.
        """
        previous = context.bindings
        try:
            bindings = self.reconcile(previous, location)
        except Exception as exc:
            logger.error(
                "Reconciliation in %s failed: %s. Clearing all bindings.",
                location, exc, exc_info=True,
            )
            bindings = self._fail_closed(set(previous) | self._in_flight)

        context.bindings = bindings
        context.state = SessionState.INITIALIZED
        context.reconcile_count += 1
        return bindings

    def _fail_closed(self, names: set) -> frozenset:
        # Names that refuse to unbind stay in the set so the next cycle retries.
        stuck = set()
        for name in sorted(names):
            try:
                self._table.undefine(name)
            except Exception as exc:
                logger.error("Could not unbind '%s' while recovering: %s", name, exc)
                stuck.add(name)
                continue
            self._diagnostics.binding_removed(name)
        self._in_flight = set()
        return frozenset(stuck)
