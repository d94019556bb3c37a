"""
binding_engine/triggers.py

Trigger sources: when should the binding set be re-evaluated?

Three interchangeable implementations of TriggerSource:

    NativeHookTrigger  host fires its own "location changed" hooks
    PollingTrigger     host only offers a prompt hook; compare locations there
    ManualTrigger      explicit refresh, no location change needed

Activation code may run more than once per session (a re-sourced rc file),
so every adapter registers under a fixed name and checks before adding.
"""

import logging
import os
from typing import Optional

from .base import LocationCallback, TriggerSource
from .diagnostics import DiagnosticLog
from .host import SessionHost
from .names import REFRESH_FUNCTION_NAME

logger = logging.getLogger(__name__)

CHPWD_HOOK_NAME = "__cmdshield_directory_change_hook"
PROMPT_HOOK_NAME = "__cmdshield_prompt_hook"


class NativeHookTrigger(TriggerSource):

    def __init__(
        self,
        host: SessionHost,
        diagnostics: Optional[DiagnosticLog] = None,
        hook_name: str = CHPWD_HOOK_NAME,
    ) -> None:
        self._host = host
        self._diagnostics = diagnostics or DiagnosticLog()
        self._hook_name = hook_name

    def on_location_changed(self, callback: LocationCallback) -> None:
        host = self._host

        def _hook(args) -> int:
            self._diagnostics.trigger_fired("location hook", host.cwd)
            callback(host.cwd)
            return 0

        host.functions[self._hook_name] = _hook
        if self._hook_name in host.chpwd_functions:
            logger.debug("%s already registered", self._hook_name)
            return
        host.chpwd_functions.append(self._hook_name)


class PollingTrigger(TriggerSource):
    """
    Diffs the location on every prompt render.

    The hook is prepended to the prompt chain; hooks installed earlier by the
    user or other tools stay in place and keep running after it.

    Args:
        host    : The session host.
        context : SessionContext whose `observed_location` holds the last
                  location seen by the prompt hook.
    """

    def __init__(
        self,
        host: SessionHost,
        context,
        diagnostics: Optional[DiagnosticLog] = None,
        hook_name: str = PROMPT_HOOK_NAME,
    ) -> None:
        self._host = host
        self._context = context
        self._diagnostics = diagnostics or DiagnosticLog()
        self._hook_name = hook_name

    def on_location_changed(self, callback: LocationCallback) -> None:
        host = self._host
        context = self._context
        if context.observed_location is None:
            context.observed_location = host.cwd

        def _hook(args) -> int:
            current = host.cwd
            if current == context.observed_location:
                return 0
            self._diagnostics.trigger_fired("prompt", current)
            callback(current)
            context.observed_location = current
            return 0

        host.functions[self._hook_name] = _hook
        if self._hook_name in host.prompt_functions:
            logger.debug("%s already registered", self._hook_name)
            return
        host.prompt_functions.insert(0, self._hook_name)


class ManualTrigger(TriggerSource):
    """
    Forces reconciliation at the current location.

    With a host, the trigger is also reachable in the session as the
    `cmdshield_refresh` function.
    """

    def __init__(
        self,
        host: Optional[SessionHost] = None,
        diagnostics: Optional[DiagnosticLog] = None,
        function_name: str = REFRESH_FUNCTION_NAME,
    ) -> None:
        self._host = host
        self._diagnostics = diagnostics or DiagnosticLog()
        self._function_name = function_name
        self._callback: Optional[LocationCallback] = None

    def on_location_changed(self, callback: LocationCallback) -> None:
        self._callback = callback
        if self._host is None:
            return

        def _refresh(args) -> int:
            self.fire()
            return 0

        self._host.functions[self._function_name] = _refresh

    def fire(self, location: Optional[str] = None) -> None:
        if self._callback is None:
            logger.debug("Manual trigger fired before registration, ignoring")
            return
        if location is None:
            location = self._host.cwd if self._host is not None else os.getcwd()
        self._diagnostics.trigger_fired("manual", location)
        self._callback(location)
