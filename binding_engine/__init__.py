"""
binding_engine — cmdshield's binding synchronization layer.

Public API:
    ResolverClient    : Asks the external resolver which names to intercept.
    BindingReconciler : Full-cycle reconciliation of a CallableTable.
    SessionHost       : In-process model of an interactive session.
    BindingSession    : Reconciler + dispatcher + triggers for one host.
    activate          : Install the binding layer in a host (idempotent).
    Settings          : Environment / dotenv driven configuration.
    DiagnosticLog     : `[prefix] message` lifecycle lines on stderr.
"""

from .base import (
    BindingError,
    CallableTable,
    CmdShieldError,
    InvalidCommandName,
    ResolutionError,
    SessionState,
    TriggerSource,
    UnsupportedShellError,
)
from .config import Settings, load_settings
from .diagnostics import DiagnosticLog
from .host import HostFunctionTable, SessionHost
from .reconciler import BindingReconciler
from .resolver import ResolverClient
from .session import BindingSession, SessionContext, activate, activate_with_settings
from .triggers import ManualTrigger, NativeHookTrigger, PollingTrigger

__all__ = [
    "BindingError",
    "BindingReconciler",
    "BindingSession",
    "CallableTable",
    "CmdShieldError",
    "DiagnosticLog",
    "HostFunctionTable",
    "InvalidCommandName",
    "ManualTrigger",
    "NativeHookTrigger",
    "PollingTrigger",
    "ResolutionError",
    "ResolverClient",
    "SessionContext",
    "SessionHost",
    "SessionState",
    "Settings",
    "TriggerSource",
    "UnsupportedShellError",
    "activate",
    "activate_with_settings",
    "load_settings",
]
