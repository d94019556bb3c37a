"""
interceptor — cmdshield's command interception layer.

Public API:
    InterceptionShim  : Forwards a bound command to the executor, or bypasses it.
    CommandDispatcher : Generic dispatcher with a name → BindingMode table.
    BindingMode       : INTERCEPT or BYPASS.
    run_foreground    : Run a program attached to the terminal, return its status.
"""

from .dispatcher import BindingMode, CommandDispatcher
from .shim import InterceptionShim, run_foreground

__all__ = [
    "BindingMode",
    "CommandDispatcher",
    "InterceptionShim",
    "run_foreground",
]
