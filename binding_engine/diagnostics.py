"""
binding_engine/diagnostics.py

DiagnosticLog — the process-wide debug switch.

When enabled, every lifecycle event (trigger fired, resolution performed,
binding added, binding removed) is written to stderr as one
`[prefix] message` line. It never writes to stdout: in a shell the
reconciler's stdout is evaluated as code. Every line is also mirrored to the
module logger at DEBUG level, whether or not the flag is on.
"""

import logging
import sys
from typing import Optional, TextIO

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "cmdshield"


def parse_debug_flag(value: Optional[str]) -> bool:
    """Shell convention: anything but unset, empty or "0" turns debugging on."""
    if value is None:
        return False
    return value.strip() not in ("", "0")


class DiagnosticLog:
    """
    Args:
        enabled : The debug flag. Affects observability only.
        prefix  : Tag printed in brackets in front of every line.
        stream  : Override for the diagnostic stream. Defaults to the
                  current `sys.stderr` at emit time.
    """

    def __init__(
        self,
        enabled: bool = False,
        prefix: str = DEFAULT_PREFIX,
        stream: Optional[TextIO] = None,
    ) -> None:
        self.enabled = enabled
        self.prefix = prefix
        self._stream = stream

    def emit(self, message: str, *args) -> None:
        if args:
            message = message % args
        logger.debug(message)
        if not self.enabled:
            return
        stream = self._stream or sys.stderr
        stream.write(f"[{self.prefix}] {message}\n")
        stream.flush()

    # Lifecycle events

    def trigger_fired(self, source: str, location: str) -> None:
        self.emit("Trigger fired (%s): %s", source, location)

    def resolution_performed(self, location: str, names) -> None:
        self.emit("Resolved %d command(s) in %s: %s", len(names), location, " ".join(names))

    def resolution_failed(self, location: str, reason) -> None:
        self.emit("Resolution failed in %s: %s", location, reason)

    def binding_added(self, name: str) -> None:
        self.emit("Binding added: %s", name)

    def binding_removed(self, name: str) -> None:
        self.emit("Binding removed: %s", name)

    def binding_skipped(self, name: str, reason) -> None:
        self.emit("Binding skipped: %s (%s)", name, reason)
