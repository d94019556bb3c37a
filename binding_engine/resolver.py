"""
binding_engine/resolver.py

ResolverClient — asks the external resolver which commands to intercept.
─────────────────────────────────────────────────────────────────────────
The resolver is an executable that knows the configuration hierarchy and its
merge rules. We only need its simple listing:

    <resolver> list --simple        (run in the location being resolved)

which prints one command name per line.

Failure policy
──────────────
The user's shell must stay usable even if the resolver is broken or not
installed, so every failure mode collapses to "no commands resolved":

  • binary missing / not executable   → ()
  • timeout                           → ()
  • location no longer exists         → ()
  • non-zero exit                     → ()
  • malformed listing                 → ()

Failures are reported through the diagnostic log only. There are no retries:
resolution runs again on the next trigger.
"""

import logging
import subprocess
from typing import Optional, Tuple

from .base import ResolutionError
from .config import DEFAULT_RESOLVER, DEFAULT_RESOLVER_TIMEOUT
from .diagnostics import DiagnosticLog
from .names import parse_listing

logger = logging.getLogger(__name__)


class ResolverClient:
    """
    Args:
        resolver    : Resolver binary name or path.
        timeout     : Seconds allowed for one listing call.
        diagnostics : Shared DiagnosticLog. A silent one is created if omitted.
    """

    def __init__(
        self,
        resolver: str = DEFAULT_RESOLVER,
        timeout: float = DEFAULT_RESOLVER_TIMEOUT,
        diagnostics: Optional[DiagnosticLog] = None,
    ) -> None:
        self.resolver = resolver
        self.timeout = timeout
        self._diagnostics = diagnostics or DiagnosticLog()

        # Inspection only. A failed call never falls back to last_good.
        self.last_good: Optional[Tuple[str, ...]] = None
        self.last_error: Optional[ResolutionError] = None

    # ── Public API ────────────────────────────────────────────────────────────

    def resolve(self, location: str) -> Tuple[str, ...]:
        """
        Return the ordered, de-duplicated names to intercept at `location`.

        Never raises for resolver problems; returns () instead.
        """
        try:
            raw = self._list_simple(location)
            names = parse_listing(raw)
        except ResolutionError as exc:
            self.last_error = exc
            logger.debug("Resolver failure in %s: %s", location, exc)
            self._diagnostics.resolution_failed(location, exc)
            return ()

        self.last_error = None
        self.last_good = names
        self._diagnostics.resolution_performed(location, names)
        return names

    def command_line(self) -> list[str]:
        return [self.resolver, "list", "--simple"]

    # ── Private helpers ───────────────────────────────────────────────────────

    def _list_simple(self, location: str) -> str:
        """Run the listing call and return its stdout, or raise ResolutionError."""
        cmd = self.command_line()
        try:
            proc = subprocess.run(
                cmd,
                cwd=location,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as exc:
            # Either the binary or the cwd is missing; both mean "nothing".
            raise ResolutionError(f"cannot run '{self.resolver}': {exc}") from exc
        except subprocess.TimeoutExpired as exc:
            raise ResolutionError(
                f"'{self.resolver}' timed out after {self.timeout:.1f}s"
            ) from exc
        except OSError as exc:
            raise ResolutionError(f"cannot run '{self.resolver}': {exc}") from exc

        if proc.returncode != 0:
            stderr = (proc.stderr or "").strip().splitlines()
            detail = stderr[-1] if stderr else "no error output"
            raise ResolutionError(
                f"'{self.resolver} list --simple' exited {proc.returncode}: {detail}"
            )

        return proc.stdout or ""
