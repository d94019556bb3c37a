"""
interceptor/shim.py

InterceptionShim — the single indirection point for bound commands.
───────────────────────────────────────────────────────────────────
Every bound name ends up here. The shim has two entry points:

    intercept(name, args)  →  <executor> wrap <name> <args...>
    bypass(name, args)     →  <name> <args...>

Both run the program in the foreground with the caller's stdin, stdout and
stderr, block until it exits, and return its exit status unchanged. The shim
holds no state.

Cancellation
────────────
The child shares our terminal and process group, so Ctrl+C reaches it
directly. A KeyboardInterrupt raised in this process while waiting is
therefore NOT a reason to kill the child: we keep waiting and report
whatever status the child ends with (interactive programs may catch SIGINT
and carry on). A child killed by signal N is reported as 128 + N, the way a
shell reports it.
"""

import logging
import subprocess
import sys
from typing import Optional, Sequence

from colorama import Fore, Style

logger = logging.getLogger(__name__)

# Shell conventions for programs that never started.
EXIT_NOT_EXECUTABLE = 126
EXIT_NOT_FOUND = 127

_TAG = f"{Fore.CYAN}{Style.BRIGHT}[cmdshield]{Style.RESET_ALL}"


def exit_status(returncode: int) -> int:
    """Map a Popen returncode to a shell exit status."""
    if returncode < 0:
        return 128 + (-returncode)
    return returncode


def run_foreground(argv: Sequence[str], cwd: Optional[str] = None) -> int:
    """
    Run `argv` attached to our terminal and return its shell exit status.

    This is the only place where this package starts a foreground program.
    """
    program = argv[0]
    try:
        proc = subprocess.Popen(list(argv), cwd=cwd)
    except FileNotFoundError:
        sys.stderr.write(f"{_TAG} {program}: command not found\n")
        return EXIT_NOT_FOUND
    except PermissionError:
        sys.stderr.write(f"{_TAG} {program}: permission denied\n")
        return EXIT_NOT_EXECUTABLE
    except OSError as exc:
        logger.error("Could not start %s: %s", program, exc)
        sys.stderr.write(f"{_TAG} {program}: {exc.strerror or exc}\n")
        return EXIT_NOT_EXECUTABLE

    while True:
        try:
            returncode = proc.wait()
            break
        except KeyboardInterrupt:
            # The child got the same SIGINT; let it decide what to do.
            logger.debug("Interrupt while waiting for pid %s, still waiting", proc.pid)

    status = exit_status(returncode)
    logger.debug("%s exited with status %d", program, status)
    return status


class InterceptionShim:
    """
    Args:
        executor : The sandbox-wrapping binary (the resolver in `wrap` mode).
    """

    def __init__(self, executor: str = "shwrap") -> None:
        self.executor = executor

    def executor_argv(self, name: str, args: Sequence[str]) -> list[str]:
        return [self.executor, "wrap", name, *args]

    def intercept(self, name: str, args: Sequence[str] = ()) -> int:
        """Forward `name args...` to the executor, exactly once."""
        argv = self.executor_argv(name, args)
        logger.info("Intercepting %s (%d argument(s))", name, len(args))
        return run_foreground(argv)

    def bypass(self, name: str, args: Sequence[str] = ()) -> int:
        """Run the real program directly. The executor is never involved."""
        logger.info("Bypassing interception for %s", name)
        return run_foreground([name, *args])
